from simgate.config.settings import (
    DEFAULT_CHAT_API_URL,
    DEFAULT_CHAT_PROJECT_ID,
    DEFAULT_IMAGE_API_URL,
    DEFAULT_IMAGE_PROJECT_ID,
    Settings,
)


def _clear_env(monkeypatch):
    for name in (
        "API_KEY",
        "WEBSIM_CHAT_PROJECT_ID",
        "WEBSIM_IMAGE_PROJECT_ID",
        "WEBSIM_CHAT_API_URL",
        "WEBSIM_IMAGE_API_URL",
        "WEBSIM_PORT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_are_preserved(monkeypatch):
    _clear_env(monkeypatch)
    settings = Settings()
    assert settings.chat_project_id == DEFAULT_CHAT_PROJECT_ID == "8n26qj27l_9v7_8fxk9i"
    assert settings.image_project_id == DEFAULT_IMAGE_PROJECT_ID == "7s1bwhja5y2paq235t93"
    assert settings.chat_api_url == DEFAULT_CHAT_API_URL
    assert settings.image_api_url == DEFAULT_IMAGE_API_URL
    assert settings.api_key == ""


def test_environment_overrides(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("API_KEY", "  secret  ")
    monkeypatch.setenv("WEBSIM_CHAT_PROJECT_ID", "chat-proj")
    monkeypatch.setenv("WEBSIM_IMAGE_API_URL", "https://img.example.com/run")
    monkeypatch.setenv("WEBSIM_PORT", "9001")
    settings = Settings()
    assert settings.api_key == "secret"
    assert settings.chat_project_id == "chat-proj"
    assert settings.image_api_url == "https://img.example.com/run"
    assert settings.port == 9001


def test_blank_environment_value_falls_back_to_default(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("WEBSIM_IMAGE_PROJECT_ID", "   ")
    assert Settings().image_project_id == DEFAULT_IMAGE_PROJECT_ID


def test_constructor_accepts_field_names(monkeypatch):
    _clear_env(monkeypatch)
    settings = Settings(api_key="k", chat_project_id="p")
    assert settings.api_key == "k"
    assert settings.chat_project_id == "p"
