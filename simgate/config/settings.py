"""Runtime settings."""

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CHAT_API_URL = "https://websim.com/api/v1/inference/run_chat_completion"
DEFAULT_IMAGE_API_URL = "https://websim.com/api/v1/inference/run_image_generation"
DEFAULT_CHAT_PROJECT_ID = "8n26qj27l_9v7_8fxk9i"
DEFAULT_IMAGE_PROJECT_ID = "7s1bwhja5y2paq235t93"

_BLANK_FALLBACKS = {
    "chat_api_url": DEFAULT_CHAT_API_URL,
    "image_api_url": DEFAULT_IMAGE_API_URL,
    "chat_project_id": DEFAULT_CHAT_PROJECT_ID,
    "image_project_id": DEFAULT_IMAGE_PROJECT_ID,
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="WEBSIM_", extra="ignore", populate_by_name=True)

    app_name: str = "SimGate"
    log_level: str = "info"
    # body is only dumped at DEBUG and only when this is on; headers/size are always logged at DEBUG
    log_full_request_body: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    chat_api_url: str = DEFAULT_CHAT_API_URL
    image_api_url: str = DEFAULT_IMAGE_API_URL
    chat_project_id: str = DEFAULT_CHAT_PROJECT_ID
    image_project_id: str = DEFAULT_IMAGE_PROJECT_ID
    # empty disables inbound auth
    api_key: str = Field(default="", validation_alias=AliasChoices("api_key", "API_KEY"))

    upstream_timeout_seconds: float = Field(default=60.0, gt=0)
    upstream_max_connections: int = 100
    upstream_max_keepalive_connections: int = 20
    # optional YAML file with extra model entries
    models_config_path: str = ""

    @field_validator("chat_api_url", "image_api_url", "chat_project_id", "image_project_id", mode="before")
    @classmethod
    def _blank_uses_default(cls, value, info):
        if value is None or (isinstance(value, str) and not value.strip()):
            return _BLANK_FALLBACKS[info.field_name]
        return value.strip() if isinstance(value, str) else value

    @field_validator("api_key", mode="before")
    @classmethod
    def _strip_api_key(cls, value):
        if value is None:
            return ""
        return str(value).strip()
