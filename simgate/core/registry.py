"""Model registry: public model id -> upstream routing data."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from simgate.config.settings import Settings
from simgate.core.errors import ConfigurationError
from simgate.util.logger import logger


MODALITY_CHAT = "chat"
MODALITY_IMAGE = "image"
_MODALITIES = frozenset({MODALITY_CHAT, MODALITY_IMAGE})

DEFAULT_CHAT_MODEL = "websim-chat"
DEFAULT_IMAGE_MODEL = "websim-image"


@dataclass(slots=True, frozen=True)
class ModelEntry:
    public_id: str
    modality: str
    project_id: str
    api_url: str


class ModelRegistry:
    def __init__(self, entries: Iterable[ModelEntry] = ()) -> None:
        self._entries: dict[str, ModelEntry] = {}
        for entry in entries:
            self.register(entry)

    def register(self, entry: ModelEntry) -> None:
        if entry.modality not in _MODALITIES:
            raise ConfigurationError(f"unknown modality for {entry.public_id}: {entry.modality}")
        if entry.public_id in self._entries:
            logger.info("model registry override id=%s", entry.public_id)
        self._entries[entry.public_id] = entry

    def lookup(self, public_id: Any, modality: str | None = None) -> ModelEntry | None:
        if not isinstance(public_id, str):
            return None
        entry = self._entries.get(public_id)
        if entry is None:
            return None
        if modality is not None and entry.modality != modality:
            return None
        return entry

    def list_all(self) -> list[ModelEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModelRegistry":
        registry = cls(
            [
                ModelEntry(
                    public_id=DEFAULT_CHAT_MODEL,
                    modality=MODALITY_CHAT,
                    project_id=settings.chat_project_id,
                    api_url=settings.chat_api_url,
                ),
                ModelEntry(
                    public_id=DEFAULT_IMAGE_MODEL,
                    modality=MODALITY_IMAGE,
                    project_id=settings.image_project_id,
                    api_url=settings.image_api_url,
                ),
            ]
        )
        if settings.models_config_path.strip():
            path = Path(settings.models_config_path.strip())
            for entry in load_model_entries(path, settings):
                registry.register(entry)
        logger.info("model registry ready models=%s", [e.public_id for e in registry.list_all()])
        return registry


def load_model_entries(path: Path, settings: Settings) -> list[ModelEntry]:
    """Read extra entries from a YAML file of the form ``models: {id: {type, project_id, api_url?}}``."""
    if not path.is_file():
        raise ConfigurationError(f"models config not found: {path}")

    loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"invalid models config format: {path}")
    models = loaded.get("models") or {}
    if not isinstance(models, dict):
        raise ConfigurationError(f"invalid models config format: {path}")

    default_urls = {
        MODALITY_CHAT: settings.chat_api_url,
        MODALITY_IMAGE: settings.image_api_url,
    }
    entries: list[ModelEntry] = []
    for public_id, raw in models.items():
        if not isinstance(raw, dict):
            raise ConfigurationError(f"invalid entry for model {public_id}")
        modality = str(raw.get("type", "")).strip().lower()
        if modality not in _MODALITIES:
            raise ConfigurationError(f"unknown type for model {public_id}: {raw.get('type')!r}")
        project_id = str(raw.get("project_id") or "").strip()
        if not project_id:
            raise ConfigurationError(f"project_id is required for model {public_id}")
        api_url = str(raw.get("api_url") or "").strip() or default_urls[modality]
        entries.append(
            ModelEntry(
                public_id=str(public_id),
                modality=modality,
                project_id=project_id,
                api_url=api_url,
            )
        )
    logger.info("loaded %d model(s) from %s", len(entries), path)
    return entries
