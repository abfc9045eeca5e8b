"""Persistent storage for server configs keyed by session label."""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

STORE_FILENAME = "sessions.json"


def default_config_dir() -> Path:
    """Resolve the directory that holds persisted sessions."""

    explicit = os.getenv("ZENTAO_CONFIG_DIR")
    if explicit:
        return Path(explicit).expanduser()
    xdg = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "zentao-client"


class ConfigStore(ABC):
    """Interface each config persistence backend must implement."""

    @abstractmethod
    def get(self, label: str) -> dict[str, Any] | None:
        """Return the snapshot stored under ``label``, if any."""

    @abstractmethod
    def set(self, label: str, snapshot: Mapping[str, Any]) -> None:
        """Store ``snapshot`` under ``label``, replacing any previous value."""

    @abstractmethod
    def delete(self, label: str) -> None:
        """Forget the snapshot stored under ``label``."""

    def has(self, label: str) -> bool:
        return self.get(label) is not None


class MemoryConfigStore(ConfigStore):
    """Keep snapshots in process memory."""

    def __init__(self, initial: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._items: dict[str, dict[str, Any]] = {
            label: dict(snapshot) for label, snapshot in (initial or {}).items()
        }

    def get(self, label: str) -> dict[str, Any] | None:
        snapshot = self._items.get(label)
        return dict(snapshot) if snapshot is not None else None

    def set(self, label: str, snapshot: Mapping[str, Any]) -> None:
        self._items[label] = dict(snapshot)

    def delete(self, label: str) -> None:
        self._items.pop(label, None)


class JsonFileConfigStore(ConfigStore):
    """Keep every snapshot in a single JSON document on disk."""

    def __init__(self, file_path: Path) -> None:
        self.file_path = file_path

    @classmethod
    def default(cls) -> JsonFileConfigStore:
        return cls(default_config_dir() / STORE_FILENAME)

    def get(self, label: str) -> dict[str, Any] | None:
        snapshot = self._load().get(label)
        return snapshot if isinstance(snapshot, dict) else None

    def set(self, label: str, snapshot: Mapping[str, Any]) -> None:
        items = self._load()
        items[label] = dict(snapshot)
        self._save(items)

    def delete(self, label: str) -> None:
        items = self._load()
        if items.pop(label, None) is not None:
            self._save(items)

    def _load(self) -> dict[str, Any]:
        if not self.file_path.exists():
            return {}
        try:
            payload = json.loads(self.file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable session store %s: %s", self.file_path, exc)
            return {}
        return payload if isinstance(payload, dict) else {}

    def _save(self, items: Mapping[str, Any]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        staging = self.file_path.with_name(f"{self.file_path.name}.tmp")
        staging.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(staging, self.file_path)


__all__ = ["ConfigStore", "JsonFileConfigStore", "MemoryConfigStore", "default_config_dir"]
