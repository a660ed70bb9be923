"""Durable local storage for the persistent part of the store.

The whole persistent state is one JSON blob under a single versioned key.
Bumping the key (``STATE_STORAGE_KEY``) abandons old blobs instead of
migrating them. Reads and writes never raise: a missing, unreadable or
invalid blob is treated as no saved state, and a failed write is logged.
"""

from __future__ import annotations

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from projectmaster.common.logging import get_logger
from projectmaster.config import settings
from projectmaster.domain.state import PERSISTENT_FIELDS, AppState, PersistedState

logger = get_logger("store.persistence")


class StateStorage(ABC):
    """Minimal key/value storage, shaped like a browser's localStorage."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage(StateStorage):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage(StateStorage):
    """One ``<key>.json`` file per key under ``directory``; writes are atomic renames."""

    def __init__(self, directory: str | Path | None = None) -> None:
        self._dir = Path(directory or settings.STATE_STORAGE_PATH)

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp, self._path(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def serialize_state(state: AppState) -> str:
    return state.model_dump_json(include=set(PERSISTENT_FIELDS), by_alias=True)


def save_state(storage: StateStorage, state: AppState, key: str | None = None) -> bool:
    key = key or settings.STATE_STORAGE_KEY
    try:
        storage.set_item(key, serialize_state(state))
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Failed to persist state under '%s': %s", key, e)
        return False
    return True


def load_state(storage: StateStorage, key: str | None = None) -> PersistedState | None:
    key = key or settings.STATE_STORAGE_KEY
    try:
        raw = storage.get_item(key)
    except (OSError, ValueError) as e:
        logger.warning("Failed to read saved state '%s': %s", key, e)
        return None
    if not raw:
        return None
    try:
        return PersistedState.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Discarding unreadable saved state '%s': %d error(s)", key, e.error_count())
        return None
    except ValueError as e:
        logger.warning("Discarding unreadable saved state '%s': %s", key, e)
        return None
