# storage.py
# Key/value persistence used to save and resume games, scores, statistics and settings.

import logging
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from pydantic import ValidationError

from .config import BEST_SCORE_KEY, SETTINGS_KEY, GameSettings

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Anything that can store and fetch a serialized payload by key."""

    def save(self, key: str, data: str) -> None: ...

    def load(self, key: str) -> Optional[str]: ...


class MemoryStorage:
    """Process-local storage, mainly for tests and the HTTP API."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def save(self, key: str, data: str) -> None:
        self.data[key] = data

    def load(self, key: str) -> Optional[str]:
        return self.data.get(key)


class JsonFileStorage:
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def save(self, key: str, data: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(data, encoding="utf-8")

    def load(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")


class SafeStorage:
    """
    Wraps a backend so that failures never reach gameplay code:
    a failed load is a miss and a failed save is dropped.
    """

    def __init__(self, backend: StorageBackend):
        self.backend = backend

    def save(self, key: str, data: str) -> None:
        try:
            self.backend.save(key, data)
        except Exception as e:
            logger.warning("Failed to save %r: %s", key, e)

    def load(self, key: str) -> Optional[str]:
        try:
            return self.backend.load(key)
        except Exception as e:
            logger.warning("Failed to load %r: %s", key, e)
            return None


# --- Typed helpers for the independent keys ---

def load_best_score(storage: StorageBackend) -> int:
    raw = storage.load(BEST_SCORE_KEY)
    if raw is None:
        return 0
    try:
        return max(int(raw), 0)
    except ValueError:
        logger.warning("Discarding malformed best score %r", raw)
        return 0


def save_best_score(storage: StorageBackend, score: int) -> None:
    storage.save(BEST_SCORE_KEY, str(score))


def load_settings(storage: StorageBackend) -> GameSettings:
    """Stored settings merged over the defaults; invalid payloads yield the defaults."""
    raw = storage.load(SETTINGS_KEY)
    if raw is None:
        return GameSettings()
    try:
        return GameSettings.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Discarding invalid settings: %s", e)
        return GameSettings()


def save_settings(storage: StorageBackend, settings: GameSettings) -> None:
    storage.save(SETTINGS_KEY, settings.model_dump_json())
