"""Durable local key-value storage.

Uses file-based storage (no database required). Each key is one JSON
document under the data directory. Reads never raise: a missing or
unreadable entry is treated as "no data" and the caller starts empty.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from moneytracker.core.errors import StorageError

logger = logging.getLogger("moneytracker.storage")

# Default storage location
DEFAULT_DATA_DIR = Path.home() / ".moneytracker"


class LocalStorage(Protocol):
    """String key-value storage that survives restarts."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class FileStorage:
    """One file per key under ``root``, replaced atomically on write."""

    def __init__(self, root: Path | str = DEFAULT_DATA_DIR):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.root, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, self._path(key))
        except OSError as e:
            raise StorageError(f"Could not write {key}: {e}") from e

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not remove {key}: {e}") from e


class MemoryStorage:
    """Dict-backed storage for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


def load_json(storage: LocalStorage, key: str, default: Any) -> Any:
    """Read and parse a JSON value, falling back to ``default``.

    Args:
        storage: Storage backend
        key: Key to read
        default: Returned when the key is missing or does not parse

    Returns:
        Parsed value or default
    """
    raw = storage.get(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Discarding unreadable {key}: {e}")
        return default


def save_json(storage: LocalStorage, key: str, value: Any) -> None:
    """Serialize ``value`` as JSON and store it under ``key``."""
    storage.set(key, json.dumps(value, sort_keys=True))
