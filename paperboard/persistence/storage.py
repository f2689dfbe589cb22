"""Key-value storage backends for serialized projects and templates."""

from __future__ import annotations

import logging
import os
import re
import sqlite3
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class StorageError(RuntimeError):
    """Raised when a storage backend cannot read or write a key."""


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)


class JsonFileStorage:
    """One ``<key>.json`` file per key under ``root``; writes replace atomically."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        return self._root / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"cannot read {path}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise StorageError(f"cannot write {path}: {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"cannot remove {key}: {exc}") from exc


class SqliteStorage:
    """Single ``kv`` table in a SQLite database file."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, check_same_thread=False)
        with self._conn:
            self._conn.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)")

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            try:
                row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            except sqlite3.Error as exc:
                raise StorageError(f"cannot read {key}: {exc}") from exc
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(
                        "INSERT INTO kv (key, value) VALUES (?, ?) "
                        "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                        (key, value),
                    )
            except sqlite3.Error as exc:
                raise StorageError(f"cannot write {key}: {exc}") from exc

    def remove(self, key: str) -> None:
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            except sqlite3.Error as exc:
                raise StorageError(f"cannot remove {key}: {exc}") from exc

    def close(self) -> None:
        self._conn.close()


def storage_from_url(url: str) -> KeyValueStorage:
    """Build a backend from ``memory://``, ``file:///dir`` or ``sqlite:///file.db``."""

    parsed = urlparse(url)
    scheme = parsed.scheme or "file"
    location = (parsed.netloc + parsed.path) if parsed.scheme else url
    if scheme == "memory":
        return MemoryStorage()
    if scheme == "file":
        logger.info("Using JSON file storage in %s", location)
        return JsonFileStorage(Path(location))
    if scheme == "sqlite":
        logger.info("Using SQLite storage at %s", location)
        return SqliteStorage(location or ":memory:")
    raise ValueError(f"unsupported storage url {url!r}")


__all__ = [
    "StorageError",
    "KeyValueStorage",
    "MemoryStorage",
    "JsonFileStorage",
    "SqliteStorage",
    "storage_from_url",
]
