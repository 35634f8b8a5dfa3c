"""Key-value persistence backends for the notes manager.

Each backend exposes the same synchronous ``get``/``set`` surface. A ``set``
always overwrites the previous value for the key. Backends raise on I/O or
parse errors; the notes manager decides what to do with them.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import redis

if TYPE_CHECKING:
    from quicknotes.config import Settings

logger = logging.getLogger("quicknotes.backends")


class KeyValueBackend(Protocol):
    """Minimal preference-store surface used by the notes manager."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryBackend:
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileBackend:
    """Preference store kept in a single JSON object file.

    The file maps keys to string values. A missing file behaves as an empty
    store; a corrupt file makes ``get`` raise ``ValueError``.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self._path} does not hold a JSON object")
        return data

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"Value for {key!r} is not a string")
        return value

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read()
        except ValueError as exc:
            logger.warning("Overwriting unreadable store %s: %s", self._path, exc)
            data = {}
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._write_atomic(json.dumps(data, indent=2))

    def _write_atomic(self, payload: str) -> None:
        """Write to a sibling temp file, then swap it over the target."""
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class RedisBackend:
    """Store values as plain Redis strings under a key prefix."""

    def __init__(self, redis_url: str, prefix: str = "quicknotes:") -> None:
        self._redis_url = redis_url
        self._prefix = prefix
        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        logger.info("Redis backend configured: %s", redis_url)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        return self._client.get(self._key(key))

    def set(self, key: str, value: str) -> None:
        self._client.set(self._key(key), value)

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()


def create_backend(config: Settings) -> KeyValueBackend:
    """Build the backend selected by ``config.storage_backend``."""
    if config.storage_backend == "memory":
        return MemoryBackend()
    if config.storage_backend == "redis":
        return RedisBackend(config.redis_url, prefix=config.redis_prefix)
    return JsonFileBackend(config.storage_path)
