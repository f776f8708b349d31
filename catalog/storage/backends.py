"""Synchronous key-value backends for the durable catalog store.

Backends move raw strings only. They raise :class:`StorageBackendError` on any
failure; turning failures into booleans is the job of ``ProductStore``.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional

import redis

from ..utils.exceptions import ConfigurationError, StorageBackendError, StorageUnavailableError

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class KeyValueBackend:
    """Interface shared by all durable store backends."""

    def read(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def write(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryBackend(KeyValueBackend):
    """
    Process-local backend.

    ``available`` can be switched off to behave like a disabled store, and
    ``fail_writes`` to behave like a store that is readable but full.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self.available = True
        self.fail_writes = False

    def _check_available(self):
        if not self.available:
            raise StorageUnavailableError("Memory store is unavailable")

    def read(self, key: str) -> Optional[str]:
        self._check_available()
        return self.data.get(key)

    def write(self, key: str, value: str) -> None:
        self._check_available()
        if self.fail_writes:
            raise StorageBackendError("Memory store quota exceeded", details={"key": key})
        self.data[key] = value

    def remove(self, key: str) -> None:
        self._check_available()
        self.data.pop(key, None)


class JsonFileBackend(KeyValueBackend):
    """Stores each key as a ``<key>.json`` file inside a directory."""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_SAFE_KEY.sub('_', key)}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageUnavailableError(
                f"Cannot read {path}: {str(e)}", details={"key": key}
            )

    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file and swap it in so readers never see
            # a half-written collection.
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageBackendError(
                f"Cannot write {path}: {str(e)}", details={"key": key}
            )

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageBackendError(
                f"Cannot remove {path}: {str(e)}", details={"key": key}
            )


class RedisBackend(KeyValueBackend):
    """Backend on a Redis server, for catalogs shared between processes."""

    def __init__(self, client: redis.Redis = None, url: Optional[str] = None):
        if client is None:
            if not url:
                raise ConfigurationError("RedisBackend needs a client or a URL")
            client = redis.from_url(url, decode_responses=True)
        self.client = client

    def read(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
        except redis.RedisError as e:
            raise StorageUnavailableError(f"Redis read failed: {str(e)}", details={"key": key})
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise StorageUnavailableError(f"Redis value is not UTF-8: {str(e)}", details={"key": key})
        return value

    def write(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except redis.RedisError as e:
            raise StorageBackendError(f"Redis write failed: {str(e)}", details={"key": key})

    def remove(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            raise StorageBackendError(f"Redis delete failed: {str(e)}", details={"key": key})


def create_backend(kind: str, path: Optional[str] = None, redis_url: Optional[str] = None) -> KeyValueBackend:
    """Build the backend named by configuration."""
    kind = (kind or "file").lower()
    if kind == "file":
        return JsonFileBackend(path or ".catalog_store")
    if kind == "memory":
        return MemoryBackend()
    if kind == "redis":
        return RedisBackend(url=redis_url)
    raise ConfigurationError(f"Unknown storage backend: {kind}")
