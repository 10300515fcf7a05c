from __future__ import annotations

import copy
import logging
import os
import threading
from collections.abc import Iterable, Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any

from filelock import Timeout

from file_backed_cache.config import CacheSettings, default_cache_root
from file_backed_cache.models.record import DurableRecord
from file_backed_cache.storage.files import (
    DEFAULT_LOCK_TIMEOUT_SECONDS,
    atomic_write,
    path_for_key,
    remove_path,
)
from file_backed_cache.utils.values import is_empty_value
from file_backed_cache.validation.keys import InvalidArgument, describe_type, validate_key, validate_keys

logger = logging.getLogger(__name__)

Ttl = int | float | timedelta | None

# Anything a damaged, foreign or outdated record file can raise while being decoded.
# pydantic.ValidationError and UnicodeDecodeError are ValueErrors.
_DECODE_ERRORS = (ValueError, TypeError, KeyError, AttributeError, ImportError, RecursionError)
_ENCODE_ERRORS = (ValueError, TypeError, RecursionError)


class FileBackedCache:
    """
    Two-tier key-value cache: a per-instance dict in front of one file per key
    under `directory`.

    Storage faults never raise. Writes report them as False, reads as a miss.
    Only malformed arguments raise (InvalidArgument).

    `set` updates the in-memory tier before the file is written and does not roll
    it back if the write fails, so a False from `set` still leaves the value
    readable from this instance until it is deleted or cleared.

    The in-memory tier keeps a deep copy of each value passed to `set`, so
    mutating the original afterwards changes neither tier. Values returned by
    `get` are the stored objects themselves; mutating them changes what later
    `get` calls on this instance return, but not the file.

    Other processes sharing the directory are not observed once a key is in
    memory: their deletes/overwrites only show up after this instance drops it.

    `ttl` is accepted everywhere for interface compatibility and ignored.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str] | None = None,
        *,
        lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    ) -> None:
        self.directory = Path(directory) if directory is not None else default_cache_root()
        self.lock_timeout_seconds = lock_timeout_seconds
        self._pool: dict[str, Any] = {}
        self._pool_lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: CacheSettings | None = None) -> "FileBackedCache":
        settings = settings or CacheSettings()
        return cls(settings.cache_root(), lock_timeout_seconds=settings.lock_timeout_seconds)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(directory={str(self.directory)!r})"

    def __contains__(self, key: object) -> bool:
        return self.has(key)

    def _path(self, key: str) -> Path:
        return path_for_key(self.directory, key)

    def _exists(self, key: str, path: Path) -> bool:
        try:
            return path.is_file()
        except OSError as e:
            logger.warning("cache stat_failed key=%s path=%s err=%s", key, path, e)
            return False

    def _load(self, key: str, path: Path) -> Any | None:
        """Read and decode the record at `path`; None means there is no usable value."""
        try:
            raw = path.read_bytes()
        except OSError as e:
            logger.warning("cache read_failed key=%s path=%s err=%s", key, path, e)
            return None
        try:
            record = DurableRecord.model_validate_json(raw)
            if record.key != key:
                logger.warning("cache key_mismatch key=%s stored_key=%s path=%s", key, record.key, path)
                return None
            return record.unwrap()
        except _DECODE_ERRORS as e:
            logger.warning("cache corrupt_record key=%s path=%s err=%s", key, path, e)
            return None

    def get(self, key: str, default: Any = None) -> Any:
        validate_key(key)
        with self._pool_lock:
            if key in self._pool:
                logger.debug("cache hit tier=memory key=%s", key)
                return self._pool[key]
        path = self._path(key)
        if not self._exists(key, path):
            logger.debug("cache miss key=%s", key)
            return default
        value = self._load(key, path)
        if value is None:
            return default
        with self._pool_lock:
            self._pool[key] = value
        logger.debug("cache hit tier=disk key=%s", key)
        return value

    def set(self, key: str, value: Any, ttl: Ttl = None) -> bool:
        validate_key(key)
        if is_empty_value(value):
            logger.debug("cache set_rejected_empty key=%s type=%s", key, type(value).__name__)
            return False
        stored = _detached_copy(value)
        with self._pool_lock:
            self._pool[key] = stored
        try:
            data = DurableRecord.wrap(key, value).to_json_bytes()
        except _ENCODE_ERRORS as e:
            logger.warning("cache encode_failed key=%s err=%s", key, e)
            return False
        path = self._path(key)
        try:
            atomic_write(path, data, lock_timeout=self.lock_timeout_seconds)
        except (OSError, Timeout) as e:
            logger.warning("cache write_failed key=%s path=%s err=%s", key, path, e)
            return False
        logger.debug("cache set key=%s bytes=%s", key, len(data))
        return True

    def delete(self, key: str) -> bool:
        # The path of `key` may be a directory holding nested keys ("key/..."); they
        # go with it, in memory as on disk.
        validate_key(key)
        prefix = f"{key}/"
        with self._pool_lock:
            self._pool.pop(key, None)
            for nested in [k for k in self._pool if k.startswith(prefix)]:
                del self._pool[nested]
        return remove_path(self._path(key))

    def clear(self) -> bool:
        with self._pool_lock:
            self._pool.clear()
        ok = remove_path(self.directory)
        logger.debug("cache clear directory=%s ok=%s", self.directory, ok)
        return ok

    def has(self, key: str) -> bool:
        # A file that exists but would not decode still counts.
        validate_key(key)
        with self._pool_lock:
            if key in self._pool:
                return True
        path = self._path(key)
        return self._exists(key, path)

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        validate_keys(keys)
        result: dict[str, Any] = {}
        for key in keys:
            result[key] = self.get(key, default)
        return result

    def set_multiple(self, values: Mapping[str, Any] | Iterable[tuple[str, Any]], ttl: Ttl = None) -> bool:
        """
        Set every pair, continuing past failures. Returns True only if every `set`
        did. Keys are validated one at a time, so an invalid key raises after the
        pairs before it were already stored.
        """
        validate_keys(values)
        pairs = values.items() if isinstance(values, Mapping) else values
        success = True
        for pair in pairs:
            key, value = _as_pair(pair)
            success = self.set(key, value, ttl) and success
        return success

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        validate_keys(keys)
        success = True
        for key in keys:
            success = self.delete(key) and success
        return success


def _detached_copy(value: Any) -> Any:
    # Objects deepcopy cannot handle (locks, sockets, ...) are kept by reference.
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error, RecursionError):
        return value


def _as_pair(item: Any) -> tuple[Any, Any]:
    if isinstance(item, (str, bytes, bytearray)) or not isinstance(item, Iterable):
        raise InvalidArgument(f"Expected a (key, value) pair, not {describe_type(item)}")
    pair = tuple(item)
    if len(pair) != 2:
        raise InvalidArgument(f"Expected a (key, value) pair, got {len(pair)} items")
    return pair[0], pair[1]
