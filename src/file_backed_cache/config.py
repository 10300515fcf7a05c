from __future__ import annotations

import tempfile
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from file_backed_cache.storage.files import DEFAULT_LOCK_TIMEOUT_SECONDS

DEFAULT_CACHE_SUBDIR = "cache"


class CacheSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # None -> <platform temp dir>/cache
    cache_dir: str | None = Field(default=None, alias="FILE_BACKED_CACHE_DIR")
    lock_timeout_seconds: float = Field(
        default=DEFAULT_LOCK_TIMEOUT_SECONDS, gt=0, alias="FILE_BACKED_CACHE_LOCK_TIMEOUT"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    def cache_root(self) -> Path:
        return Path(self.cache_dir) if self.cache_dir else default_cache_root()


def default_cache_root() -> Path:
    return Path(tempfile.gettempdir()) / DEFAULT_CACHE_SUBDIR
