from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

from file_backed_cache.storage.codec import decode_value, encode_value

RECORD_FORMAT_VERSION = 1


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DurableRecord(BaseModel):
    """
    On-disk envelope for one cache entry. The file holds nothing else, so it can
    be reloaded without the process that wrote it.
    """

    format_version: int = RECORD_FORMAT_VERSION
    key: str
    stored_at: datetime = Field(default_factory=_utc_now)
    payload: Any = None

    @field_validator("format_version")
    @classmethod
    def _known_format(cls, v: int) -> int:
        if v != RECORD_FORMAT_VERSION:
            raise ValueError(f"Unsupported record format version {v}")
        return v

    @classmethod
    def wrap(cls, key: str, value: Any) -> "DurableRecord":
        return cls(key=key, payload=encode_value(value))

    def unwrap(self) -> Any:
        return decode_value(self.payload)

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")
