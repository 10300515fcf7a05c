from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

# Reserved for namespacing; also keeps keys safe to use as relative paths.
_RESERVED_CHARS_RE = re.compile(r"[{}()*\\@:]")
# Path segments that would collapse into, or climb out of, their parent directory.
_FORBIDDEN_SEGMENTS = {"", ".", ".."}


class InvalidArgument(ValueError):
    pass


def describe_type(value: Any) -> str:
    cls = type(value)
    if cls.__module__ == "builtins":
        return cls.__name__
    return f"{cls.__qualname__} object"


def validate_key(key: Any) -> None:
    """
    Keys are non-empty strings without NUL or any of `{ } ( ) * \\ @ :`.

    `/` is allowed and nests the record in subdirectories. Every segment must be
    a real name (no leading, trailing or doubled `/`, no `.` or `..`), so each key
    has exactly one path below the cache root.
    """
    if not isinstance(key, str):
        raise InvalidArgument(f"Expected key to be a string, not {describe_type(key)}")
    if key == "" or "\x00" in key or _RESERVED_CHARS_RE.search(key):
        raise InvalidArgument(f"Invalid key {key!r}")
    if any(s in _FORBIDDEN_SEGMENTS for s in key.split("/")):
        raise InvalidArgument(f"Invalid key {key!r}")


def validate_keys(keys: Any) -> None:
    # Only the container is checked here; each key is validated when it is used.
    if isinstance(keys, (str, bytes, bytearray)) or not isinstance(keys, Iterable):
        raise InvalidArgument("keys is not iterable")
