from __future__ import annotations

import dataclasses
import numbers
from collections.abc import Sized
from decimal import Decimal
from types import SimpleNamespace
from typing import Any

from pydantic import BaseModel


def is_record(value: Any) -> bool:
    if isinstance(value, (SimpleNamespace, BaseModel)):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def is_empty_value(value: Any) -> bool:
    """
    Values the cache refuses to store because a later read could not tell them
    apart from a miss:
    - None
    - False
    - numeric zero (0, 0.0, 0j, Decimal("0"), ...); a Decimal NaN is not zero
    - "" and "0"
    - empty bytes / containers

    Record objects are never empty, even without fields.
    """
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, Decimal) and value.is_nan():
        return False
    if isinstance(value, numbers.Number):
        return value == 0
    if isinstance(value, str):
        return value in ("", "0")
    if isinstance(value, (bytes, bytearray)):
        return len(value) == 0
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0
    if is_record(value):
        return False
    if isinstance(value, Sized):
        return len(value) == 0
    return False
