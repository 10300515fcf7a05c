from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import SimpleNamespace

import pytest
from pydantic import BaseModel

from file_backed_cache.utils.values import is_empty_value


@dataclass
class Nothing:
    pass


class EmptyModel(BaseModel):
    pass


@pytest.mark.parametrize(
    "value",
    [None, False, 0, 0.0, 0j, Decimal("0"), "", "0", b"", bytearray(), [], (), {}, set(), frozenset(), range(0)],
)
def test_empty_values(value) -> None:
    assert is_empty_value(value) is True


@pytest.mark.parametrize(
    "value",
    [
        True, 1, -1, 0.5, "a", "00", " ", b"\x00", [0], (None,), {"": ""}, {0},
        Decimal("0.1"), Decimal("NaN"), Decimal("sNaN"), float("nan"), range(1),
    ],
)
def test_non_empty_values(value) -> None:
    assert is_empty_value(value) is False


@pytest.mark.parametrize("value", [SimpleNamespace(), Nothing(), EmptyModel()])
def test_records_are_never_empty(value) -> None:
    assert is_empty_value(value) is False
