from __future__ import annotations

import json
import math
import sys
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from pydantic import BaseModel

from file_backed_cache.storage.codec import TYPE_TAG, decode_value, encode_value


@dataclass
class Address:
    city: str
    zip_code: str | None = None


@dataclass
class Person:
    name: str
    tags: list[str] = field(default_factory=list)
    address: Address | None = None


class Quote(BaseModel):
    symbol: str
    price: float
    history: list[float] = []


class Portfolio(BaseModel):
    owner: str
    quotes: list[Quote]


def _through_json(value):
    # Files hold the encoded tree as JSON text.
    return decode_value(json.loads(json.dumps(encode_value(value))))


@pytest.mark.parametrize(
    "value",
    [
        "bar",
        123,
        -4.25,
        True,
        ["one", "two", "three"],
        {"a": {"b": [1, 2, {"c": None}]}},
        (1, "two", 3.0),
        {1, 2, 3},
        frozenset({"x", "y"}),
        b"\x00\xffbinary",
        bytearray(b"buf"),
        {1: "int key", (2, 3): "tuple key"},
        {TYPE_TAG: "looks tagged", "other": 1},
        datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        date(2024, 1, 2),
        Decimal("12.340"),
        10**40,
    ],
)
def test_values_rebuild_through_json(value) -> None:
    out = _through_json(value)
    assert out == value
    assert type(out) is type(value)


def test_non_finite_floats() -> None:
    assert _through_json(math.inf) == math.inf
    assert _through_json([-math.inf])[0] == -math.inf
    assert math.isnan(_through_json(math.nan))
    # Strict JSON: no NaN/Infinity literals.
    json.dumps(encode_value([math.nan, math.inf]), allow_nan=False)


def test_namespace_record() -> None:
    obj = SimpleNamespace(name="Alice", scores=[1, 2], nested=SimpleNamespace())
    out = _through_json(obj)
    assert isinstance(out, SimpleNamespace)
    assert out == obj


def test_dataclass_record() -> None:
    obj = Person(name="Bob", tags=["a", "b"], address=Address(city="Paris"))
    out = _through_json(obj)
    assert isinstance(out, Person)
    assert isinstance(out.address, Address)
    assert out == obj


def test_pydantic_record() -> None:
    obj = Portfolio(owner="Carol", quotes=[Quote(symbol="GOOG", price=1.5, history=[1.0, 1.25])])
    out = _through_json(obj)
    assert isinstance(out, Portfolio)
    assert out == obj


@pytest.mark.parametrize("value", [lambda: 1, open, (x for x in range(2)), object()])
def test_unsupported_values_raise_type_error(value) -> None:
    with pytest.raises(TypeError):
        encode_value(value)


def test_local_classes_rejected() -> None:
    @dataclass
    class Local:
        x: int

    with pytest.raises(TypeError, match="local class"):
        encode_value(Local(x=1))


def test_unknown_tag_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown type tag"):
        decode_value({TYPE_TAG: "pickle", "data": "..."})


def test_record_module_is_imported_on_decode(tmp_path, monkeypatch) -> None:
    module_name = "fbc_records_not_yet_imported"
    (tmp_path / f"{module_name}.py").write_text(
        "from dataclasses import dataclass\n\n\n@dataclass\nclass Reading:\n    sensor: str\n    value: float\n",
        encoding="utf-8",
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, module_name, raising=False)
    assert module_name not in sys.modules

    data = {TYPE_TAG: "dataclass", "class": f"{module_name}:Reading", "fields": {"sensor": "t1", "value": 2.5}}
    out = decode_value(data)
    try:
        assert type(out).__name__ == "Reading"
        assert (out.sensor, out.value) == ("t1", 2.5)
    finally:
        sys.modules.pop(module_name, None)


def test_record_from_missing_module_raises_import_error() -> None:
    data = {TYPE_TAG: "dataclass", "class": "no_such_module_for_cache_records:Thing", "fields": {}}
    with pytest.raises(ImportError):
        decode_value(data)


def test_record_class_must_be_a_record_type() -> None:
    data = {TYPE_TAG: "dataclass", "class": "json:JSONDecoder", "fields": {}}
    with pytest.raises(TypeError, match="not a dataclass"):
        decode_value(data)
    data = {TYPE_TAG: "model", "class": "json:JSONDecoder", "fields": {}}
    with pytest.raises(TypeError, match="not a pydantic model"):
        decode_value(data)
