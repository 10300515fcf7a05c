from __future__ import annotations

import base64
import dataclasses
import importlib
import math
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace
from typing import Any

from pydantic import BaseModel

# Values that JSON cannot express natively are wrapped as {"__type__": <tag>, ...}.
TYPE_TAG = "__type__"


def _class_ref(cls: type) -> str:
    if "<locals>" in cls.__qualname__:
        raise TypeError(f"Cannot store instances of local class {cls.__qualname__}")
    return f"{cls.__module__}:{cls.__qualname__}"


def _resolve_class(ref: str) -> type:
    """
    Look up a record class by `module:QualName`.

    The module is imported if needed. Only dataclasses and pydantic models are
    ever built from the result (see `_decode_tagged`).
    """
    module_name, sep, qualname = ref.partition(":")
    if not sep or not module_name or not qualname:
        raise ValueError(f"Malformed class reference {ref!r}")
    module = importlib.import_module(module_name)
    obj: Any = module
    for part in qualname.split("."):
        obj = getattr(obj, part)
    if not isinstance(obj, type):
        raise TypeError(f"{ref!r} does not name a class")
    return obj


def encode_value(value: Any) -> Any:
    """
    Convert a value into a JSON-compatible tree that `decode_value` can rebuild
    without any outside context. Raises TypeError for values that cannot be
    reconstructed (functions, file handles, generators, local classes, ...).
    """
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        if math.isfinite(value):
            return value
        return {TYPE_TAG: "float", "value": repr(value)}
    if isinstance(value, list):
        return [encode_value(v) for v in value]
    if isinstance(value, tuple) and not hasattr(value, "_fields"):
        return {TYPE_TAG: "tuple", "items": [encode_value(v) for v in value]}
    if isinstance(value, dict):
        if all(isinstance(k, str) for k in value) and TYPE_TAG not in value:
            return {k: encode_value(v) for k, v in value.items()}
        return {TYPE_TAG: "dict", "items": [[encode_value(k), encode_value(v)] for k, v in value.items()]}
    if isinstance(value, frozenset):
        return {TYPE_TAG: "frozenset", "items": [encode_value(v) for v in value]}
    if isinstance(value, set):
        return {TYPE_TAG: "set", "items": [encode_value(v) for v in value]}
    if isinstance(value, bytes):
        return {TYPE_TAG: "bytes", "b64": base64.b64encode(value).decode("ascii")}
    if isinstance(value, bytearray):
        return {TYPE_TAG: "bytearray", "b64": base64.b64encode(bytes(value)).decode("ascii")}
    # datetime is a subclass of date
    if isinstance(value, datetime):
        return {TYPE_TAG: "datetime", "iso": value.isoformat()}
    if isinstance(value, date):
        return {TYPE_TAG: "date", "iso": value.isoformat()}
    if isinstance(value, Decimal):
        return {TYPE_TAG: "decimal", "value": str(value)}
    if isinstance(value, SimpleNamespace):
        return {TYPE_TAG: "namespace", "fields": {k: encode_value(v) for k, v in vars(value).items()}}
    if isinstance(value, BaseModel):
        cls = type(value)
        return {
            TYPE_TAG: "model",
            "class": _class_ref(cls),
            "fields": {name: encode_value(getattr(value, name)) for name in cls.model_fields},
        }
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            TYPE_TAG: "dataclass",
            "class": _class_ref(type(value)),
            "fields": {f.name: encode_value(getattr(value, f.name)) for f in dataclasses.fields(value) if f.init},
        }
    raise TypeError(f"Cannot store value of type {type(value).__qualname__}")


def _decode_items(data: dict[str, Any]) -> list[Any]:
    items = data["items"]
    if not isinstance(items, list):
        raise ValueError("Tagged collection items must be a list")
    return [decode_value(v) for v in items]


def _decode_fields(data: dict[str, Any]) -> dict[str, Any]:
    fields = data["fields"]
    if not isinstance(fields, dict):
        raise ValueError("Record fields must be an object")
    return {k: decode_value(v) for k, v in fields.items()}


def _decode_tagged(tag: str, data: dict[str, Any]) -> Any:
    if tag == "float":
        return float(data["value"])
    if tag == "tuple":
        return tuple(_decode_items(data))
    if tag == "set":
        return set(_decode_items(data))
    if tag == "frozenset":
        return frozenset(_decode_items(data))
    if tag == "dict":
        return {k: v for k, v in _decode_items(data)}
    if tag == "bytes":
        return base64.b64decode(data["b64"], validate=True)
    if tag == "bytearray":
        return bytearray(base64.b64decode(data["b64"], validate=True))
    if tag == "datetime":
        return datetime.fromisoformat(data["iso"])
    if tag == "date":
        return date.fromisoformat(data["iso"])
    if tag == "decimal":
        return Decimal(data["value"])
    if tag == "namespace":
        return SimpleNamespace(**_decode_fields(data))
    if tag == "model":
        cls = _resolve_class(data["class"])
        if not issubclass(cls, BaseModel):
            raise TypeError(f"{data['class']!r} is not a pydantic model")
        return cls.model_validate(_decode_fields(data))
    if tag == "dataclass":
        cls = _resolve_class(data["class"])
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"{data['class']!r} is not a dataclass")
        return cls(**_decode_fields(data))
    raise ValueError(f"Unknown type tag {tag!r}")


def decode_value(data: Any) -> Any:
    """
    Inverse of `encode_value`. Malformed input raises ValueError, TypeError,
    KeyError, AttributeError or ImportError; callers treat any of them as an
    unreadable record.
    """
    if isinstance(data, list):
        return [decode_value(v) for v in data]
    if isinstance(data, dict):
        tag = data.get(TYPE_TAG)
        if tag is None:
            return {k: decode_value(v) for k, v in data.items()}
        if not isinstance(tag, str):
            raise ValueError("Type tag must be a string")
        return _decode_tagged(tag, data)
    return data
