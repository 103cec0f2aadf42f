"""Canonical JSON encoding for block content.

Block hashes are taken over these bytes, so two processes that hold the same
block must produce the same encoding:

- object keys sorted after NFC normalization; keys that collide once
  normalized are rejected
- no insignificant whitespace
- numbers in plain decimal notation with no exponent and no trailing zeros;
  a float is rendered from its shortest round-trip ``repr`` (0.94 -> ``0.94``)
- NaN and Infinity cannot be encoded
"""

from __future__ import annotations

import hashlib
import json
import unicodedata
from decimal import Decimal
from typing import Any


class CanonicalizationError(ValueError):
    """Raised when a value has no canonical JSON encoding."""


def canonical_bytes(value: Any) -> bytes:
    """Encode ``value`` as canonical UTF-8 JSON."""
    parts: list[str] = []
    _encode(value, parts)
    return "".join(parts).encode("utf-8")


def sha256_hex(value: Any) -> str:
    return hashlib.sha256(canonical_bytes(value)).hexdigest()


def _encode(value: Any, out: list[str]) -> None:
    if value is None or isinstance(value, bool):
        out.append(json.dumps(value))
    elif isinstance(value, int):
        out.append(str(value))
    elif isinstance(value, float):
        out.append(_number(Decimal(repr(value))))
    elif isinstance(value, Decimal):
        out.append(_number(value))
    elif isinstance(value, str):
        out.append(_string(value))
    elif isinstance(value, dict):
        _encode_object(value, out)
    elif isinstance(value, (list, tuple)):
        out.append("[")
        for position, item in enumerate(value):
            if position:
                out.append(",")
            _encode(item, out)
        out.append("]")
    else:
        raise CanonicalizationError(f"type {type(value).__name__} is not JSON-serializable")


def _encode_object(value: dict[Any, Any], out: list[str]) -> None:
    members: dict[str, Any] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise CanonicalizationError("object keys must be strings")
        normalized = unicodedata.normalize("NFC", key)
        if normalized in members:
            raise CanonicalizationError(f"duplicate key after NFC normalization: {normalized!r}")
        members[normalized] = item

    out.append("{")
    for position, key in enumerate(sorted(members)):
        if position:
            out.append(",")
        out.append(_string(key))
        out.append(":")
        _encode(members[key], out)
    out.append("}")


def _string(value: str) -> str:
    return json.dumps(unicodedata.normalize("NFC", value), ensure_ascii=False)


def _number(value: Decimal) -> str:
    if not value.is_finite():
        raise CanonicalizationError("NaN/Infinity are rejected")
    if value.is_zero():
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
