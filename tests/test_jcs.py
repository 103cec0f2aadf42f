from __future__ import annotations

import hashlib
import json
from decimal import Decimal

import pytest

from chainsign.ledger.jcs import CanonicalizationError, canonical_bytes, sha256_hex

VECTORS = [
    ({"nonce": 7, "timestamp": 1700000000000}, b'{"nonce":7,"timestamp":1700000000000}'),
    # decomposed u+diaeresis and U+212B (Angstrom sign) both normalize under NFC
    ({"location": "Zu\u0308rich"}, "{\"location\":\"Z\u00fcrich\"}".encode("utf-8")),
    ({"description": "5 \u212b"}, "{\"description\":\"5 \u00c5\"}".encode("utf-8")),
    ({"boundingBox": None, "valid": True}, b'{"boundingBox":null,"valid":true}'),
    ({"data": [1, {"signType": "STOP"}]}, b'{"data":[1,{"signType":"STOP"}]}'),
    ({"n": Decimal("1.2300")}, b'{"n":1.23}'),
    ({"n": Decimal("1E+2")}, b'{"n":100}'),
    ("quote \" and \\ slash", b'"quote \\" and \\\\ slash"'),
]


@pytest.mark.parametrize(("value", "expected"), VECTORS)
def test_canonical_vectors(value: object, expected: bytes) -> None:
    assert canonical_bytes(value) == expected
    assert sha256_hex(value) == hashlib.sha256(expected).hexdigest()
    assert json.loads(expected) == json.loads(canonical_bytes(value))


def test_key_order_does_not_change_bytes() -> None:
    one = {"signType": "STOP", "confidence": 0.94, "boundingBox": {"y": 2, "x": 1}}
    two = {"boundingBox": {"x": 1, "y": 2}, "confidence": 0.94, "signType": "STOP"}
    assert canonical_bytes(one) == canonical_bytes(two)


def test_floats_use_shortest_round_trip_form() -> None:
    assert canonical_bytes({"c": 0.94}) == b'{"c":0.94}'
    assert canonical_bytes({"c": 0.1 + 0.2}) == b'{"c":0.30000000000000004}'
    assert canonical_bytes({"c": 1e-7}) == b'{"c":0.0000001}'


def test_integral_floats_match_integers() -> None:
    assert canonical_bytes({"c": 1.0}) == canonical_bytes({"c": 1})
    assert canonical_bytes({"c": -0.0}) == b'{"c":0}'


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), Decimal("NaN")])
def test_rejects_non_finite_numbers(value: object) -> None:
    with pytest.raises(CanonicalizationError, match="NaN/Infinity"):
        canonical_bytes({"n": value})


def test_rejects_duplicate_keys_after_nfc() -> None:
    # U+212B NFC-normalizes to U+00C5, so these collide.
    with pytest.raises(CanonicalizationError, match="duplicate key"):
        canonical_bytes({"\u212b": 1, "\u00c5": 2})


def test_rejects_non_string_keys_and_unknown_types() -> None:
    with pytest.raises(CanonicalizationError, match="keys must be strings"):
        canonical_bytes({1: "x"})
    with pytest.raises(CanonicalizationError, match="not JSON-serializable"):
        canonical_bytes({"x": object()})
