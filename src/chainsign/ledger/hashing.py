"""Block content hashing and image fingerprints."""

from __future__ import annotations

import hashlib
from typing import Any

from .jcs import sha256_hex
from ..types import BlockCandidate

ZERO_HASH = "0" * 64

# Fingerprint a bounded prefix only; enough to catch a swapped image.
IMAGE_FINGERPRINT_PREFIX = 1000

_HASHED_FIELDS = {"previous_hash", "timestamp", "payload", "nonce"}


def digest(data: bytes) -> str:
    """Return the SHA-256 digest of ``data`` as 64 lowercase hex characters."""
    return hashlib.sha256(data).hexdigest()


def hashable_content(block: BlockCandidate) -> dict[str, Any]:
    """Return the hashed view of a block: previousHash, timestamp, data, nonce.

    ``id`` and ``hash`` never take part. Unset optional payload fields are
    omitted rather than written as null.
    """
    return block.model_dump(
        mode="python",
        by_alias=True,
        exclude_none=True,
        include=_HASHED_FIELDS,
    )


def content_hash(content: dict[str, Any]) -> str:
    return sha256_hex(content)


def block_hash(block: BlockCandidate) -> str:
    """Recompute the hash a block should carry given its stored content."""
    return content_hash(hashable_content(block))


def image_fingerprint(raw_image: str | bytes, *, prefix: int = IMAGE_FINGERPRINT_PREFIX) -> str:
    """Digest the first ``prefix`` characters (or bytes) of an image payload.

    String input is typically a base64 data URL and is sliced before encoding.
    """
    if isinstance(raw_image, str):
        head = raw_image[:prefix].encode("utf-8")
    elif isinstance(raw_image, (bytes, bytearray, memoryview)):
        head = bytes(raw_image[:prefix])
    else:
        raise TypeError("raw_image must be str or bytes")
    return digest(head)
