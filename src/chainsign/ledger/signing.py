"""Ed25519-signed block receipts.

A receipt signature covers the canonical JSON of the receipt fields
(blockId, hash, previousHash, timestamp, imageHash), so a verifier needs
only the receipt and the public key, not the chain file.

cryptography is an optional dependency (``chainsign[crypto]``); everything
else in the package works without it.
"""

from __future__ import annotations

import base64
import binascii

from .jcs import canonical_bytes
from ..types import BlockReceipt

try:
    from cryptography.exceptions import InvalidSignature  # type: ignore[import-not-found]
    from cryptography.hazmat.primitives import serialization  # type: ignore[import-not-found]
    from cryptography.hazmat.primitives.asymmetric.ed25519 import (  # type: ignore[import-not-found]
        Ed25519PrivateKey,
        Ed25519PublicKey,
    )
except ModuleNotFoundError:
    CRYPTO_AVAILABLE = False
else:
    CRYPTO_AVAILABLE = True


def _require_crypto() -> None:
    if not CRYPTO_AVAILABLE:
        raise RuntimeError('cryptography is required for signed receipts (install "chainsign[crypto]")')


def receipt_message(receipt: BlockReceipt) -> bytes:
    """Bytes that a receipt signature is computed over."""
    return canonical_bytes(receipt.model_dump(by_alias=True))


def generate_keypair() -> tuple[bytes, bytes]:
    """Return (private PEM, public PEM) for a fresh Ed25519 key."""
    _require_crypto()
    private_key = Ed25519PrivateKey.generate()
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


def load_private_key(pem: bytes) -> "Ed25519PrivateKey":
    _require_crypto()
    key = serialization.load_pem_private_key(pem, password=None)
    if not isinstance(key, Ed25519PrivateKey):
        raise ValueError("receipts are signed with Ed25519 keys only")
    return key


def load_public_key(pem: bytes) -> "Ed25519PublicKey":
    _require_crypto()
    key = serialization.load_pem_public_key(pem)
    if not isinstance(key, Ed25519PublicKey):
        raise ValueError("receipts are signed with Ed25519 keys only")
    return key


def sign_receipt(private_key: "Ed25519PrivateKey", receipt: BlockReceipt) -> str:
    """Return the base64 signature for ``receipt``."""
    _require_crypto()
    return base64.b64encode(private_key.sign(receipt_message(receipt))).decode("ascii")


def verify_receipt(public_key: "Ed25519PublicKey", receipt: BlockReceipt, signature_b64: str) -> bool:
    _require_crypto()
    try:
        signature = base64.b64decode(signature_b64, validate=True)
    except (binascii.Error, ValueError):
        return False
    try:
        public_key.verify(signature, receipt_message(receipt))
    except InvalidSignature:
        return False
    return True
