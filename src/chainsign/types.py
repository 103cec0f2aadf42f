"""Typed models for ChainSign ledger records."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_MODEL_VERSION = "1.0.0"

_HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")

# Persisted and hashed JSON uses camelCase keys (blockchain-data.json layout).
_RECORD_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
    protected_namespaces=(),
    allow_inf_nan=False,
)


class BoundingBox(BaseModel):
    """Approximate location of the detected sign in the image."""

    model_config = _RECORD_CONFIG

    x: float
    y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)


class DetectionResult(BaseModel):
    """Inference output stored in a block.

    Extra inference fields (color, shape, text) are accepted and dropped.
    """

    model_config = _RECORD_CONFIG

    sign_type: str
    confidence: float = Field(ge=0, le=1)
    description: str = ""
    bounding_box: BoundingBox | None = None

    @field_validator("sign_type")
    @classmethod
    def _sign_type_non_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("sign_type must be a non-empty string")
        return value


class RecordMetadata(BaseModel):
    """Where a detection came from and which model produced it."""

    model_config = _RECORD_CONFIG

    location: str | None = None
    device_id: str | None = None
    model_version: str = DEFAULT_MODEL_VERSION


class BlockPayload(BaseModel):
    """Application record carried by a block (``data`` on the wire)."""

    model_config = _RECORD_CONFIG

    image_hash: str
    detection_result: DetectionResult
    metadata: RecordMetadata = Field(default_factory=RecordMetadata)


class BlockCandidate(BaseModel):
    """A block before proof-of-work has assigned its hash."""

    model_config = _RECORD_CONFIG

    id: str
    previous_hash: str
    timestamp: int = Field(ge=0)
    payload: BlockPayload = Field(alias="data")
    nonce: int = Field(default=0, ge=0)

    @field_validator("previous_hash")
    @classmethod
    def _previous_hash_is_digest(cls, value: str) -> str:
        if not _HEX_DIGEST.match(value):
            raise ValueError("previous_hash must be 64 lowercase hex characters")
        return value


class Block(BlockCandidate):
    """One immutable ledger entry."""

    hash: str

    @field_validator("hash")
    @classmethod
    def _hash_is_digest(cls, value: str) -> str:
        if not _HEX_DIGEST.match(value):
            raise ValueError("hash must be 64 lowercase hex characters")
        return value

    def to_record(self) -> dict[str, Any]:
        """Render the block as it is persisted (camelCase keys, no null fields)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def receipt(self) -> "BlockReceipt":
        return BlockReceipt(
            block_id=self.id,
            hash=self.hash,
            previous_hash=self.previous_hash,
            timestamp=self.timestamp,
            image_hash=self.payload.image_hash,
        )


class BlockReceipt(BaseModel):
    """What the ingest side shows once a detection has been minted."""

    model_config = _RECORD_CONFIG

    block_id: str
    hash: str
    previous_hash: str
    timestamp: int
    image_hash: str


class BlockVerification(BaseModel):
    """Result of verifying a single block looked up by id."""

    model_config = _RECORD_CONFIG

    valid: bool
    block: Block | None = None


class ChainListing(BaseModel):
    """User-facing view of the chain; genesis is left out."""

    model_config = _RECORD_CONFIG

    chain: list[Block]
    total_blocks: int
    latest_block: Block


class ChainStatus(BaseModel):
    model_config = _RECORD_CONFIG

    valid: bool
    block_count: int


class ChainStats(BaseModel):
    model_config = _RECORD_CONFIG

    total_records: int
    last_record_at: int | None = None
    sign_types: dict[str, int] = Field(default_factory=dict)
