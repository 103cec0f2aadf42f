"""Ledger facade for ChainSign detection records."""

from __future__ import annotations

import threading
import time
from collections import Counter
from typing import Any, Mapping, Sequence, TypeAlias
from uuid import uuid4

from .config import LedgerConfig
from .ledger import verify
from .ledger.hashing import image_fingerprint
from .ledger.mining import mine
from .ledger.store import LedgerStore
from .types import (
    Block,
    BlockCandidate,
    BlockPayload,
    BlockVerification,
    ChainListing,
    ChainStats,
    ChainStatus,
    DetectionResult,
    RecordMetadata,
)

DetectionInput: TypeAlias = DetectionResult | Mapping[str, Any]
MetadataInput: TypeAlias = RecordMetadata | Mapping[str, Any] | None


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_block_id(timestamp: int) -> str:
    return f"block-{timestamp}-{uuid4().hex[:9]}"


def build_payload(
    image_data: str | bytes,
    detection: DetectionInput,
    metadata: MetadataInput,
    *,
    model_version: str,
) -> BlockPayload:
    """Validate caller input into a block payload. The model tag is the ledger's, not the caller's."""
    detection_result = DetectionResult.model_validate(detection)
    if metadata is None:
        record_metadata = RecordMetadata(model_version=model_version)
    else:
        record_metadata = RecordMetadata.model_validate(metadata).model_copy(
            update={"model_version": model_version}
        )
    return BlockPayload(
        image_hash=image_fingerprint(image_data),
        detection_result=detection_result,
        metadata=record_metadata,
    )


def build_candidate(previous: Block, payload: BlockPayload) -> BlockCandidate:
    timestamp = _now_ms()
    return BlockCandidate(
        id=_new_block_id(timestamp),
        previous_hash=previous.hash,
        timestamp=timestamp,
        payload=payload,
        nonce=0,
    )


def mint_block(candidate: BlockCandidate, config: LedgerConfig) -> Block:
    """Run proof-of-work on ``candidate`` and return the finished block."""
    block_hash, nonce = mine(
        candidate,
        config.difficulty,
        max_attempts=config.max_mining_attempts,
        timeout=config.mining_timeout_seconds,
    )
    return Block(
        id=candidate.id,
        hash=block_hash,
        previous_hash=candidate.previous_hash,
        timestamp=candidate.timestamp,
        payload=candidate.payload,
        nonce=nonce,
    )


def verify_by_id(chain: Sequence[Block], block_id: str) -> BlockVerification:
    found = verify.find_by_id(chain, block_id)
    if found is None:
        return BlockVerification(valid=False)
    index, block = found
    return BlockVerification(valid=verify.verify_block(chain, index), block=block)


def listing_of(chain: Sequence[Block]) -> ChainListing:
    records = list(chain[1:])
    return ChainListing(chain=records, total_blocks=len(records), latest_block=chain[-1])


def stats_of(chain: Sequence[Block]) -> ChainStats:
    records = chain[1:]
    sign_types = Counter(block.payload.detection_result.sign_type for block in records)
    return ChainStats(
        total_records=len(records),
        last_record_at=records[-1].timestamp if records else None,
        sign_types=dict(sign_types),
    )


class ChainLedger:
    """Tamper-evident ledger of detection records.

    Construct one per process and hand it to request handlers::

        ledger = ChainLedger(LedgerConfig.from_env())
        block = ledger.add_record(image_data, {"signType": "STOP", "confidence": 0.94})
        ledger.verify_chain_integrity()
        ledger.close()

    ``add_record`` is serialized by a writer lock: read latest, mine, append
    and persist happen as one step, so two callers can never both link to
    the same predecessor. Readers work on snapshots and do not take the lock.
    """

    def __init__(
        self,
        config: LedgerConfig | None = None,
        *,
        store: LedgerStore | None = None,
    ) -> None:
        self.config = config if config is not None else LedgerConfig()
        self.store = (
            store
            if store is not None
            else LedgerStore(self.config.chain_path, model_version=self.config.model_version)
        )
        self._write_lock = threading.Lock()

    def add_record(
        self,
        image_data: str | bytes,
        detection: DetectionInput,
        metadata: MetadataInput = None,
    ) -> Block:
        """Mint a block for one detection and append it.

        Raises pydantic.ValidationError for bad input and MiningError when a
        configured mining bound is hit; in both cases nothing is appended.
        """
        payload = build_payload(
            image_data, detection, metadata, model_version=self.config.model_version
        )
        self.store.ensure_initialized()
        with self._write_lock:
            candidate = build_candidate(self.store.latest(), payload)
            block = mint_block(candidate, self.config)
            self.store.append(block)
        return block

    def get_chain(self) -> list[Block]:
        self.store.ensure_initialized()
        return self.store.snapshot()

    def get_latest_block(self) -> Block:
        self.store.ensure_initialized()
        return self.store.latest()

    def verify_chain_integrity(self) -> bool:
        return verify.verify_chain(self.get_chain())

    def verify_with_difficulty(self) -> bool:
        """Like verify_chain_integrity, but every non-genesis hash must also meet difficulty."""
        return verify.verify_chain_with_difficulty(self.get_chain(), self.config.difficulty)

    def verify_block_by_id(self, block_id: str) -> BlockVerification:
        return verify_by_id(self.get_chain(), block_id)

    def listing(self) -> ChainListing:
        return listing_of(self.get_chain())

    def chain_status(self) -> ChainStatus:
        chain = self.get_chain()
        return ChainStatus(valid=verify.verify_chain(chain), block_count=len(chain))

    def stats(self) -> ChainStats:
        return stats_of(self.get_chain())

    def close(self) -> None:
        """Flush the chain to disk if a data directory is configured."""
        with self._write_lock:
            self.store.flush()

    def __enter__(self) -> "ChainLedger":
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
