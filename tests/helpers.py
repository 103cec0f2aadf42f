"""Shared test data and chain builders."""

from __future__ import annotations

import json
from pathlib import Path

from chainsign.ledger.mining import mine
from chainsign.ledger.store import create_genesis_block
from chainsign.types import Block, BlockCandidate, BlockPayload, DetectionResult, RecordMetadata

STOP_DETECTION = {
    "signType": "STOP",
    "confidence": 0.94,
    "description": "Red octagonal stop sign requiring vehicles to come to a complete stop",
}

YIELD_DETECTION = {
    "signType": "YIELD",
    "confidence": 0.91,
    "description": "Yellow triangular yield sign",
    "boundingBox": {"x": 100, "y": 90, "width": 220, "height": 190},
}

IMAGE_DATA = "data:image/png;base64," + "iVBORw0KGgoAAAANSUhEUgAA" * 100


def make_candidate(
    *,
    previous_hash: str = "0" * 64,
    block_id: str = "block-1700000000000-abc123def",
    timestamp: int = 1_700_000_000_000,
    sign_type: str = "STOP",
    nonce: int = 0,
) -> BlockCandidate:
    return BlockCandidate(
        id=block_id,
        previous_hash=previous_hash,
        timestamp=timestamp,
        payload=BlockPayload(
            image_hash="f" * 64,
            detection_result=DetectionResult(sign_type=sign_type, confidence=0.94, description="test sign"),
            metadata=RecordMetadata(location="lab"),
        ),
        nonce=nonce,
    )


def build_chain(records: int, *, difficulty: int = 1) -> list[Block]:
    """Genesis followed by ``records`` mined STOP/YIELD blocks."""
    chain = [create_genesis_block(model_version="1.0.0", timestamp=1_699_999_999_000)]
    for position in range(1, records + 1):
        candidate = make_candidate(
            previous_hash=chain[-1].hash,
            block_id=f"block-{1_700_000_000_000 + position}-{position:09d}",
            timestamp=1_700_000_000_000 + position,
            sign_type="STOP" if position % 2 else "YIELD",
        )
        block_hash, nonce = mine(candidate, difficulty)
        chain.append(
            Block(
                id=candidate.id,
                hash=block_hash,
                previous_hash=candidate.previous_hash,
                timestamp=candidate.timestamp,
                payload=candidate.payload,
                nonce=nonce,
            )
        )
    return chain


def write_chain(path: Path, chain: list[Block]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([block.to_record() for block in chain], indent=2), encoding="utf-8")
