"""Ledger core: hashing, proof-of-work, verification and persistence."""

from .errors import (
    EmptyChainError,
    LedgerError,
    LedgerLoadError,
    LedgerVerificationError,
    LedgerWriteError,
    MiningAttemptsExceeded,
    MiningError,
    MiningTimeout,
)
from .hashing import ZERO_HASH, block_hash, digest, hashable_content, image_fingerprint
from .jsonfile import JSONChainFile
from .mining import meets_difficulty, mine
from .store import GENESIS_ID, LedgerStore, create_genesis_block
from .verify import find_by_id, verify_block, verify_chain, verify_chain_with_difficulty

__all__ = (
    "ZERO_HASH",
    "GENESIS_ID",
    "LedgerStore",
    "JSONChainFile",
    "create_genesis_block",
    "block_hash",
    "digest",
    "hashable_content",
    "image_fingerprint",
    "mine",
    "meets_difficulty",
    "verify_block",
    "verify_chain",
    "verify_chain_with_difficulty",
    "find_by_id",
    "LedgerError",
    "LedgerLoadError",
    "LedgerWriteError",
    "LedgerVerificationError",
    "EmptyChainError",
    "MiningError",
    "MiningAttemptsExceeded",
    "MiningTimeout",
)
