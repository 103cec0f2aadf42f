"""ChainSign public API."""

from .async_engine import AsyncChainLedger
from .config import LedgerConfig
from .engine import ChainLedger
from .ledger import (
    EmptyChainError,
    LedgerError,
    LedgerLoadError,
    LedgerVerificationError,
    LedgerWriteError,
    MiningAttemptsExceeded,
    MiningError,
    MiningTimeout,
    ZERO_HASH,
)
from .types import (
    Block,
    BlockReceipt,
    BlockVerification,
    BoundingBox,
    ChainListing,
    ChainStats,
    ChainStatus,
    DetectionResult,
    RecordMetadata,
)

__version__ = "0.1.0"

__all__ = (
    # Ledgers
    "ChainLedger",
    "AsyncChainLedger",
    "LedgerConfig",
    # Types
    "Block",
    "BlockReceipt",
    "BlockVerification",
    "BoundingBox",
    "DetectionResult",
    "RecordMetadata",
    "ChainListing",
    "ChainStatus",
    "ChainStats",
    "ZERO_HASH",
    # Errors
    "LedgerError",
    "LedgerLoadError",
    "LedgerWriteError",
    "LedgerVerificationError",
    "EmptyChainError",
    "MiningError",
    "MiningAttemptsExceeded",
    "MiningTimeout",
)
