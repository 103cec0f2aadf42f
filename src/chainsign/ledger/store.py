"""In-memory chain with an optional durable mirror."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

from .errors import EmptyChainError, LedgerLoadError, LedgerWriteError
from .hashing import ZERO_HASH
from .jsonfile import JSONChainFile
from ..types import Block, BlockPayload, DetectionResult, RecordMetadata

GENESIS_ID = "genesis"

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def create_genesis_block(*, model_version: str, timestamp: int | None = None) -> Block:
    """Build the self-referential first block. It is exempt from proof-of-work."""
    return Block(
        id=GENESIS_ID,
        hash=ZERO_HASH,
        previous_hash=ZERO_HASH,
        timestamp=_now_ms() if timestamp is None else timestamp,
        payload=BlockPayload(
            image_hash="genesis",
            detection_result=DetectionResult(
                sign_type="GENESIS",
                confidence=1,
                description="Genesis block - ChainSign AI initialized",
            ),
            metadata=RecordMetadata(model_version=model_version),
        ),
        nonce=0,
    )


class LedgerStore:
    """Owns the authoritative block sequence.

    - ``ensure_initialized`` runs once: load the chain file, or synthesize
      genesis if there is none or it is unreadable
    - ``append`` keeps the in-memory block even when the write fails
    - with no ``path`` the store is memory-only for the process lifetime

    Appends are not serialized here; the owning ledger holds the writer lock.
    """

    def __init__(self, path: Path | None = None, *, model_version: str) -> None:
        self._file = JSONChainFile(path) if path is not None else None
        self._model_version = model_version
        self._chain: list[Block] = []
        self._initialized = False
        self._init_lock = threading.Lock()
        self.recovered_from_corruption = False
        self.write_error_count = 0
        self.last_write_error: LedgerWriteError | None = None

    @property
    def durable(self) -> bool:
        return self._file is not None

    @property
    def path(self) -> Path | None:
        return self._file.path if self._file is not None else None

    @property
    def initialized(self) -> bool:
        return self._initialized

    def ensure_initialized(self) -> None:
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            self._chain = self._load_or_bootstrap()
            self._initialized = True

    def _load_or_bootstrap(self) -> list[Block]:
        if self._file is None:
            _logger.info("no data directory configured; ledger is memory-only and will not survive restart")
            return [create_genesis_block(model_version=self._model_version)]

        try:
            loaded = self._file.load()
        except LedgerLoadError as exc:
            self.recovered_from_corruption = True
            _logger.error(
                "ledger state unreadable; resetting to genesis and discarding persisted history: %s",
                exc,
            )
            loaded = None
        else:
            if loaded is not None:
                _logger.info("loaded %d blocks from chain file", len(loaded))
                return loaded

        chain = [create_genesis_block(model_version=self._model_version)]
        _logger.info("synthesized genesis block")
        self._persist(chain)
        return chain

    def append(self, block: Block) -> None:
        """Add ``block`` and rewrite the chain file.

        A failed write is logged and counted. The block stays in memory, so the
        durable copy lags until the next successful write.
        """
        if not self._initialized:
            raise EmptyChainError("ledger store is not initialized")
        self._chain.append(block)
        self._persist(self._chain)

    def flush(self) -> bool:
        """Rewrite the chain file now. Returns False if the write failed."""
        if not self._initialized or self._file is None:
            return True
        return self._persist(self._chain)

    def _persist(self, chain: list[Block]) -> bool:
        if self._file is None:
            return True
        try:
            self._file.save(chain)
        except LedgerWriteError as exc:
            self.write_error_count += 1
            self.last_write_error = exc
            _logger.warning("failed to persist chain (%d blocks in memory): %s", len(chain), exc)
            return False
        return True

    def snapshot(self) -> list[Block]:
        """Copy of the current chain; later appends do not show through it."""
        return list(self._chain)

    def latest(self) -> Block:
        if not self._chain:
            raise EmptyChainError("chain has no blocks; call ensure_initialized first")
        return self._chain[-1]

    def __len__(self) -> int:
        return len(self._chain)
