"""Async ledger facade.

Key properties:
- Read-latest, mine and append run as one worker-thread call under a
  threading.Lock, so an append is never split across the event loop
- The event loop keeps serving readers while a block is being mined
- Cancelling a caller never releases the lock early: the worker finishes
  its append before the next one reads the chain head
- Initialization runs once even when the first callers arrive concurrently
"""

from __future__ import annotations

import asyncio
import logging
import threading

from .config import LedgerConfig
from .engine import (
    DetectionInput,
    MetadataInput,
    build_candidate,
    build_payload,
    listing_of,
    mint_block,
    stats_of,
    verify_by_id,
)
from .ledger import verify
from .ledger.store import LedgerStore
from .types import Block, BlockPayload, BlockVerification, ChainListing, ChainStats, ChainStatus

_logger = logging.getLogger(__name__)


class AsyncChainLedger:
    """Coroutine counterpart of ChainLedger sharing the same store semantics."""

    __slots__ = ("config", "store", "_append_lock", "_init_lock")

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
        self._append_lock = threading.Lock()
        # Created lazily so the ledger can be built outside a running loop.
        self._init_lock: asyncio.Lock | None = None

    async def _ensure_initialized(self) -> None:
        if self.store.initialized:
            return
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        async with self._init_lock:
            if self.store.initialized:
                return
            await asyncio.to_thread(self.store.ensure_initialized)

    def _mint_and_append(self, payload: BlockPayload) -> Block:
        with self._append_lock:
            candidate = build_candidate(self.store.latest(), payload)
            block = mint_block(candidate, self.config)
            self.store.append(block)
        _logger.debug("appended block %s", block.id)
        return block

    def _flush(self) -> bool:
        with self._append_lock:
            return self.store.flush()

    async def add_record(
        self,
        image_data: str | bytes,
        detection: DetectionInput,
        metadata: MetadataInput = None,
    ) -> Block:
        """Mint and append a block without blocking the event loop.

        If the caller is cancelled the worker still runs to completion: the
        block is appended (or mining fails) and only the result is dropped.
        """
        payload = build_payload(
            image_data, detection, metadata, model_version=self.config.model_version
        )
        await self._ensure_initialized()
        return await asyncio.to_thread(self._mint_and_append, payload)

    async def get_chain(self) -> list[Block]:
        await self._ensure_initialized()
        return self.store.snapshot()

    async def get_latest_block(self) -> Block:
        await self._ensure_initialized()
        return self.store.latest()

    async def verify_chain_integrity(self) -> bool:
        return verify.verify_chain(await self.get_chain())

    async def verify_with_difficulty(self) -> bool:
        return verify.verify_chain_with_difficulty(await self.get_chain(), self.config.difficulty)

    async def verify_block_by_id(self, block_id: str) -> BlockVerification:
        return verify_by_id(await self.get_chain(), block_id)

    async def listing(self) -> ChainListing:
        return listing_of(await self.get_chain())

    async def chain_status(self) -> ChainStatus:
        chain = await self.get_chain()
        return ChainStatus(valid=verify.verify_chain(chain), block_count=len(chain))

    async def stats(self) -> ChainStats:
        return stats_of(await self.get_chain())

    async def close(self) -> None:
        await asyncio.to_thread(self._flush)
