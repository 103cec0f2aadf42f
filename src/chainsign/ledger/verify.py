"""Chain verification.

Verification confirms that each stored hash is the digest of the stored
content and that each block links to its predecessor. Proof-of-work is an
admission check made at mining time and is not re-checked here; use
``verify_chain_with_difficulty`` for the stricter reading.
"""

from __future__ import annotations

from typing import Sequence

from .errors import LedgerVerificationError
from .hashing import ZERO_HASH, block_hash
from .mining import meets_difficulty
from ..types import Block


def check_block(chain: Sequence[Block], index: int) -> None:
    """Raise LedgerVerificationError if the block at ``index`` fails to verify.

    Genesis (index 0) is trusted as-is.
    """
    if index < 0 or index >= len(chain):
        raise LedgerVerificationError(f"no block at index {index}")
    if index == 0:
        return

    block = chain[index]
    if block.previous_hash != chain[index - 1].hash:
        raise LedgerVerificationError(f"previousHash mismatch at block {index}")
    if block_hash(block) != block.hash:
        raise LedgerVerificationError(f"hash mismatch at block {index}")


def check_chain(chain: Sequence[Block], *, difficulty: int | None = None) -> None:
    """Raise on the first block that fails to verify.

    With ``difficulty`` set, non-genesis hashes must also meet it.
    """
    for index in range(1, len(chain)):
        check_block(chain, index)
        if difficulty is not None and not meets_difficulty(chain[index].hash, difficulty):
            raise LedgerVerificationError(f"hash below difficulty {difficulty} at block {index}")


def check_genesis(chain: Sequence[Block]) -> None:
    """Raise unless the first block has the self-referential zero hash."""
    if not chain:
        raise LedgerVerificationError("chain is empty")
    genesis = chain[0]
    if genesis.hash != ZERO_HASH or genesis.previous_hash != ZERO_HASH:
        raise LedgerVerificationError("genesis block does not carry the zero hash")


def verify_block(chain: Sequence[Block], index: int) -> bool:
    try:
        check_block(chain, index)
    except LedgerVerificationError:
        return False
    return True


def verify_chain(chain: Sequence[Block]) -> bool:
    """True if every block links and hashes correctly. Empty chains are valid."""
    try:
        check_chain(chain)
    except LedgerVerificationError:
        return False
    return True


def verify_chain_with_difficulty(chain: Sequence[Block], difficulty: int) -> bool:
    try:
        check_chain(chain, difficulty=difficulty)
    except LedgerVerificationError:
        return False
    return True


def find_by_id(chain: Sequence[Block], block_id: str) -> tuple[int, Block] | None:
    for index, block in enumerate(chain):
        if block.id == block_id:
            return index, block
    return None
