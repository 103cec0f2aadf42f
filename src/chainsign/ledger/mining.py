"""Proof-of-work nonce search."""

from __future__ import annotations

import logging
import time
from typing import Callable

from .errors import MiningAttemptsExceeded, MiningTimeout
from .hashing import content_hash, hashable_content
from ..types import BlockCandidate

MAX_DIFFICULTY = 64

# How many attempts between wall-clock checks when a timeout is set.
_CLOCK_CHECK_INTERVAL = 1024

_logger = logging.getLogger(__name__)


def meets_difficulty(block_hash: str, difficulty: int) -> bool:
    """True if the hash starts with ``difficulty`` zero hex digits."""
    return block_hash.startswith("0" * difficulty)


def validate_difficulty(difficulty: int) -> int:
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise TypeError("difficulty must be an integer")
    if not 0 <= difficulty <= MAX_DIFFICULTY:
        raise ValueError(f"difficulty must be between 0 and {MAX_DIFFICULTY}")
    return difficulty


def mine(
    candidate: BlockCandidate,
    difficulty: int,
    *,
    max_attempts: int | None = None,
    timeout: float | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> tuple[str, int]:
    """Search nonces upward from 1 until the content hash meets ``difficulty``.

    Returns ``(hash, nonce)``. The candidate itself is not modified; the caller
    builds the final block from the returned values.

    Raises MiningAttemptsExceeded / MiningTimeout when a bound is set and hit.
    """
    validate_difficulty(difficulty)
    if max_attempts is not None and max_attempts <= 0:
        raise ValueError("max_attempts must be positive when provided")
    if timeout is not None and timeout <= 0:
        raise ValueError("timeout must be positive when provided")

    target = "0" * difficulty
    content = hashable_content(candidate)
    deadline = clock() + timeout if timeout is not None else None

    nonce = 0
    while True:
        nonce += 1
        if max_attempts is not None and nonce > max_attempts:
            raise MiningAttemptsExceeded(
                f"no admissible nonce within {max_attempts} attempts at difficulty {difficulty}"
            )
        if deadline is not None and nonce % _CLOCK_CHECK_INTERVAL == 0 and clock() > deadline:
            raise MiningTimeout(
                f"no admissible nonce within {timeout}s ({nonce - 1} attempts) at difficulty {difficulty}"
            )
        content["nonce"] = nonce
        candidate_hash = content_hash(content)
        if candidate_hash.startswith(target):
            _logger.debug("mined block %s after %d attempts", candidate.id, nonce)
            return candidate_hash, nonce
