from __future__ import annotations


class LedgerError(RuntimeError):
    """Base class for ledger errors."""


class LedgerLoadError(LedgerError):
    """Raised when persisted chain state exists but cannot be read or parsed."""


class LedgerWriteError(LedgerError):
    """Raised when the chain cannot be written to durable storage."""


class LedgerVerificationError(LedgerError):
    """Raised when chain verification fails."""


class EmptyChainError(LedgerError):
    """Raised when the chain is read before it has been initialized."""


class MiningError(LedgerError):
    """Raised when proof-of-work gives up before finding an admissible nonce.

    The candidate block is discarded; calling again with the same record is safe.
    """

    retryable = True


class MiningAttemptsExceeded(MiningError):
    """Raised when the nonce search hits the configured attempt cap."""


class MiningTimeout(MiningError):
    """Raised when the nonce search runs past the configured wall-clock limit."""


def sanitize_exception(exc: BaseException) -> str:
    """Return a safe error message without filesystem paths."""
    if isinstance(exc, OSError):
        parts: list[str] = [exc.__class__.__name__]
        if exc.errno is not None:
            parts.append(f"errno={exc.errno}")
        if exc.strerror:
            parts.append(exc.strerror)
        return " ".join(parts).strip()
    return str(exc)
