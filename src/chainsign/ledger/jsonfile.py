"""Whole-chain JSON file persistence.

The chain is stored as a single JSON array of block records and rewritten in
full on every save. Writes go to a temp file in the same directory and are
moved into place with ``os.replace`` so readers never see a half-written file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence
from uuid import uuid4

from pydantic import ValidationError

from .errors import LedgerLoadError, LedgerWriteError, sanitize_exception
from .filelock import exclusive_lock, shared_lock
from ..types import Block

CHAIN_FILENAME = "blockchain-data.json"


@dataclass(frozen=True)
class JSONChainFile:
    path: Path

    def load(self) -> list[Block] | None:
        """Return the persisted chain, or None if nothing has been written yet.

        Raises LedgerLoadError when the file exists but cannot be used. Loading
        never creates files, so a chain on a read-only mount can be inspected.
        """
        try:
            with shared_lock(self.path):
                with self.path.open("r", encoding="utf-8") as handle:
                    raw = json.load(handle)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise LedgerLoadError(sanitize_exception(exc)) from exc
        return parse_chain(raw)

    def save(self, chain: Sequence[Block]) -> None:
        """Replace the persisted chain with ``chain``."""
        text = json.dumps([block.to_record() for block in chain], indent=2, ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with exclusive_lock(self.path):
                tmp_path = self.path.with_name(f".{self.path.name}.{uuid4().hex}.tmp")
                try:
                    with tmp_path.open("w", encoding="utf-8", newline="") as handle:
                        handle.write(text + "\n")
                        handle.flush()
                        os.fsync(handle.fileno())
                    os.replace(tmp_path, self.path)
                finally:
                    tmp_path.unlink(missing_ok=True)
        except OSError as exc:
            raise LedgerWriteError(sanitize_exception(exc)) from exc


def parse_chain(raw: Any) -> list[Block]:
    if not isinstance(raw, list):
        raise LedgerLoadError("chain file is not a JSON array")
    if not raw:
        raise LedgerLoadError("chain file holds no blocks")
    chain: list[Block] = []
    for position, record in enumerate(raw):
        try:
            chain.append(Block.model_validate(record))
        except ValidationError as exc:
            raise LedgerLoadError(
                f"invalid block record at index {position}: {exc.error_count()} error(s)"
            ) from exc
    return chain
