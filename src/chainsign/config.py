"""Ledger configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ledger.jsonfile import CHAIN_FILENAME
from .ledger.mining import MAX_DIFFICULTY
from .types import DEFAULT_MODEL_VERSION

DEFAULT_DIFFICULTY = 2

ENV_DATA_DIR = "CHAINSIGN_DATA_DIR"
ENV_LEGACY_DATA_DIR = "DATA_DIR"
ENV_DIFFICULTY = "CHAINSIGN_DIFFICULTY"
ENV_MAX_MINING_ATTEMPTS = "CHAINSIGN_MAX_MINING_ATTEMPTS"
ENV_MINING_TIMEOUT = "CHAINSIGN_MINING_TIMEOUT"


class LedgerConfig(BaseModel):
    """Settings fixed for the lifetime of one ledger.

    ``data_dir`` of None runs the ledger in memory only; history is lost when
    the process exits.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    data_dir: Path | None = None
    chain_filename: str = CHAIN_FILENAME
    difficulty: int = Field(default=DEFAULT_DIFFICULTY, ge=0, le=MAX_DIFFICULTY)
    model_version: str = DEFAULT_MODEL_VERSION
    max_mining_attempts: int | None = Field(default=None, gt=0)
    mining_timeout_seconds: float | None = Field(default=None, gt=0)

    @field_validator("chain_filename")
    @classmethod
    def _filename_is_bare(cls, value: str) -> str:
        if not value or Path(value).name != value:
            raise ValueError("chain_filename must be a bare file name")
        return value

    @property
    def chain_path(self) -> Path | None:
        if self.data_dir is None:
            return None
        return self.data_dir / self.chain_filename

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LedgerConfig":
        """Build a config from CHAINSIGN_* variables (DATA_DIR is honoured too)."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        data_dir = env.get(ENV_DATA_DIR) or env.get(ENV_LEGACY_DATA_DIR)
        if data_dir and data_dir.strip():
            values["data_dir"] = Path(data_dir.strip())
        if env.get(ENV_DIFFICULTY):
            values["difficulty"] = env[ENV_DIFFICULTY]
        if env.get(ENV_MAX_MINING_ATTEMPTS):
            values["max_mining_attempts"] = env[ENV_MAX_MINING_ATTEMPTS]
        if env.get(ENV_MINING_TIMEOUT):
            values["mining_timeout_seconds"] = env[ENV_MINING_TIMEOUT]
        return cls.model_validate(values)
