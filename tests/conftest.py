from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from chainsign.config import (
    ENV_DATA_DIR,
    ENV_DIFFICULTY,
    ENV_LEGACY_DATA_DIR,
    ENV_MAX_MINING_ATTEMPTS,
    ENV_MINING_TIMEOUT,
    LedgerConfig,
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep ledger settings from the developer's shell out of the tests."""
    for name in (
        ENV_DATA_DIR,
        ENV_LEGACY_DATA_DIR,
        ENV_DIFFICULTY,
        ENV_MAX_MINING_ATTEMPTS,
        ENV_MINING_TIMEOUT,
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def durable_config(data_dir: Path) -> LedgerConfig:
    return LedgerConfig(data_dir=data_dir)


@pytest.fixture
def chain_path(durable_config: LedgerConfig) -> Path:
    path = durable_config.chain_path
    assert path is not None
    return path
