from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from chainsign.config import LedgerConfig


def test_defaults_are_memory_only() -> None:
    config = LedgerConfig()
    assert config.data_dir is None
    assert config.chain_path is None
    assert config.difficulty == 2
    assert config.model_version == "1.0.0"
    assert config.max_mining_attempts is None
    assert config.mining_timeout_seconds is None


def test_chain_path_joins_data_dir(tmp_path: Path) -> None:
    assert LedgerConfig(data_dir=tmp_path).chain_path == tmp_path / "blockchain-data.json"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"difficulty": -1},
        {"difficulty": 65},
        {"max_mining_attempts": 0},
        {"mining_timeout_seconds": 0},
        {"chain_filename": "../escape.json"},
        {"chain_filename": ""},
    ],
)
def test_invalid_settings_are_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        LedgerConfig(**kwargs)


def test_config_is_frozen() -> None:
    config = LedgerConfig()
    with pytest.raises(ValidationError):
        config.difficulty = 3  # type: ignore[misc]


def test_from_env_reads_chainsign_variables() -> None:
    config = LedgerConfig.from_env(
        {
            "CHAINSIGN_DATA_DIR": "/srv/chainsign",
            "CHAINSIGN_DIFFICULTY": "3",
            "CHAINSIGN_MAX_MINING_ATTEMPTS": "500000",
            "CHAINSIGN_MINING_TIMEOUT": "2.5",
        }
    )
    assert config.data_dir == Path("/srv/chainsign")
    assert config.difficulty == 3
    assert config.max_mining_attempts == 500_000
    assert config.mining_timeout_seconds == 2.5


def test_from_env_falls_back_to_data_dir() -> None:
    assert LedgerConfig.from_env({"DATA_DIR": "/data"}).data_dir == Path("/data")
    assert LedgerConfig.from_env(
        {"DATA_DIR": "/data", "CHAINSIGN_DATA_DIR": "/preferred"}
    ).data_dir == Path("/preferred")


def test_from_env_blank_data_dir_is_memory_only() -> None:
    assert LedgerConfig.from_env({"CHAINSIGN_DATA_DIR": "   "}).data_dir is None
    assert LedgerConfig.from_env({}).chain_path is None


def test_from_env_uses_process_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CHAINSIGN_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CHAINSIGN_DIFFICULTY", "1")
    config = LedgerConfig.from_env()
    assert config.data_dir == tmp_path
    assert config.difficulty == 1


def test_from_env_rejects_bad_numbers() -> None:
    with pytest.raises(ValidationError):
        LedgerConfig.from_env({"CHAINSIGN_DIFFICULTY": "hard"})
