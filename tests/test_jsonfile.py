from __future__ import annotations

import json
from pathlib import Path

import pytest

from chainsign.ledger.errors import LedgerLoadError, LedgerWriteError
from chainsign.ledger.filelock import lock_path_for
from chainsign.ledger.jsonfile import JSONChainFile, parse_chain

from helpers import build_chain, write_chain


def test_missing_file_loads_as_none_without_side_effects(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "blockchain-data.json"
    assert JSONChainFile(path).load() is None
    assert not path.parent.exists()


def test_save_then_load_keeps_every_field(tmp_path: Path) -> None:
    path = tmp_path / "blockchain-data.json"
    chain = build_chain(2)
    JSONChainFile(path).save(chain)

    assert JSONChainFile(path).load() == chain


def test_saved_file_is_a_pretty_printed_camel_case_array(tmp_path: Path) -> None:
    path = tmp_path / "data" / "blockchain-data.json"
    JSONChainFile(path).save(build_chain(1))

    text = path.read_text(encoding="utf-8")
    assert text.startswith("[\n  {")
    records = json.loads(text)
    assert [record["id"] for record in records] == ["genesis", records[1]["id"]]
    assert set(records[1]) == {"id", "previousHash", "timestamp", "data", "hash", "nonce"}
    assert records[1]["data"]["detectionResult"]["signType"] == "STOP"
    assert "deviceId" not in records[1]["data"]["metadata"]


def test_save_leaves_no_temp_files(tmp_path: Path) -> None:
    path = tmp_path / "blockchain-data.json"
    store = JSONChainFile(path)
    store.save(build_chain(1))
    store.save(build_chain(2))

    names = sorted(entry.name for entry in tmp_path.iterdir())
    assert names == sorted([path.name, lock_path_for(path).name])


def test_save_into_unwritable_location_raises_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(LedgerWriteError) as excinfo:
        JSONChainFile(blocker / "blockchain-data.json").save(build_chain(0))
    assert str(tmp_path) not in str(excinfo.value)


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("{not json", "Expecting"),
        ('{"id": "genesis"}', "not a JSON array"),
        ("[]", "holds no blocks"),
        ('[{"id": "genesis"}]', "invalid block record at index 0"),
    ],
)
def test_unusable_file_raises_load_error(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "blockchain-data.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(LedgerLoadError, match=message):
        JSONChainFile(path).load()


def test_parse_chain_reports_the_bad_position(tmp_path: Path) -> None:
    records = [block.to_record() for block in build_chain(2)]
    records[2]["hash"] = "not-a-digest"

    with pytest.raises(LedgerLoadError, match="index 2"):
        parse_chain(records)


def test_load_accepts_externally_written_chain(tmp_path: Path) -> None:
    path = tmp_path / "blockchain-data.json"
    chain = build_chain(3)
    write_chain(path, chain)

    loaded = JSONChainFile(path).load()
    assert loaded is not None
    assert [block.hash for block in loaded] == [block.hash for block in chain]


def test_load_never_creates_the_lock_sidecar(tmp_path: Path) -> None:
    path = tmp_path / "blockchain-data.json"
    chain = build_chain(1)
    write_chain(path, chain)

    assert JSONChainFile(path).load() == chain
    assert not lock_path_for(path).exists()
    assert sorted(entry.name for entry in tmp_path.iterdir()) == [path.name]


def test_load_takes_existing_sidecar_lock(tmp_path: Path) -> None:
    path = tmp_path / "blockchain-data.json"
    chain = build_chain(1)
    JSONChainFile(path).save(chain)
    lock_path_for(path).chmod(0o444)

    assert JSONChainFile(path).load() == chain
