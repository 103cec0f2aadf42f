"""Command-line interface for inspecting a persisted ChainSign chain."""

from __future__ import annotations

import argparse
import csv
import json
import os
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence, TextIO

from rich.console import Console
from rich.table import Table

from chainsign.ledger.errors import LedgerLoadError, LedgerVerificationError
from chainsign.ledger.jsonfile import JSONChainFile
from chainsign.ledger.mining import MAX_DIFFICULTY
from chainsign.ledger.signing import generate_keypair, load_private_key, sign_receipt
from chainsign.ledger.verify import check_chain, check_genesis, find_by_id, verify_block
from chainsign.types import Block

CSV_FIELDS = (
    "index",
    "id",
    "timestamp",
    "hash",
    "previousHash",
    "nonce",
    "imageHash",
    "signType",
    "confidence",
    "description",
    "location",
    "deviceId",
    "modelVersion",
)


def _format_timestamp(value: int) -> str:
    moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _load_chain(path: Path) -> list[Block]:
    chain = JSONChainFile(path).load()
    if chain is None:
        raise FileNotFoundError("chain file not found")
    return chain


def _flatten_block(index: int, block: Block) -> dict[str, str]:
    detection = block.payload.detection_result
    metadata = block.payload.metadata
    return {
        "index": str(index),
        "id": block.id,
        "timestamp": str(block.timestamp),
        "hash": block.hash,
        "previousHash": block.previous_hash,
        "nonce": str(block.nonce),
        "imageHash": block.payload.image_hash,
        "signType": detection.sign_type,
        "confidence": repr(detection.confidence),
        "description": detection.description,
        "location": metadata.location or "",
        "deviceId": metadata.device_id or "",
        "modelVersion": metadata.model_version,
    }


@contextmanager
def _open_output(output_path: Path | None) -> Iterator[TextIO]:
    if output_path is None:
        yield sys.stdout
        return
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        yield handle


def _write_blocks(chain: Sequence[Block], output_format: str, output: TextIO) -> None:
    records = (block.to_record() for block in chain)
    if output_format == "json":
        json.dump(list(records), output, ensure_ascii=False)
        output.write("\n")
    elif output_format == "ndjson":
        output.writelines(
            json.dumps(record, ensure_ascii=False, separators=(",", ":")) + "\n" for record in records
        )
    elif output_format == "csv":
        writer = csv.DictWriter(output, fieldnames=CSV_FIELDS, lineterminator="\n")
        writer.writeheader()
        writer.writerows(_flatten_block(index, block) for index, block in enumerate(chain))
    else:
        raise ValueError(f"unknown format: {output_format}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="chainsign", add_help=True)
    subparsers = parser.add_subparsers(dest="command", required=True)

    verify_parser = subparsers.add_parser("verify", help="Verify a chain file")
    verify_parser.add_argument("chain_path", type=Path, help="Path to blockchain-data.json")
    verify_parser.add_argument("--json", action="store_true", help="Output JSON")
    verify_parser.add_argument(
        "--strict",
        action="store_true",
        help="Also require the zero-hash genesis and proof-of-work on every block",
    )
    verify_parser.add_argument(
        "--difficulty",
        type=int,
        default=2,
        help="Leading zero hex digits required with --strict (default: 2)",
    )

    show_parser = subparsers.add_parser("show", help="Print the chain as a table")
    show_parser.add_argument("chain_path", type=Path, help="Path to blockchain-data.json")
    show_parser.add_argument("--all", action="store_true", help="Include the genesis block")

    export_parser = subparsers.add_parser("export", help="Export chain blocks")
    export_parser.add_argument("chain_path", type=Path, help="Path to blockchain-data.json")
    export_parser.add_argument(
        "--format",
        choices=("json", "ndjson", "csv"),
        default="ndjson",
        help="Output format",
    )
    export_parser.add_argument("--output", type=Path, help="Output file path")

    keygen_parser = subparsers.add_parser("keygen", help="Generate Ed25519 key pair")
    keygen_parser.add_argument("--private-key", type=Path, required=True, help="Path to private key PEM")
    keygen_parser.add_argument("--public-key", type=Path, required=True, help="Path to public key PEM")
    keygen_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Overwrite existing key files",
    )

    receipt_parser = subparsers.add_parser("receipt", help="Generate a receipt for one block")
    receipt_parser.add_argument("chain_path", type=Path, help="Path to blockchain-data.json")
    receipt_parser.add_argument("--block-id", dest="block_id", required=True, help="Block id")
    receipt_parser.add_argument("--private-key", type=Path, help="Sign the receipt with this Ed25519 key")
    receipt_parser.add_argument("--output", type=Path, help="Output file path")

    return parser.parse_args(argv)


def _report_failure(message: str, json_output: bool) -> int:
    if json_output:
        print(json.dumps({"status": "failed", "error": message}))
    else:
        print(f"verify failed: {message}", file=sys.stderr)
    return 1


def _cmd_verify(chain_path: Path, json_output: bool, strict: bool, difficulty: int) -> int:
    if strict and not 0 <= difficulty <= MAX_DIFFICULTY:
        print(f"--difficulty must be between 0 and {MAX_DIFFICULTY}", file=sys.stderr)
        return 2
    try:
        chain = _load_chain(chain_path)
        if strict:
            check_genesis(chain)
        check_chain(chain, difficulty=difficulty if strict else None)
    except (LedgerVerificationError, LedgerLoadError, FileNotFoundError) as exc:
        return _report_failure(str(exc), json_output)
    if json_output:
        print(json.dumps({"status": "ok", "blockCount": len(chain)}))
    else:
        print(f"verification ok ({len(chain)} blocks)")
    return 0


def _cmd_show(chain_path: Path, include_genesis: bool, console: Console | None = None) -> int:
    try:
        chain = _load_chain(chain_path)
    except (LedgerLoadError, FileNotFoundError) as exc:
        print(f"show failed: {exc}", file=sys.stderr)
        return 1

    table = Table(title=f"ChainSign ledger ({len(chain) - 1} records)")
    table.add_column("#", justify="right")
    table.add_column("Block")
    table.add_column("Time (UTC)")
    table.add_column("Sign")
    table.add_column("Confidence", justify="right")
    table.add_column("Hash")
    table.add_column("Valid")

    start = 0 if include_genesis else 1
    for index in range(start, len(chain)):
        block = chain[index]
        detection = block.payload.detection_result
        valid = verify_block(chain, index)
        table.add_row(
            str(index),
            block.id,
            _format_timestamp(block.timestamp),
            detection.sign_type,
            f"{detection.confidence:.0%}",
            block.hash[:16] + "…",
            "[green]yes[/green]" if valid else "[red]no[/red]",
        )

    (console or Console()).print(table)
    return 0


def _cmd_export(chain_path: Path, output_format: str, output_path: Path | None) -> int:
    try:
        chain = _load_chain(chain_path)
        with _open_output(output_path) as output:
            _write_blocks(chain, output_format, output)
    except (OSError, LedgerLoadError) as exc:
        print(f"export failed: {exc}", file=sys.stderr)
        return 1
    return 0


def _cmd_keygen(
    *,
    private_key_path: Path,
    public_key_path: Path,
    overwrite: bool,
) -> int:
    if not overwrite and (private_key_path.exists() or public_key_path.exists()):
        print("key file already exists", file=sys.stderr)
        return 1
    try:
        private_key, public_key = generate_keypair()
    except RuntimeError as exc:
        print(exc, file=sys.stderr)
        return 1
    for path in (private_key_path, public_key_path):
        path.parent.mkdir(parents=True, exist_ok=True)
    _write_private_key(private_key_path, private_key)
    public_key_path.write_bytes(public_key)
    return 0


def _write_private_key(path: Path, pem: bytes) -> None:
    # Owner read/write only; existing files are truncated and re-permissioned.
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as handle:
        handle.write(pem)
    if os.name != "nt":
        os.chmod(path, 0o600)


def build_receipt(chain: Sequence[Block], block_id: str, signing_key: Any | None = None) -> dict[str, Any] | None:
    """Return a JSON-ready receipt for ``block_id``, or None if it is not in the chain."""
    found = find_by_id(chain, block_id)
    if found is None:
        return None
    index, block = found
    receipt: dict[str, Any] = {
        "chainPosition": index,
        **block.receipt().model_dump(by_alias=True),
        "nonce": block.nonce,
        "valid": verify_block(chain, index),
        "chainHeadHash": chain[-1].hash,
    }
    if signing_key is not None:
        receipt["signature"] = sign_receipt(signing_key, block.receipt())
    return receipt


def _cmd_receipt(
    chain_path: Path,
    *,
    block_id: str,
    private_key_path: Path | None,
    output_path: Path | None,
) -> int:
    signing_key = None
    if private_key_path is not None:
        try:
            signing_key = load_private_key(private_key_path.read_bytes())
        except (OSError, ValueError, RuntimeError) as exc:
            print(f"receipt failed: {exc}", file=sys.stderr)
            return 1
    try:
        chain = _load_chain(chain_path)
    except (LedgerLoadError, FileNotFoundError) as exc:
        print(f"receipt failed: {exc}", file=sys.stderr)
        return 1
    receipt = build_receipt(chain, block_id, signing_key)
    if receipt is None:
        print("receipt target not found", file=sys.stderr)
        return 1
    with _open_output(output_path) as output:
        json.dump(receipt, output, ensure_ascii=False)
        output.write("\n")
    return 0


def _run(args: argparse.Namespace) -> int:
    if args.command == "verify":
        return _cmd_verify(args.chain_path, args.json, args.strict, args.difficulty)
    if args.command == "show":
        return _cmd_show(args.chain_path, args.all)
    if args.command == "export":
        return _cmd_export(args.chain_path, args.format, args.output)
    if args.command == "keygen":
        return _cmd_keygen(
            private_key_path=args.private_key,
            public_key_path=args.public_key,
            overwrite=args.overwrite,
        )
    if args.command == "receipt":
        return _cmd_receipt(
            args.chain_path,
            block_id=args.block_id,
            private_key_path=args.private_key,
            output_path=args.output,
        )
    print("unknown command", file=sys.stderr)
    return 1


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_args(list(argv) if argv is not None else sys.argv[1:])
    return _run(args)


if __name__ == "__main__":
    sys.exit(main())
