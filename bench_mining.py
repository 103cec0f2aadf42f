"""
Simple append-latency microbenchmark for ChainSign.

Measures:
- block hashing alone
- ChainLedger.add_record, memory-only, at difficulty 0..3
- ChainLedger.add_record with the chain file rewritten on every append
"""

from __future__ import annotations

import time
from pathlib import Path
from statistics import mean, median, quantiles
from tempfile import TemporaryDirectory

from chainsign import ChainLedger, LedgerConfig
from chainsign.ledger.hashing import block_hash

ROUNDS = 50  # difficulty 3 averages ~4k hashes per block; raise for steadier p95s

IMAGE = "data:image/jpeg;base64," + "/9j/4AAQSkZJRgABAQ" * 200
DETECTION = {"signType": "STOP", "confidence": 0.94, "description": "bench"}


def bench(label: str, call) -> None:
    times = []
    for _ in range(ROUNDS):
        t0 = time.perf_counter()
        call()
        t1 = time.perf_counter()
        times.append((t1 - t0) * 1_000)  # milliseconds
    p50 = median(times)
    p95 = quantiles(times, n=100)[94]
    print(f"{label:28s} avg {mean(times):8.2f} ms | p50 {p50:8.2f} ms | p95 {p95:8.2f} ms")


def main() -> None:
    warm = ChainLedger(LedgerConfig(difficulty=0))
    sample = warm.add_record(IMAGE, DETECTION)
    bench("block hash", lambda: block_hash(sample))

    for difficulty in range(4):
        ledger = ChainLedger(LedgerConfig(difficulty=difficulty))
        bench(f"add_record memory d={difficulty}", lambda: ledger.add_record(IMAGE, DETECTION))

    with TemporaryDirectory(ignore_cleanup_errors=True) as tmpdir:
        durable = ChainLedger(LedgerConfig(data_dir=Path(tmpdir), difficulty=2))
        bench("add_record durable d=2", lambda: durable.add_record(IMAGE, DETECTION))
        durable.close()


if __name__ == "__main__":
    main()
