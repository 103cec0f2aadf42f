"""Quickstart demo for ChainSign.

Records two detections in a chain file under ./chainsign-data, verifies the
chain, then points at the CLI for inspecting and re-verifying the file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from chainsign import ChainLedger, LedgerConfig

DATA_DIR = Path("chainsign-data")

# A real caller passes the uploaded image's data URL.
IMAGE = "data:image/jpeg;base64," + "/9j/4AAQSkZJRgABAQEASABIAAD" * 40


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with ChainLedger(LedgerConfig(data_dir=DATA_DIR)) as ledger:
        stop = ledger.add_record(
            IMAGE,
            {
                "signType": "STOP",
                "confidence": 0.94,
                "description": "Red octagonal stop sign requiring vehicles to come to a complete stop",
            },
            {"location": "Main St & 3rd Ave", "deviceId": "dashcam-01"},
        )
        ledger.add_record(
            IMAGE,
            {
                "signType": "YIELD",
                "confidence": 0.91,
                "description": "Yellow triangular yield sign",
                "boundingBox": {"x": 100, "y": 90, "width": 220, "height": 190},
            },
        )

        print("Receipt for the first record:")
        print(json.dumps(stop.receipt().model_dump(by_alias=True), indent=2))

        status = ledger.chain_status()
        print(f"\nChain valid: {status.valid} ({status.block_count} blocks)")
        print(f"STOP block verifies: {ledger.verify_block_by_id(stop.id).valid}")

    chain_file = DATA_DIR / "blockchain-data.json"
    print("\nInspect or verify the file:")
    print(f"  chainsign show {chain_file}")
    print(f"  chainsign verify {chain_file} --strict")
    print("\nEdit any signType in the file and run verify again to see it fail.")


if __name__ == "__main__":
    main()
