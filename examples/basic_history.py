# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
basic_history.py - Demonstrates core VehicleLedger usage.

Shows how to:
- Initialise a registry (the admin becomes the first recorder)
- Whitelist a service provider and append records
- Observe notifications
- See a mileage rollback being rejected
- Read, verify and export a vehicle history

Run: python examples/basic_history.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Allow running directly from the examples directory.
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vehicle_ledger import (
    AccessControlRegistry,
    MileageRollbackError,
    RecordCategory,
    VehicleLedger,
)

ADMIN = "0xA11CE"
GARAGE = "0x6A4A6E"
VIN = "1HGCM82633A004352"


async def main() -> None:
    registry = AccessControlRegistry(ADMIN)
    ledger = VehicleLedger(registry)
    registry.notifications.subscribe(lambda event: print(f"  [event #{event.sequence}] {event.kind}"))

    print("=== Vehicle Ledger - Basic History Example ===\n")

    registry.authorize(ADMIN, GARAGE)
    await ledger.append_record(GARAGE, VIN, 15_200, "bafy-oil-change", RecordCategory.MAINTENANCE)
    await ledger.append_record(GARAGE, VIN, 31_870, "bafy-brake-pads", RecordCategory.REPAIR)

    try:
        await ledger.append_record(GARAGE, VIN, 12_000, "bafy-suspicious", RecordCategory.REPAIR)
    except MileageRollbackError as exc:
        print(f"\nRejected: {exc.message}")

    print(f"\nHistory for {VIN}:")
    for record in await ledger.get_history(VIN):
        print(f"  #{record.index} {record.timestamp:%Y-%m-%d %H:%M:%S} {record.mileage:>7} km  {record.category}")

    result = await ledger.verify(VIN)
    print(f"\nVerified: {result.valid} ({result.record_count} records)")
    print("\nCSV export:")
    print(await ledger.export_history(VIN, "csv"))


if __name__ == "__main__":
    asyncio.run(main())
