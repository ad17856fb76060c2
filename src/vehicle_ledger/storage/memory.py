# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Volatile in-memory storage backend.

Records are held in one list per VIN in insertion order.  Suitable for
testing, short-lived processes, and scenarios where persistence is not
required.  Data is lost when the process exits.
"""

from __future__ import annotations

from vehicle_ledger.storage.interface import LedgerStorage
from vehicle_ledger.types import VehicleRecord


class MemoryStorage(LedgerStorage):
    """In-memory, non-persistent LedgerStorage implementation."""

    def __init__(self) -> None:
        self._histories: dict[str, list[VehicleRecord]] = {}

    async def append(self, record: VehicleRecord) -> None:
        self._histories.setdefault(record.vin, []).append(record)

    async def history(self, vin: str) -> list[VehicleRecord]:
        # Copy so callers never observe a list that grows under them.
        return list(self._histories.get(vin, ()))

    async def last(self, vin: str) -> VehicleRecord | None:
        records = self._histories.get(vin)
        return records[-1] if records else None

    async def vins(self) -> list[str]:
        return list(self._histories)

    async def count(self, vin: str | None = None) -> int:
        if vin is not None:
            return len(self._histories.get(vin, ()))
        return sum(len(records) for records in self._histories.values())
