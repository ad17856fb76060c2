# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Read-only query facade over any LedgerStorage backend.

History is public: nothing here requires an identity.  Use HistoryQuery
independently of VehicleLedger when a process only needs read access to an
existing store.
"""

from __future__ import annotations

from vehicle_ledger.storage.interface import LedgerStorage
from vehicle_ledger.types import HistoryFilter, Identity, VehicleRecord


def apply_filter(
    records: list[VehicleRecord],
    history_filter: HistoryFilter,
) -> list[VehicleRecord]:
    """Narrow ``records`` by ``history_filter``, preserving their order."""
    results: list[VehicleRecord] = list(records)

    if history_filter.category is not None:
        category = history_filter.category
        results = [r for r in results if r.category == category]

    if history_filter.recorder is not None:
        recorder = history_filter.recorder
        results = [r for r in results if r.recorder == recorder]

    offset = history_filter.offset or 0
    results = results[offset:]

    if history_filter.limit is not None:
        results = results[: history_filter.limit]

    return results


class HistoryQuery:
    """
    Read-only query interface over a LedgerStorage backend.

    Parameters
    ----------
    storage:
        The storage backend to query.
    """

    def __init__(self, storage: LedgerStorage) -> None:
        self._storage = storage

    async def find(
        self,
        vin: str,
        history_filter: HistoryFilter | None = None,
    ) -> list[VehicleRecord]:
        """
        Return the history of ``vin`` narrowed by ``history_filter``.

        Unknown VINs yield an empty list.
        """
        if not vin:
            return []
        records = await self._storage.history(vin)
        if history_filter is None:
            return records
        return apply_filter(records, history_filter)

    async def find_by_category(self, vin: str, category: str) -> list[VehicleRecord]:
        return await self.find(vin, HistoryFilter(category=category))

    async def find_by_recorder(
        self,
        recorder: Identity,
        vin: str | None = None,
    ) -> list[VehicleRecord]:
        """
        Return records appended by ``recorder``, for one VIN or across all
        VINs (grouped by VIN in first-seen order).
        """
        vins = [vin] if vin is not None else await self._storage.vins()
        results: list[VehicleRecord] = []
        for each_vin in vins:
            results.extend(await self.find(each_vin, HistoryFilter(recorder=recorder)))
        return results

    async def latest(self, vin: str) -> VehicleRecord | None:
        """Return the most recent record for ``vin``, or None."""
        if not vin:
            return None
        return await self._storage.last(vin)

    async def current_mileage(self, vin: str) -> int | None:
        """Return the mileage of the most recent record, or None."""
        last = await self.latest(vin)
        return last.mileage if last is not None else None

    async def vins(self) -> list[str]:
        return await self._storage.vins()

    async def count(self, vin: str | None = None) -> int:
        return await self._storage.count(vin)
