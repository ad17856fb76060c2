# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Abstract base class that every storage backend must implement.

Implementations must guarantee append-only semantics: records written through
``append`` must never be altered, reordered or deleted by the storage layer,
and reads must return whole records in insertion order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from vehicle_ledger.types import VehicleRecord


class LedgerStorage(ABC):
    """
    Contract for vehicle history persistence backends.

    Backends are not responsible for the mileage invariant or for
    serialising writers; :class:`~vehicle_ledger.ledger.VehicleLedger`
    holds a per-VIN lock around every read-compare-append.
    """

    @abstractmethod
    async def append(self, record: VehicleRecord) -> None:
        """
        Persist a fully-formed record at the tail of its VIN's history.

        Implementations must not modify the record before persisting it.
        """
        ...

    @abstractmethod
    async def history(self, vin: str) -> list[VehicleRecord]:
        """
        Return every record for ``vin`` in insertion order, or an empty list.
        """
        ...

    @abstractmethod
    async def last(self, vin: str) -> VehicleRecord | None:
        """Return the most recently appended record for ``vin``."""
        ...

    @abstractmethod
    async def vins(self) -> list[str]:
        """Return every VIN with at least one record, in first-seen order."""
        ...

    @abstractmethod
    async def count(self, vin: str | None = None) -> int:
        """Return the number of records for ``vin``, or in total."""
        ...
