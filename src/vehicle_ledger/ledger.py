# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
VehicleLedger: primary entry point for appending and reading vehicle history.

VehicleLedger coordinates four concerns:

1. Authorization: only whitelisted recorders may append.
2. The mileage invariant: a new record may never report less mileage than
   the last record for the same VIN.
3. Storage delegation: persisting and retrieving records via a pluggable
   backend.
4. Notification: one ``RecordAdded`` per committed append.

Appends to the same VIN are serialised by a per-VIN ``asyncio.Lock`` so the
read-last / compare / append / notify sequence is atomic.  Appends to
different VINs do not wait on each other.

Usage::

    from vehicle_ledger import AccessControlRegistry, VehicleLedger

    registry = AccessControlRegistry(admin="0xA11CE")
    ledger = VehicleLedger(registry)
    record = await ledger.append_record(
        "0xA11CE", "1HGCM82633A004352", 12_000, "bafy...", "Maintenance"
    )
    history = await ledger.get_history("1HGCM82633A004352")
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from typing import AsyncIterator

from vehicle_ledger.chain import link_record, tip_hash, verify_history
from vehicle_ledger.config import LedgerConfig
from vehicle_ledger.errors import ConfigurationError, InvalidInputError, MileageRollbackError
from vehicle_ledger.events import NotificationChannel, RecordAdded
from vehicle_ledger.export_formats import export_records
from vehicle_ledger.query import HistoryQuery
from vehicle_ledger.record import MonotonicClock, build_pending_record
from vehicle_ledger.registry import AccessControlRegistry
from vehicle_ledger.storage.file import FileStorage
from vehicle_ledger.storage.interface import LedgerStorage
from vehicle_ledger.storage.memory import MemoryStorage
from vehicle_ledger.types import (
    ChainVerificationResult,
    HistoryFilter,
    Identity,
    VehicleRecord,
)

logger = logging.getLogger("vehicle_ledger.ledger")


class _VinLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class VehicleLedger:
    """
    Authorization-gated, append-only store of per-vehicle record histories.

    Per-VIN serialisation holds within one event loop.  Threads that share a
    ledger must submit their appends to the loop that owns it (for example
    with ``asyncio.run_coroutine_threadsafe``); an append from a second loop
    while the first is still running raises :class:`ConfigurationError`.
    Once the owning loop has stopped, the ledger may be used from a new one.

    Parameters
    ----------
    registry:
        Decides which identities may append.
    storage:
        Pluggable storage backend.  Defaults to in-memory storage.
    notifications:
        Channel receiving ``RecordAdded``.  Defaults to the registry's
        channel so that whitelist and record notifications share one
        ordered stream.
    config:
        Optional :class:`~vehicle_ledger.config.LedgerConfig`.
    clock:
        Timestamp source.  Defaults to a fresh :class:`MonotonicClock`.
    """

    def __init__(
        self,
        registry: AccessControlRegistry,
        storage: LedgerStorage | None = None,
        notifications: NotificationChannel | None = None,
        config: LedgerConfig | None = None,
        clock: MonotonicClock | None = None,
    ) -> None:
        self._config = config or LedgerConfig()
        self._registry = registry
        self._storage: LedgerStorage = storage or MemoryStorage()
        self._notifications = notifications or registry.notifications
        self._clock = clock or MonotonicClock()
        self._vin_locks: dict[str, _VinLock] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_guard = threading.Lock()
        self.query = HistoryQuery(self._storage)

    @classmethod
    def from_config(
        cls,
        admin: Identity,
        config: LedgerConfig | None = None,
    ) -> VehicleLedger:
        """
        Build a registry, notification channel, storage backend and ledger
        from a single configuration.

        Uses :class:`FileStorage` when ``config.history_path`` is set and
        :class:`MemoryStorage` otherwise.
        """
        cfg = config or LedgerConfig()
        notifications = NotificationChannel(max_events=cfg.max_events)
        registry = AccessControlRegistry(admin, notifications=notifications)
        storage: LedgerStorage
        if cfg.history_path is not None:
            storage = FileStorage(cfg.history_path)
        else:
            storage = MemoryStorage()
        return cls(registry, storage=storage, notifications=notifications, config=cfg)

    @property
    def registry(self) -> AccessControlRegistry:
        return self._registry

    @property
    def notifications(self) -> NotificationChannel:
        return self._notifications

    @property
    def storage(self) -> LedgerStorage:
        return self._storage

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def append_record(
        self,
        caller: Identity,
        vin: str,
        mileage: int,
        content_ref: str,
        category: str,
    ) -> VehicleRecord:
        """
        Append a record to the history of ``vin``.

        The caller is checked against the whitelist before waiting for the
        VIN lock, and again at the start of the atomic section, where the
        answer is final.  The new mileage is compared against the last
        record for ``vin`` only.  Either the record is stored and
        ``RecordAdded`` is emitted, or the call raises and nothing changes.

        Returns
        -------
        VehicleRecord
            The stored record, including its position, timestamp and hash.

        Raises
        ------
        UnauthorizedError
            ``caller`` is not a whitelisted recorder.
        InvalidInputError
            Empty VIN, negative or non-integer mileage, non-string
            reference or category, or a category outside
            ``LedgerConfig.allowed_categories``.
        MileageRollbackError
            ``mileage`` is below the last recorded mileage for ``vin``.
        ConfigurationError
            The ledger is already appending on another running event loop.
        """
        self._registry.require_recorder(caller)
        if not isinstance(vin, str) or not vin:
            logger.warning("Rejected append from %s: empty VIN", caller)
            raise InvalidInputError("vin", "must be a non-empty string.")

        async with self._vin_guard(vin):
            self._registry.require_recorder(caller)
            self._validate(vin, mileage, content_ref, category)

            last = await self._storage.last(vin)
            if last is not None and mileage < last.mileage:
                logger.warning(
                    "Rejected mileage rollback for %s: %d < %d (recorder %s)",
                    vin,
                    mileage,
                    last.mileage,
                    caller,
                )
                raise MileageRollbackError(vin, current=mileage, previous=last.mileage)

            pending = build_pending_record(
                vin=vin,
                index=last.index + 1 if last is not None else 0,
                mileage=mileage,
                content_ref=content_ref,
                category=category,
                recorder=caller,
                previous_hash=tip_hash(last),
                timestamp=self._clock.now(floor=last.timestamp if last is not None else None),
            )
            record = link_record(pending)
            await self._storage.append(record)

            self._notifications.emit(
                RecordAdded(vin=vin, mileage=mileage, category=category, recorder=caller)
            )

        logger.info(
            "Appended %s record #%d for %s at %d (recorder %s)",
            category,
            record.index,
            vin,
            mileage,
            caller,
        )
        return record

    async def get_history(
        self,
        vin: str,
        history_filter: HistoryFilter | None = None,
    ) -> list[VehicleRecord]:
        """
        Return the records for ``vin`` in append order.

        History is public and never raises for an unknown VIN; it returns
        an empty list instead.
        """
        return await self.query.find(vin, history_filter)

    async def latest_record(self, vin: str) -> VehicleRecord | None:
        return await self.query.latest(vin)

    async def vins(self) -> list[str]:
        """Return every VIN with at least one record."""
        return await self.query.vins()

    async def count(self, vin: str | None = None) -> int:
        """Return the number of records for ``vin``, or across all VINs."""
        return await self.query.count(vin)

    async def verify(self, vin: str) -> ChainVerificationResult:
        """
        Verify the stored history of ``vin``.

        Re-derives every hash link and re-checks the mileage invariant.
        Useful for durable backends whose files could be edited outside the
        ledger.  O(n) in the length of the history.
        """
        records = await self.get_history(vin)
        return verify_history(vin, records)

    async def export_history(
        self,
        vin: str,
        export_format: str,
        history_filter: HistoryFilter | None = None,
    ) -> str:
        """
        Export the history of ``vin`` as ``"json"`` or ``"csv"``.

        An optional ``history_filter`` narrows the export.
        """
        records = await self.get_history(vin, history_filter)
        return export_records(records, export_format)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @contextlib.asynccontextmanager
    async def _vin_guard(self, vin: str) -> AsyncIterator[None]:
        """
        Hold the lock for ``vin`` for the duration of the block.

        The entry is dropped once no coroutine holds or waits for it, so
        the table only covers VINs with an append in flight.
        """
        self._bind_loop()
        entry = self._vin_locks.get(vin)
        if entry is None:
            entry = self._vin_locks[vin] = _VinLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._vin_locks[vin]

    def _bind_loop(self) -> None:
        loop = asyncio.get_running_loop()
        with self._loop_guard:
            bound = self._loop
            if bound is not None and bound is not loop and bound.is_running():
                raise ConfigurationError(
                    "VehicleLedger is already appending on another running event loop; "
                    "submit appends to that loop (asyncio.run_coroutine_threadsafe) "
                    "instead of sharing the ledger across loops."
                )
            self._loop = loop

    def _validate(
        self,
        vin: str,
        mileage: int,
        content_ref: str,
        category: str,
    ) -> None:
        problem: InvalidInputError | None = None
        if isinstance(mileage, bool) or not isinstance(mileage, int):
            problem = InvalidInputError("mileage", f"expected an integer, got {mileage!r}.")
        elif mileage < 0:
            problem = InvalidInputError("mileage", f"must be non-negative, got {mileage}.")
        elif not isinstance(content_ref, str):
            problem = InvalidInputError("content_ref", "must be a string.")
        elif not isinstance(category, str):
            problem = InvalidInputError("category", "must be a string.")
        elif (
            self._config.allowed_categories is not None
            and category not in self._config.allowed_categories
        ):
            problem = InvalidInputError(
                "category",
                f"{category!r} is not one of {sorted(self._config.allowed_categories)}.",
            )

        if problem is not None:
            logger.warning("Rejected append for %s: %s", vin, problem.message)
            raise problem
