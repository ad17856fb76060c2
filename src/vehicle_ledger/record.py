# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Helpers for constructing VehicleRecord instances.

The creation pipeline is split into two stages:

1. ``build_pending_record`` assembles every field except ``record_hash``.
2. ``finalise_record`` attaches the hash computed in ``chain.py``.

Timestamps come from :class:`MonotonicClock`, never from the caller.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from vehicle_ledger.types import Identity, VehicleRecord


def _generate_id() -> str:
    """Return a new UUID v4 string."""
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class MonotonicClock:
    """
    Wall-clock source that never goes backwards within a process.

    If the system clock steps back, the last issued timestamp is repeated
    until real time catches up.  Timestamps are non-decreasing, not
    strictly increasing.

    Parameters
    ----------
    source:
        Callable returning a timezone-aware ``datetime``.  Defaults to the
        current UTC time; tests inject a fake.
    """

    def __init__(self, source: Callable[[], datetime] | None = None) -> None:
        self._source = source or _utc_now
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def now(self, floor: datetime | None = None) -> datetime:
        """
        Return the next timestamp.

        Args:
            floor: Lower bound for the result, typically the timestamp of
                the previous record for the same VIN loaded from storage.
        """
        with self._lock:
            current = self._source()
            if self._last is not None and current < self._last:
                current = self._last
            if floor is not None and current < floor:
                current = floor
            self._last = current
            return current


def build_pending_record(
    vin: str,
    index: int,
    mileage: int,
    content_ref: str,
    category: str,
    recorder: Identity,
    previous_hash: str,
    timestamp: datetime,
    record_id: str | None = None,
) -> dict[str, Any]:
    """
    Construct the pending record dictionary that the hash chain will sign.

    Returns a plain ``dict`` rather than a ``VehicleRecord`` because
    ``record_hash`` is absent at this stage.

    Parameters
    ----------
    index:
        Position of the new record in the VIN's history (0 for the first).
    previous_hash:
        ``record_hash`` of the last record for this VIN, or the genesis hash.
    record_id:
        Override the auto-generated UUID (useful in tests for determinism).
    """
    return {
        "record_id": record_id or _generate_id(),
        "vin": vin,
        "index": index,
        "timestamp": timestamp,
        "mileage": mileage,
        "content_ref": content_ref,
        "category": category,
        "recorder": recorder,
        "previous_hash": previous_hash,
    }


def finalise_record(pending: dict[str, Any], record_hash: str) -> VehicleRecord:
    """
    Attach the computed hash to a pending record dict and validate it into an
    immutable ``VehicleRecord``.
    """
    return VehicleRecord.model_validate({**pending, "record_hash": record_hash})
