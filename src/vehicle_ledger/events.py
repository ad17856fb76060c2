# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Ordered notification channel for registry and ledger changes.

Every committed mutation produces exactly one notification:

- ``RecorderAuthorized`` after ``AccessControlRegistry.authorize``
- ``RecorderRevoked`` after ``AccessControlRegistry.revoke``
- ``RecordAdded`` after ``VehicleLedger.append_record``

Rejected calls produce none.  The channel stamps each notification with a
strictly increasing sequence number, commits it to a bounded log, then
delivers it to subscribers in registration order.

Usage::

    channel = NotificationChannel()
    unsubscribe = channel.subscribe(print, kinds={"record_added"})
    ...
    unsubscribe()
"""

from __future__ import annotations

import collections
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from vehicle_ledger.types import Identity

logger = logging.getLogger("vehicle_ledger.events")


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class _Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    sequence: int = 0
    emitted_at: datetime = Field(default_factory=_utc_now)


class RecorderAuthorized(_Notification):
    """``target`` was granted recorder status."""

    kind: Literal["recorder_authorized"] = "recorder_authorized"
    target: Identity


class RecorderRevoked(_Notification):
    """``target`` had recorder status removed."""

    kind: Literal["recorder_revoked"] = "recorder_revoked"
    target: Identity


class RecordAdded(_Notification):
    """A record was appended to the history of ``vin``."""

    kind: Literal["record_added"] = "record_added"
    vin: str
    mileage: int
    category: str
    recorder: Identity


LedgerEvent = Union[RecorderAuthorized, RecorderRevoked, RecordAdded]

EventHandler = Callable[[LedgerEvent], None]
Unsubscribe = Callable[[], None]


class NotificationChannel:
    """
    Append-only, ordered log of ledger notifications with subscriber fan-out.

    Emission is synchronous: when :meth:`emit` returns, the notification has
    been committed to the log and every subscriber has been called.  A
    subscriber that raises is logged and skipped; the notification stays
    committed and the remaining subscribers still run.

    Parameters
    ----------
    max_events:
        Size of the retained log.  Sequence numbers keep increasing after
        old notifications are evicted.
    """

    def __init__(self, max_events: int = 10_000) -> None:
        if max_events < 1:
            raise ValueError(f"max_events must be >= 1; got {max_events}.")
        self._lock = threading.RLock()
        self._log: collections.deque[LedgerEvent] = collections.deque(maxlen=max_events)
        self._sequence = 0
        self._subscribers: list[tuple[EventHandler, frozenset[str] | None]] = []

    def emit(self, event: LedgerEvent) -> LedgerEvent:
        """
        Stamp, commit and deliver a notification.

        The sequence number is assigned and the notification committed to
        the log under the channel lock.  Subscribers are called after that
        lock is released, so a subscriber may query the registry or the
        channel without blocking another thread that is emitting.  Callers
        that need delivery order to match mutation order emit while holding
        their own lock (the registry lock, or the VIN lock for appends).

        Returns
        -------
        LedgerEvent
            The committed notification carrying its sequence number.
        """
        with self._lock:
            self._sequence += 1
            committed = event.model_copy(update={"sequence": self._sequence})
            self._log.append(committed)
            subscribers = list(self._subscribers)
        logger.debug("emit [%d] %s", committed.sequence, committed.kind)

        for handler, kinds in subscribers:
            if kinds is not None and committed.kind not in kinds:
                continue
            try:
                handler(committed)
            except Exception:
                logger.exception(
                    "Subscriber %r failed on %s notification #%d",
                    handler,
                    committed.kind,
                    committed.sequence,
                )
        return committed

    def subscribe(
        self,
        handler: EventHandler,
        kinds: set[str] | frozenset[str] | None = None,
    ) -> Unsubscribe:
        """
        Register ``handler`` for future notifications.

        Args:
            handler: Called with each committed notification.
            kinds: Restrict delivery to these ``kind`` values
                (e.g. ``{"record_added"}``).  ``None`` delivers everything.

        Returns:
            A callable that removes the subscription.  Calling it twice is
            harmless.
        """
        entry = (handler, frozenset(kinds) if kinds is not None else None)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def log(self, limit: int | None = None, since: int = 0) -> list[LedgerEvent]:
        """
        Return retained notifications in emission order.

        Args:
            limit: Return at most the ``limit`` most recent matches.
            since: Only notifications with ``sequence > since``.
        """
        with self._lock:
            events = [event for event in self._log if event.sequence > since]
        if limit is not None:
            if limit < 1:
                return []
            events = events[-limit:]
        return events

    def last_sequence(self) -> int:
        """Sequence number of the most recent notification, or 0."""
        with self._lock:
            return self._sequence

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def clear(self) -> int:
        """
        Drop retained notifications.  Sequence numbering continues.

        Returns:
            The number of notifications that were dropped.
        """
        with self._lock:
            count = len(self._log)
            self._log.clear()
            return count
