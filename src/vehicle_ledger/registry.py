# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Access control for the vehicle ledger.

A single admin, fixed at construction, manages a whitelist of recorder
identities.  Only whitelisted recorders may append records.  Every
whitelist change is committed and notified under one lock, so the
notification order matches the order of changes.
"""

from __future__ import annotations

import logging
import threading

from vehicle_ledger.errors import ConfigurationError, InvalidInputError, UnauthorizedError
from vehicle_ledger.events import NotificationChannel, RecorderAuthorized, RecorderRevoked
from vehicle_ledger.types import Identity

logger = logging.getLogger("vehicle_ledger.registry")


class RecorderWhitelist:
    """
    The set of identities currently allowed to append records.

    Unordered; membership is a point lookup.  Not thread-safe on its own:
    :class:`AccessControlRegistry` serialises access to it.
    """

    __slots__ = ("_members",)

    def __init__(self) -> None:
        self._members: set[Identity] = set()

    def grant(self, identity: Identity) -> None:
        self._members.add(identity)

    def revoke(self, identity: Identity) -> None:
        self._members.discard(identity)

    def contains(self, identity: Identity) -> bool:
        return identity in self._members

    def members(self) -> list[Identity]:
        return sorted(self._members)

    def __contains__(self, identity: object) -> bool:
        return identity in self._members

    def __len__(self) -> int:
        return len(self._members)


class AccessControlRegistry:
    """
    Decides whether an identity may administer the whitelist or append
    records.

    The admin is fixed at construction and also receives recorder status so
    that the operator can record immediately.  There is no way to transfer
    or re-initialise the admin.  Admin rights and recorder status are
    independent checks: revoking the admin's recorder status leaves its
    admin rights intact.

    Example::

        registry = AccessControlRegistry(admin="0xA11CE")
        registry.authorize("0xA11CE", "0xGARAGE")
        assert registry.is_authorized("0xGARAGE")
    """

    def __init__(
        self,
        admin: Identity,
        notifications: NotificationChannel | None = None,
    ) -> None:
        if not isinstance(admin, str) or not admin:
            raise ConfigurationError("admin must be a non-empty identity string.")

        self._admin: Identity = admin
        self._lock = threading.RLock()
        self._whitelist = RecorderWhitelist()
        self._whitelist.grant(admin)
        self.notifications = notifications or NotificationChannel()
        logger.info("Registry initialised with admin %s", admin)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def admin(self) -> Identity:
        return self._admin

    def is_admin(self, identity: Identity) -> bool:
        return identity == self._admin

    def authorize(self, caller: Identity, target: Identity) -> None:
        """
        Grant ``target`` recorder status.

        Idempotent: authorising an existing recorder succeeds and emits
        ``RecorderAuthorized`` again.

        Raises:
            UnauthorizedError: If ``caller`` is not the admin.
            InvalidInputError: If ``target`` is not a non-empty string.
        """
        self._require_admin(caller)
        event = RecorderAuthorized(target=self._check_target(target))
        with self._lock:
            self._whitelist.grant(target)
            self.notifications.emit(event)
        logger.info("Recorder authorized: %s (by %s)", target, caller)

    def revoke(self, caller: Identity, target: Identity) -> None:
        """
        Remove ``target``'s recorder status.

        Idempotent: emits ``RecorderRevoked`` whether or not ``target`` was
        a recorder.

        Raises:
            UnauthorizedError: If ``caller`` is not the admin.
            InvalidInputError: If ``target`` is not a non-empty string.
        """
        self._require_admin(caller)
        event = RecorderRevoked(target=self._check_target(target))
        with self._lock:
            self._whitelist.revoke(target)
            self.notifications.emit(event)
        logger.info("Recorder revoked: %s (by %s)", target, caller)

    def is_authorized(self, identity: Identity) -> bool:
        """Return True when ``identity`` may append records."""
        with self._lock:
            return self._whitelist.contains(identity)

    def require_recorder(self, identity: Identity) -> None:
        """
        Raises:
            UnauthorizedError: If ``identity`` is not a whitelisted recorder.
        """
        if not self.is_authorized(identity):
            logger.warning("Rejected append from non-recorder %s", identity)
            raise UnauthorizedError(identity, "recorder")

    def recorders(self) -> list[Identity]:
        """Return the current whitelist, sorted."""
        with self._lock:
            return self._whitelist.members()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_admin(self, caller: Identity) -> None:
        if not self.is_admin(caller):
            logger.warning("Rejected whitelist change from non-admin %s", caller)
            raise UnauthorizedError(caller, "admin")

    @staticmethod
    def _check_target(target: Identity) -> Identity:
        if not isinstance(target, str) or not target:
            logger.warning("Rejected whitelist change for invalid identity %r", target)
            raise InvalidInputError("target", "must be a non-empty identity string.")
        return target
