# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation
"""Shared fixtures for vehicle-ledger tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from vehicle_ledger.events import NotificationChannel
from vehicle_ledger.ledger import VehicleLedger
from vehicle_ledger.registry import AccessControlRegistry
from vehicle_ledger.storage.file import FileStorage

ADMIN = "0xA11CE"
GARAGE = "0x6A4A6E"
STRANGER = "0x57A4"


@pytest.fixture
def notifications() -> NotificationChannel:
    return NotificationChannel()


@pytest.fixture
def registry(notifications: NotificationChannel) -> AccessControlRegistry:
    """A registry initialised by ADMIN with no other recorders."""
    return AccessControlRegistry(ADMIN, notifications=notifications)


@pytest.fixture
def ledger(registry: AccessControlRegistry) -> VehicleLedger:
    """An in-memory ledger sharing the registry's notification channel."""
    return VehicleLedger(registry)


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "history" / "records.ndjson"


@pytest.fixture
def file_ledger(registry: AccessControlRegistry, history_path: Path) -> VehicleLedger:
    """A ledger persisting to an NDJSON file under tmp_path."""
    return VehicleLedger(registry, storage=FileStorage(history_path))
