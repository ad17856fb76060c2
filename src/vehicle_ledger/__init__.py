# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
vehicle-ledger - Authorization-gated, append-only vehicle maintenance history.

Public API surface:

    Classes:
        AccessControlRegistry - Admin identity + recorder whitelist
        RecorderWhitelist     - Set of identities allowed to append
        VehicleLedger         - append_record(), get_history(), verify(), export_history()
        HistoryQuery          - Read-only query facade over any LedgerStorage
        NotificationChannel   - Ordered log of RecorderAuthorized / RecorderRevoked / RecordAdded
        MemoryStorage         - Volatile in-memory storage (default)
        FileStorage           - Append-only NDJSON file storage
        MonotonicClock        - Non-decreasing timestamp source

    Functions:
        export_json     - Serialise records to JSON
        export_csv      - Serialise records to CSV
        export_records  - Format-dispatching export helper
        verify_history  - Re-check hashes and mileage of a record sequence

    Errors:
        VehicleLedgerError, UnauthorizedError, InvalidInputError,
        MileageRollbackError, ConfigurationError, StorageError
"""

from vehicle_ledger.chain import GENESIS_HASH, verify_history
from vehicle_ledger.config import LedgerConfig
from vehicle_ledger.errors import (
    ConfigurationError,
    InvalidInputError,
    MileageRollbackError,
    StorageError,
    UnauthorizedError,
    VehicleLedgerError,
)
from vehicle_ledger.events import (
    LedgerEvent,
    NotificationChannel,
    RecordAdded,
    RecorderAuthorized,
    RecorderRevoked,
)
from vehicle_ledger.export_formats import export_csv, export_json, export_records
from vehicle_ledger.ledger import VehicleLedger
from vehicle_ledger.query import HistoryQuery
from vehicle_ledger.record import MonotonicClock
from vehicle_ledger.registry import AccessControlRegistry, RecorderWhitelist
from vehicle_ledger.storage.file import FileStorage
from vehicle_ledger.storage.interface import LedgerStorage
from vehicle_ledger.storage.memory import MemoryStorage
from vehicle_ledger.types import (
    ChainVerificationFailure,
    ChainVerificationResult,
    ChainVerificationSuccess,
    HistoryFilter,
    Identity,
    RecordCategory,
    VehicleRecord,
)

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "AccessControlRegistry",
    "RecorderWhitelist",
    "VehicleLedger",
    "HistoryQuery",
    "MonotonicClock",
    # Notifications
    "NotificationChannel",
    "LedgerEvent",
    "RecorderAuthorized",
    "RecorderRevoked",
    "RecordAdded",
    # Storage
    "LedgerStorage",
    "MemoryStorage",
    "FileStorage",
    # Chain / export helpers
    "GENESIS_HASH",
    "verify_history",
    "export_json",
    "export_csv",
    "export_records",
    # Configuration
    "LedgerConfig",
    # Types
    "Identity",
    "RecordCategory",
    "VehicleRecord",
    "HistoryFilter",
    "ChainVerificationResult",
    "ChainVerificationSuccess",
    "ChainVerificationFailure",
    # Errors
    "VehicleLedgerError",
    "UnauthorizedError",
    "InvalidInputError",
    "MileageRollbackError",
    "ConfigurationError",
    "StorageError",
    "__version__",
]
