# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Exceptions raised by the vehicle ledger.

Every error derives from :class:`VehicleLedgerError` and carries a stable
``code`` alongside its human-readable ``message``.
"""

from __future__ import annotations


class VehicleLedgerError(Exception):
    """Base class for all vehicle-ledger errors."""

    def __init__(self, message: str, code: str = "LEDGER_ERROR") -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class UnauthorizedError(VehicleLedgerError):
    """
    Raised when a caller lacks the privilege an operation requires.

    Attributes:
        identity: The caller that was rejected.
        required_role: ``"admin"`` or ``"recorder"``.
    """

    def __init__(self, identity: str, required_role: str) -> None:
        super().__init__(
            f"Identity '{identity}' is not authorized: operation requires "
            f"the {required_role} role.",
            code="UNAUTHORIZED",
        )
        self.identity = identity
        self.required_role = required_role


class InvalidInputError(VehicleLedgerError):
    """
    Raised when an argument is malformed (e.g. an empty VIN).

    Attributes:
        field: Name of the offending argument.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"Invalid {field}: {message}", code="INVALID_INPUT")
        self.field = field


class MileageRollbackError(VehicleLedgerError):
    """
    Raised when an appended record reports less mileage than the record
    immediately preceding it for the same VIN.

    Attributes:
        vin: The vehicle whose history rejected the append.
        current: The mileage supplied by the caller.
        previous: The mileage of the last stored record.
    """

    def __init__(self, vin: str, current: int, previous: int) -> None:
        super().__init__(
            f"Mileage rollback for VIN '{vin}': {current} is below the "
            f"previously recorded {previous}.",
            code="MILEAGE_ROLLBACK",
        )
        self.vin = vin
        self.current = current
        self.previous = previous


class ConfigurationError(VehicleLedgerError):
    """Raised when the ledger or registry is misconfigured."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR")


class StorageError(VehicleLedgerError):
    """Raised when a storage backend holds data it cannot read back."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="STORAGE_ERROR")
