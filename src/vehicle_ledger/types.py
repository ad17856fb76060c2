# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Shared type definitions for the vehicle-ledger package.

Records are frozen Pydantic v2 models: fields cannot be mutated after
construction, which mirrors the append-only guarantee of a vehicle history.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

# Opaque caller identifier (an account address or similar). Compared for
# equality only.
Identity = str


class RecordCategory(str):
    """
    Well-known record category constants.

    These are convenience constants; any string is a valid category unless
    ``LedgerConfig.allowed_categories`` restricts the set.
    """

    MAINTENANCE = "Maintenance"
    REPAIR = "Repair"
    ACCIDENT = "Accident"
    INSPECTION = "Inspection"


class VehicleRecord(BaseModel):
    """
    An immutable entry in a vehicle's history.

    ``timestamp`` and ``recorder`` are assigned by the ledger, never by the
    caller.  ``record_hash`` is the SHA-256 digest of the record's canonical
    JSON representation combined with ``previous_hash``, linking each record
    to its predecessor for the same VIN.
    """

    model_config = ConfigDict(frozen=True)

    record_id: str
    vin: str
    index: Annotated[int, Field(ge=0)]
    timestamp: datetime
    mileage: Annotated[int, Field(ge=0)]
    content_ref: str
    category: str
    recorder: Identity
    previous_hash: str
    record_hash: str


class HistoryFilter(BaseModel):
    """
    Filter parameters for reading a vehicle history.

    All fields are optional.  Omitting a field means no restriction on that
    dimension.  Results always keep insertion order.
    """

    model_config = ConfigDict(frozen=True)

    category: str | None = None
    recorder: Identity | None = None
    limit: Annotated[int, Field(ge=0)] | None = None
    offset: Annotated[int, Field(ge=0)] | None = None


class ChainVerificationSuccess(BaseModel):
    """Returned by verification when every link and mileage step is intact."""

    model_config = ConfigDict(frozen=True)

    valid: bool = True
    vin: str
    record_count: int


class ChainVerificationFailure(BaseModel):
    """Returned by verification at the first broken link or mileage step."""

    model_config = ConfigDict(frozen=True)

    valid: bool = False
    vin: str
    record_count: int
    broken_at: int
    reason: str


ChainVerificationResult = ChainVerificationSuccess | ChainVerificationFailure

ExportFormat = str  # "json" | "csv"
