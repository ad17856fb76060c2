# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""Configuration model for building a ledger in one step."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field


class LedgerConfig(BaseModel, frozen=True):
    """
    Configuration for the VehicleLedger.

    All fields are optional.

    Attributes:
        allowed_categories: When set, appends whose category is not in this
            set are rejected with ``InvalidInputError``.  ``None`` accepts
            any category string.
        max_events: Number of notifications retained in the channel log.
            Oldest notifications are evicted when this limit is reached.
        history_path: When set, ``VehicleLedger.from_config`` persists
            records to this NDJSON file instead of keeping them in memory.

    Example::

        config = LedgerConfig(
            allowed_categories=frozenset({"Maintenance", "Repair", "Accident"}),
            history_path=Path("/var/lib/vehicle-ledger/history.ndjson"),
        )
        ledger = VehicleLedger.from_config("0xadmin", config)
    """

    allowed_categories: frozenset[str] | None = None
    max_events: Annotated[int, Field(gt=0)] = 10_000
    history_path: Path | None = None
