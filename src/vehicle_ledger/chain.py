# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Per-VIN SHA-256 hash chain.

Each record is linked to the previous record of the same vehicle, so editing
a stored record (for example by hand in an NDJSON history file) invalidates
every later hash in that vehicle's history.  Verification also re-checks the
mileage invariant, which a tampered file could otherwise violate silently.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic_core import to_jsonable_python

from vehicle_ledger.record import finalise_record
from vehicle_ledger.types import (
    ChainVerificationFailure,
    ChainVerificationResult,
    ChainVerificationSuccess,
    VehicleRecord,
)

# The hash value that precedes the first record of every vehicle.
GENESIS_HASH: str = "0" * 64


def _canonicalise(pending: dict[str, Any]) -> str:
    """
    Produce a deterministic JSON string from a pending record dict.

    Values go through pydantic's JSON conversion so a ``datetime`` renders
    the same way here as in ``VehicleRecord.model_dump(mode="json")``.
    """
    return json.dumps(
        to_jsonable_python(pending),
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
    )


def compute_hash(pending: dict[str, Any], previous_hash: str) -> str:
    """
    SHA-256 over ``<canonicalJSON>\\n<previousHash>``.
    """
    payload = _canonicalise(pending) + "\n" + previous_hash
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def link_record(pending: dict[str, Any]) -> VehicleRecord:
    """
    Hash a pending record against its ``previous_hash`` and return the
    completed immutable ``VehicleRecord``.
    """
    record_hash = compute_hash(pending, pending["previous_hash"])
    return finalise_record(pending, record_hash)


def tip_hash(last: VehicleRecord | None) -> str:
    """Return the hash a new record should link to."""
    return last.record_hash if last is not None else GENESIS_HASH


def verify_history(vin: str, records: list[VehicleRecord]) -> ChainVerificationResult:
    """
    Walk ``records`` from index 0, re-deriving every hash and checking that
    positions, VINs and mileage are consistent.

    Returns
    -------
    ChainVerificationSuccess
        When every record is intact.
    ChainVerificationFailure
        At the first discrepancy, with its position and reason.
    """
    expected_previous_hash = GENESIS_HASH
    previous_mileage: int | None = None

    def failure(position: int, reason: str) -> ChainVerificationFailure:
        return ChainVerificationFailure(
            vin=vin,
            record_count=len(records),
            broken_at=position,
            reason=reason,
        )

    for position, record in enumerate(records):
        if record.vin != vin or record.index != position:
            return failure(
                position,
                f"Record at position {position} claims vin={record.vin!r} "
                f"index={record.index}.",
            )

        if record.previous_hash != expected_previous_hash:
            return failure(
                position,
                f"Record at position {position} has previous_hash "
                f'"{record.previous_hash}" but expected "{expected_previous_hash}".',
            )

        pending = record.model_dump(exclude={"record_hash"})
        expected_hash = compute_hash(pending, expected_previous_hash)
        if record.record_hash != expected_hash:
            return failure(
                position,
                f'Record at position {position} (id="{record.record_id}") has '
                f'record_hash "{record.record_hash}" but recomputed hash is '
                f'"{expected_hash}". Record content may have been altered.',
            )

        if previous_mileage is not None and record.mileage < previous_mileage:
            return failure(
                position,
                f"Record at position {position} has mileage {record.mileage} "
                f"below the preceding {previous_mileage}.",
            )

        expected_previous_hash = record.record_hash
        previous_mileage = record.mileage

    return ChainVerificationSuccess(vin=vin, record_count=len(records))
