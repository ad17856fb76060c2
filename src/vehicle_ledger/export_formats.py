# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Export helpers: serialise VehicleRecord lists to JSON and CSV.

- JSON: standard JSON array, human-readable with 2-space indentation.
- CSV:  RFC 4180 CSV with a header row; every column present on every row.
"""

from __future__ import annotations

import csv
import io
import json

from vehicle_ledger.errors import InvalidInputError
from vehicle_ledger.types import VehicleRecord

# ---------------------------------------------------------------------------
# JSON export
# ---------------------------------------------------------------------------


def export_json(records: list[VehicleRecord]) -> str:
    """Serialise records to a JSON array string with 2-space indentation."""
    return json.dumps(
        [record.model_dump(mode="json") for record in records],
        indent=2,
        ensure_ascii=False,
    )


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------

CSV_COLUMNS: list[str] = [
    "record_id",
    "vin",
    "index",
    "timestamp",
    "mileage",
    "content_ref",
    "category",
    "recorder",
    "previous_hash",
    "record_hash",
]


def _record_to_csv_row(record: VehicleRecord) -> list[str]:
    raw = record.model_dump(mode="json")
    return [str(raw[column]) for column in CSV_COLUMNS]


def export_csv(records: list[VehicleRecord]) -> str:
    """
    Serialise records to CSV format.

    The first row contains column headers.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for record in records:
        writer.writerow(_record_to_csv_row(record))
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

_EXPORTERS = {
    "json": export_json,
    "csv": export_csv,
}


def export_records(records: list[VehicleRecord], export_format: str) -> str:
    """
    Serialise ``records`` in the requested format.

    Raises:
        InvalidInputError: If ``export_format`` is not ``"json"`` or ``"csv"``.
    """
    exporter = _EXPORTERS.get(export_format.lower())
    if exporter is None:
        raise InvalidInputError(
            "export_format",
            f"{export_format!r} is not supported; expected one of {sorted(_EXPORTERS)}.",
        )
    return exporter(records)
