# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation
"""
Tests for storage backends, hash-chain verification, queries and export.
"""

from __future__ import annotations

import asyncio
import csv
import io
import json
from pathlib import Path

import pytest

from conftest import ADMIN, GARAGE
from vehicle_ledger.chain import GENESIS_HASH, verify_history
from vehicle_ledger.errors import InvalidInputError, MileageRollbackError, StorageError
from vehicle_ledger.ledger import VehicleLedger
from vehicle_ledger.query import HistoryQuery
from vehicle_ledger.registry import AccessControlRegistry
from vehicle_ledger.storage.file import FileStorage
from vehicle_ledger.types import ChainVerificationFailure, ChainVerificationSuccess


async def _seed(ledger: VehicleLedger, vin: str = "VIN1") -> None:
    await ledger.append_record(ADMIN, vin, 1_000, "bafy-oil", "Maintenance")
    await ledger.append_record(ADMIN, vin, 5_000, "bafy-brakes", "Repair")
    await ledger.append_record(ADMIN, vin, 9_500, "bafy-crash", "Accident")


# ---------------------------------------------------------------------------
# TestFileStorage
# ---------------------------------------------------------------------------


class TestFileStorage:
    @pytest.mark.asyncio
    async def test_missing_file_reads_as_empty(self, tmp_path: Path) -> None:
        storage = FileStorage(tmp_path / "absent.ndjson")
        assert await storage.history("VIN1") == []
        assert await storage.last("VIN1") is None
        assert await storage.vins() == []
        assert await storage.count() == 0

    @pytest.mark.asyncio
    async def test_records_are_written_one_per_line(
        self, file_ledger: VehicleLedger, history_path: Path
    ) -> None:
        await _seed(file_ledger)
        lines = history_path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 3
        assert [json.loads(line)["mileage"] for line in lines] == [1_000, 5_000, 9_500]

    @pytest.mark.asyncio
    async def test_history_survives_a_new_ledger_instance(
        self, file_ledger: VehicleLedger, history_path: Path
    ) -> None:
        await _seed(file_ledger)
        original = await file_ledger.get_history("VIN1")

        reopened = VehicleLedger(AccessControlRegistry(ADMIN), storage=FileStorage(history_path))
        assert await reopened.get_history("VIN1") == original

        with pytest.raises(MileageRollbackError) as excinfo:
            await reopened.append_record(ADMIN, "VIN1", 9_000, "ref", "Repair")
        assert excinfo.value.previous == 9_500

        record = await reopened.append_record(ADMIN, "VIN1", 12_000, "ref", "Inspection")
        assert record.index == 3
        assert record.previous_hash == original[-1].record_hash
        assert record.timestamp >= original[-1].timestamp
        assert (await reopened.verify("VIN1")).valid is True

    @pytest.mark.asyncio
    async def test_partial_trailing_line_is_ignored(
        self, file_ledger: VehicleLedger, history_path: Path
    ) -> None:
        await _seed(file_ledger)
        with history_path.open("a", encoding="utf-8") as handle:
            handle.write('{"record_id": "half-writ')
        assert await file_ledger.count("VIN1") == 3

    @pytest.mark.asyncio
    async def test_append_after_torn_write_keeps_file_readable(
        self, file_ledger: VehicleLedger, history_path: Path
    ) -> None:
        await _seed(file_ledger)
        with history_path.open("a", encoding="utf-8") as handle:
            handle.write('{"record_id": "x", "vin": "VIN1"')

        record = await file_ledger.append_record(ADMIN, "VIN1", 11_000, "bafy-tyres", "Maintenance")

        history = await file_ledger.get_history("VIN1")
        assert [r.mileage for r in history] == [1_000, 5_000, 9_500, 11_000]
        assert history[-1] == record
        assert (await file_ledger.verify("VIN1")).valid is True
        lines = history_path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 4
        assert all(json.loads(line)["vin"] == "VIN1" for line in lines)

    @pytest.mark.asyncio
    async def test_torn_write_in_otherwise_empty_file_is_dropped(self, history_path: Path) -> None:
        history_path.parent.mkdir(parents=True)
        history_path.write_text('{"record_id": "half-writ', encoding="utf-8")
        ledger = VehicleLedger(AccessControlRegistry(ADMIN), storage=FileStorage(history_path))

        record = await ledger.append_record(ADMIN, "VIN1", 10, "ref", "Inspection")

        assert record.index == 0
        assert await ledger.get_history("VIN1") == [record]

    @pytest.mark.asyncio
    async def test_corrupt_complete_line_raises(
        self, file_ledger: VehicleLedger, history_path: Path
    ) -> None:
        await _seed(file_ledger)
        with history_path.open("a", encoding="utf-8") as handle:
            handle.write("not json\n")
        with pytest.raises(StorageError, match=":4:"):
            await file_ledger.get_history("VIN1")

    @pytest.mark.asyncio
    async def test_multiple_vins_share_one_file(self, file_ledger: VehicleLedger) -> None:
        await _seed(file_ledger, "VIN-A")
        await _seed(file_ledger, "VIN-B")
        assert await file_ledger.vins() == ["VIN-A", "VIN-B"]
        assert await file_ledger.count() == 6
        assert await file_ledger.count("VIN-B") == 3

    @pytest.mark.asyncio
    async def test_concurrent_appends_to_different_vins_stay_line_aligned(
        self, file_ledger: VehicleLedger, history_path: Path
    ) -> None:
        vins = [f"VIN-{n}" for n in range(10)]
        await asyncio.gather(
            *(file_ledger.append_record(ADMIN, vin, 100, "ref", "Repair") for vin in vins)
        )
        lines = history_path.read_text(encoding="utf-8").splitlines()
        assert sorted(json.loads(line)["vin"] for line in lines) == sorted(vins)
        assert await file_ledger.count() == 10


# ---------------------------------------------------------------------------
# TestVerify
# ---------------------------------------------------------------------------


class TestVerify:
    @pytest.mark.asyncio
    async def test_intact_history_verifies(self, ledger: VehicleLedger) -> None:
        await _seed(ledger)
        result = await ledger.verify("VIN1")
        assert isinstance(result, ChainVerificationSuccess)
        assert result.record_count == 3

    @pytest.mark.asyncio
    async def test_first_record_links_to_genesis(self, ledger: VehicleLedger) -> None:
        record = await ledger.append_record(ADMIN, "VIN1", 1, "ref", "Repair")
        assert record.previous_hash == GENESIS_HASH

    @pytest.mark.asyncio
    async def test_unknown_vin_verifies_empty(self, ledger: VehicleLedger) -> None:
        result = await ledger.verify("NO-SUCH-VIN")
        assert result.valid is True
        assert result.record_count == 0

    @pytest.mark.asyncio
    async def test_edited_mileage_in_file_is_detected(
        self, file_ledger: VehicleLedger, history_path: Path
    ) -> None:
        await _seed(file_ledger)
        lines = history_path.read_text(encoding="utf-8").splitlines()
        tampered = json.loads(lines[1])
        tampered["mileage"] = 500
        lines[1] = json.dumps(tampered)
        history_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

        result = await file_ledger.verify("VIN1")
        assert isinstance(result, ChainVerificationFailure)
        assert result.broken_at == 1
        assert "altered" in result.reason

    @pytest.mark.asyncio
    async def test_reordered_records_are_detected(self, ledger: VehicleLedger) -> None:
        await _seed(ledger)
        records = await ledger.get_history("VIN1")
        result = verify_history("VIN1", [records[1], records[0], records[2]])
        assert result.valid is False
        assert result.broken_at == 0


# ---------------------------------------------------------------------------
# TestHistoryQuery
# ---------------------------------------------------------------------------


class TestHistoryQuery:
    @pytest.mark.asyncio
    async def test_find_by_recorder_across_vins(
        self, ledger: VehicleLedger, registry: AccessControlRegistry
    ) -> None:
        registry.authorize(ADMIN, GARAGE)
        await ledger.append_record(GARAGE, "VIN-A", 10, "a", "Repair")
        await ledger.append_record(ADMIN, "VIN-B", 10, "b", "Repair")
        await ledger.append_record(GARAGE, "VIN-B", 20, "c", "Repair")

        query = HistoryQuery(ledger.storage)
        found = await query.find_by_recorder(GARAGE)
        assert [(r.vin, r.mileage) for r in found] == [("VIN-A", 10), ("VIN-B", 20)]
        assert len(await query.find_by_recorder(GARAGE, vin="VIN-A")) == 1

    @pytest.mark.asyncio
    async def test_current_mileage(self, ledger: VehicleLedger) -> None:
        await _seed(ledger)
        assert await ledger.query.current_mileage("VIN1") == 9_500
        assert await ledger.query.current_mileage("VIN2") is None

    @pytest.mark.asyncio
    async def test_find_by_category(self, ledger: VehicleLedger) -> None:
        await _seed(ledger)
        accidents = await ledger.query.find_by_category("VIN1", "Accident")
        assert [r.content_ref for r in accidents] == ["bafy-crash"]


# ---------------------------------------------------------------------------
# TestExport
# ---------------------------------------------------------------------------


class TestExport:
    @pytest.mark.asyncio
    async def test_json_export(self, ledger: VehicleLedger) -> None:
        await _seed(ledger)
        exported = json.loads(await ledger.export_history("VIN1", "json"))
        assert [row["category"] for row in exported] == ["Maintenance", "Repair", "Accident"]
        assert exported[0]["recorder"] == ADMIN

    @pytest.mark.asyncio
    async def test_csv_export_has_header_and_rows(self, ledger: VehicleLedger) -> None:
        await _seed(ledger)
        exported = await ledger.export_history("VIN1", "CSV")
        rows = list(csv.DictReader(io.StringIO(exported)))
        assert len(rows) == 3
        assert rows[2]["mileage"] == "9500"
        assert rows[2]["index"] == "2"

    @pytest.mark.asyncio
    async def test_unknown_format_rejected(self, ledger: VehicleLedger) -> None:
        with pytest.raises(InvalidInputError):
            await ledger.export_history("VIN1", "xml")
