# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2026 MuVeraAI Corporation

"""
Append-only file storage backend.

Records for all vehicles are stored one JSON object per line (NDJSON / JSON
Lines format) in a single file.  Records are only ever appended; nothing
written as a complete line is rewritten or removed.

Reading always parses the entire file from disk so that the in-process view
stays consistent with anything appended by other writers.  A final line that
is not yet newline-terminated belongs to a write in progress and is ignored,
so readers only ever see whole records.  If that fragment was left by a
writer that died mid-line, the next append cuts it off before writing, so
the new record always starts on a line of its own.  Appends through one
``FileStorage`` are serialised; separate processes writing the same file
are not coordinated.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import aiofiles
from pydantic import ValidationError

from vehicle_ledger.errors import StorageError
from vehicle_ledger.storage.interface import LedgerStorage
from vehicle_ledger.types import VehicleRecord

logger = logging.getLogger("vehicle_ledger.storage")


class FileStorage(LedgerStorage):
    """
    Persistent, append-only NDJSON file storage backend.

    Parameters
    ----------
    file_path:
        Path to the NDJSON file.  The file and its parent directory are
        created on first append if they do not exist.
    """

    def __init__(self, file_path: str | Path) -> None:
        self._file_path = Path(file_path)
        self._write_lock = asyncio.Lock()

    @property
    def file_path(self) -> Path:
        return self._file_path

    async def append(self, record: VehicleRecord) -> None:
        line = json.dumps(record.model_dump(mode="json"), ensure_ascii=False) + "\n"
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._write_lock:
            await self._drop_torn_tail()
            async with aiofiles.open(self._file_path, mode="a", encoding="utf-8") as file_handle:
                await file_handle.write(line)
                await file_handle.flush()

    async def history(self, vin: str) -> list[VehicleRecord]:
        return [record for record in await self._read_all() if record.vin == vin]

    async def last(self, vin: str) -> VehicleRecord | None:
        records = await self.history(vin)
        return records[-1] if records else None

    async def vins(self) -> list[str]:
        seen: dict[str, None] = {}
        for record in await self._read_all():
            seen.setdefault(record.vin, None)
        return list(seen)

    async def count(self, vin: str | None = None) -> int:
        if vin is not None:
            return len(await self.history(vin))
        return len(await self._read_all())

    async def _read_all(self) -> list[VehicleRecord]:
        if not self._file_path.exists():
            return []

        async with aiofiles.open(self._file_path, mode="r", encoding="utf-8") as file_handle:
            content = await file_handle.read()

        lines = content.split("\n")
        # The element after the last newline is either "" or a partial write.
        complete_lines = lines[:-1]

        records: list[VehicleRecord] = []
        for line_number, line in enumerate(complete_lines, start=1):
            stripped = line.strip()
            if not stripped:
                continue
            try:
                records.append(VehicleRecord.model_validate(json.loads(stripped)))
            except (json.JSONDecodeError, ValidationError) as exc:
                raise StorageError(
                    f"{self._file_path}:{line_number}: unreadable record ({exc})."
                ) from exc
        return records

    async def _drop_torn_tail(self) -> None:
        """Cut an unterminated final line left behind by an interrupted write."""
        if not self._file_path.exists():
            return

        async with aiofiles.open(self._file_path, mode="rb+") as file_handle:
            content = await file_handle.read()
            if not content or content.endswith(b"\n"):
                return
            keep = content.rfind(b"\n") + 1
            await file_handle.truncate(keep)

        logger.warning(
            "Dropped %d byte(s) of an incomplete record at the end of %s",
            len(content) - keep,
            self._file_path,
        )
