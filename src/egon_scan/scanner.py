from __future__ import annotations

import os
from pathlib import Path
from warnings import warn

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from egon_core.headers import decode_primary, printable
from egon_core.protocol import MAGIC_OFFSET, MAGICS, SECTOR_SIZE
from egon_verify.const import EgonIOError
from egon_verify.logic import verify_image

INDEX_SCHEMA = pa.schema(
    [
        ("offset", pa.int64()),
        ("stage", pa.string()),
        ("magic", pa.string()),
        ("filesize", pa.int64()),
        ("status", pa.string()),
        ("error_code", pa.string()),
        ("checksum_match", pa.bool_()),
        ("dram_variant", pa.string()),
        ("sectors_remaining", pa.int64()),
    ]
)


class ImageScanner:
    """Walk a disk image sector by sector and check every eGON image on it.

    - Sectors without a known magic are skipped.
    - A rejected candidate costs one sector, scanning resumes right after it.
    - An image running past the end of the device stops the scan.
    """

    def __init__(self, device_path: Path):
        self.device_path = Path(device_path)
        self.scan_stats = {
            "images": 0,
            "rejected": 0,
            "skipped_sectors": 0,
            "truncated": 0,
        }

    def get_scan_stats(self) -> dict:
        return dict(self.scan_stats)

    def _record(self, offset: int, sector: bytes, result: dict | None, status: str) -> dict:
        header = decode_primary(sector)
        rec = {
            "offset": int(offset),
            "stage": None,
            "magic": printable(header.magic),
            "filesize": int(header.filesize),
            "status": status,
            "error_code": None,
            "checksum_match": None,
            "dram_variant": None,
            "sectors_remaining": 0,
        }
        if result is not None:
            rec["stage"] = result["stage"]
            rec["sectors_remaining"] = int(result["sectors_remaining"])
            if result["errors"]:
                rec["error_code"] = result["errors"][0]["code"]
            if result["checksum"] is not None:
                rec["checksum_match"] = bool(result["checksum"]["match"])
            if result["dram"] is not None:
                rec["dram_variant"] = result["dram"]["variant"]
        return rec

    def scan(self, verbose: bool = True, start: int = 0, limit: int | None = None) -> list[dict]:
        records: list[dict] = []

        with open(self.device_path, "rb") as f:
            device_size = os.fstat(f.fileno()).st_size
            f.seek(start)
            while limit is None or len(records) < limit:
                offset = f.tell()
                sector = f.read(SECTOR_SIZE)

                # Clean EOF
                if len(sector) == 0:
                    break

                if len(sector) < SECTOR_SIZE:
                    warn(f"Trailing partial sector at offset {offset} ({len(sector)} bytes)")
                    break

                if sector[MAGIC_OFFSET:MAGIC_OFFSET + 8] not in MAGICS:
                    self.scan_stats["skipped_sectors"] += 1
                    continue

                try:
                    result = verify_image(sector, f, verbose=verbose)
                except EgonIOError as e:
                    warn(f"Truncated eGON image at offset {offset}: {e}. Stopping scan.")
                    self.scan_stats["truncated"] += 1
                    records.append(self._record(offset, sector, None, "TRUNCATED"))
                    break

                if result["status"] != "PASS":
                    self.scan_stats["rejected"] += 1
                    records.append(self._record(offset, sector, result, "FAIL"))
                    continue

                # A forward seek past the end succeeds on regular files.
                if f.tell() > device_size:
                    warn(f"eGON image at offset {offset} runs past end of device. Stopping scan.")
                    self.scan_stats["truncated"] += 1
                    records.append(self._record(offset, sector, result, "TRUNCATED"))
                    break

                self.scan_stats["images"] += 1
                records.append(self._record(offset, sector, result, "PASS"))

        return records


def scan_images(
    device_path: Path,
    verbose: bool = True,
    start: int = 0,
    limit: int | None = None,
) -> list[dict]:
    """Find and check all eGON images on a device or disk image."""
    return ImageScanner(device_path).scan(verbose=verbose, start=start, limit=limit)


def write_scan_index(records: list[dict], out_path: Path) -> None:
    """Write scan records to a parquet index. Nothing is written for an empty scan."""
    df = pd.DataFrame(records, columns=INDEX_SCHEMA.names)
    if df.empty:
        return

    df = df.sort_values("offset")
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    table = pa.Table.from_pandas(df, schema=INDEX_SCHEMA, preserve_index=False)
    pq.write_table(table, out_path)
