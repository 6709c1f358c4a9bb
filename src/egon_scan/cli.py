"""eGON device scanner - find every boot image on a disk image."""
from __future__ import annotations

import json
from pathlib import Path

import click

from egon_scan.scanner import ImageScanner, write_scan_index


def _summary(rec: dict) -> str:
    line = f"0x{rec['offset']:08X} {rec['magic']} {rec['filesize'] >> 10:>5}kB {rec['status']}"
    if rec["error_code"]:
        line += f" {rec['error_code']}"
    if rec["checksum_match"] is not None:
        line += " checksum=" + ("ok" if rec["checksum_match"] else "MISMATCH")
    if rec["dram_variant"]:
        line += f" dram={rec['dram_variant']}"
    return line


def run_scan(device: Path, out: Path | None = None, quick: bool = False, as_json: bool = False) -> list[dict]:
    """Scan a device, print the findings and optionally write the parquet index."""
    scanner = ImageScanner(device)
    records = scanner.scan(verbose=not quick)

    if as_json:
        print(json.dumps(records, sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    else:
        print(f"Scanning: {device}")
        for rec in records:
            print(f"  {_summary(rec)}")

    if out is not None:
        write_scan_index(records, out)

    if not as_json:
        stats = scanner.get_scan_stats()
        print(f"PASS: {stats['images']} image(s) found")
        print(f"  Rejected: {stats['rejected']}")
        print(f"  Truncated: {stats['truncated']}")
        if out is not None and records:
            print(f"  Index: {out}")
    return records


@click.command()
@click.argument("device", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--out", type=click.Path(path_type=Path), help="Write a parquet index of the images found")
@click.option("--quick", is_flag=True, help="Only locate images, skip checksum and DRAM inspection")
@click.option("--json", "as_json", is_flag=True, help="Print the records as JSON")
def main(device: Path, out: Path | None, quick: bool, as_json: bool) -> None:
    """Scan DEVICE for eGON boot images."""
    try:
        run_scan(device, out, quick=quick, as_json=as_json)
    except Exception as e:
        print(f"FATAL: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
