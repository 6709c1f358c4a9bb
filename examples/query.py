"""Query a scan index - list images whose checksum did not verify."""
from __future__ import annotations

import sys
from pathlib import Path

import duckdb


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python query.py <index.parquet> [dram_variant]")
        print("Example: python query.py scan.parquet h6")
        sys.exit(1)

    index = Path(sys.argv[1])
    variant = sys.argv[2] if len(sys.argv) > 2 else None

    con = duckdb.connect(":memory:")
    con.execute(f"CREATE VIEW images AS SELECT * FROM '{index}'")

    sql = """
    SELECT offset, magic, filesize, status, dram_variant
    FROM images
    WHERE status = 'PASS'
      AND checksum_match = FALSE
    """
    params: list = []
    if variant:
        sql += " AND dram_variant = ?"
        params.append(variant)
    sql += " ORDER BY offset"

    print(f"--- Checksum mismatches: {index} ---\n")

    df = con.execute(sql, params).fetchdf()
    if df.empty:
        print("No mismatching images found.")
    else:
        for _, row in df.iterrows():
            print(f"IMAGE @ 0x{int(row['offset']):08X}: {row['magic']}")
            print(f"  Size: {int(row['filesize']) >> 10}kB")
            print(f"  DRAM: {row['dram_variant']}")
            print()


if __name__ == "__main__":
    main()
