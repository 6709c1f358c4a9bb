import struct

import pyarrow.parquet as pq
import pytest

from egon_scan.scanner import ImageScanner, scan_images, write_scan_index


@pytest.fixture
def device(tmp_path, imgtool):
    bogus = bytearray(imgtool.build_image("h6", 8192)[:512])
    struct.pack_into("<I", bogus, 20, 64)
    images = [
        imgtool.build_image("h6", 8192),
        bytes(bogus),
        imgtool.build_image("a31", 8192, bad_checksum=True),
        imgtool.build_image("a10", 4096, boot1=True),
    ]
    return imgtool.write_device(tmp_path / "sdcard.img", images, gap_sectors=2)


def test_finds_images_back_to_back(device):
    scanner = ImageScanner(device)
    records = scanner.scan()

    assert [r["offset"] for r in records] == [1024, 10240, 11776, 20992]
    assert [r["status"] for r in records] == ["PASS", "FAIL", "PASS", "PASS"]
    assert [r["checksum_match"] for r in records] == [True, None, False, True]
    assert [r["dram_variant"] for r in records] == ["h6", None, "a31", "a10"]
    assert records[1]["error_code"] == "E_HEADER_SIZE"
    assert records[3]["stage"] == "boot1"
    assert records[3]["sectors_remaining"] == 7

    assert scanner.get_scan_stats() == {
        "images": 3,
        "rejected": 1,
        "skipped_sectors": 8,
        "truncated": 0,
    }


def test_quick_scan_locates_only(device):
    records = scan_images(device, verbose=False)
    assert [r["offset"] for r in records] == [1024, 10240, 11776, 20992]
    assert all(r["checksum_match"] is None for r in records)
    assert all(r["dram_variant"] is None for r in records)
    assert records[0]["sectors_remaining"] == 15


def test_start_and_limit(device):
    records = scan_images(device, start=11776, limit=1)
    assert len(records) == 1
    assert records[0]["magic"] == "eGON.BT0"
    assert records[0]["dram_variant"] == "a31"


@pytest.mark.parametrize("verbose", [True, False])
def test_truncated_image_stops_scan(tmp_path, imgtool, verbose):
    dev = imgtool.write_device(tmp_path / "cut.img", [imgtool.build_image("h6", 8192)[:4096]])

    with pytest.warns(UserWarning, match="offset 0"):
        records = scan_images(dev, verbose=verbose)
    assert [r["status"] for r in records] == ["TRUNCATED"]


def test_trailing_partial_sector(tmp_path):
    dev = tmp_path / "odd.img"
    dev.write_bytes(bytes(700))
    with pytest.warns(UserWarning, match="partial sector"):
        assert scan_images(dev) == []


def test_index_parquet(tmp_path, device):
    out = tmp_path / "index" / "scan.parquet"
    write_scan_index(scan_images(device), out)

    table = pq.read_table(out)
    assert table.num_rows == 4
    assert table.column("offset").to_pylist() == [1024, 10240, 11776, 20992]
    assert table.column("checksum_match").to_pylist() == [True, None, False, True]
    assert table.column("error_code").to_pylist() == [None, "E_HEADER_SIZE", None, None]


def test_empty_index_not_written(tmp_path):
    out = tmp_path / "empty.parquet"
    write_scan_index([], out)
    assert not out.exists()
