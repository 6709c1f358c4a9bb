from __future__ import annotations

import io
from typing import BinaryIO, TextIO

from egon_core.headers import (
    PrimaryHeader,
    decode_primary,
    decode_secondary,
    format_primary_header,
    format_secondary_header,
    printable,
)
from egon_core.protocol import (
    FILESIZE_ALIGN,
    MAGIC_BOOT1,
    MAGICS,
    PRIMARY_HEADER_LEN,
    SECTOR_SIZE,
)
from .checksum import compute_checksum
from .const import ERRORS, EgonIOError
from .dram import decode, identify

DISCARD_CHUNK = 64 * 1024


def _error(code: str, detail: str, **extra) -> dict:
    return {"code": code, "message": ERRORS[code], "detail": detail, **extra}


def _stage(header: PrimaryHeader) -> str:
    return "boot1" if header.magic == MAGIC_BOOT1 else "boot0"


def header_summary(header: PrimaryHeader) -> dict:
    """JSON-friendly view of the primary header."""
    out = header._asdict()
    for k, v in out.items():
        if isinstance(v, bytes):
            out[k] = printable(v)
    return out


def check_primary_header(header: PrimaryHeader) -> list[dict]:
    """Structural checks, in order. Only the first failure is reported."""
    if header.magic not in MAGICS:
        return [_error("E_MAGIC", printable(header.magic), value=header.magic.hex())]

    if header.header_size != PRIMARY_HEADER_LEN:
        return [_error("E_HEADER_SIZE", str(header.header_size), value=header.header_size)]

    size = header.filesize
    if size & (FILESIZE_ALIGN - 1):
        return [_error("E_FILESIZE_ALIGN", f"{size} bytes (0x{size:04X})", value=size)]

    if not size:
        return [_error("E_FILESIZE_EMPTY", f"{size} bytes (0x{size:04X})", value=size)]

    return []


def skip_image(stream: BinaryIO, count: int) -> None:
    """Move `count` bytes forward, past the rest of an image we do not inspect."""
    if not stream.seekable():
        remaining = count
        while remaining > 0:
            try:
                chunk = stream.read(min(DISCARD_CHUNK, remaining))
            except OSError as e:
                raise EgonIOError("E_SEEK", SECTOR_SIZE + count - remaining, str(e)) from e
            if not chunk:
                raise EgonIOError("E_SEEK", SECTOR_SIZE + count - remaining, "stream ended early")
            remaining -= len(chunk)
        return

    try:
        before = stream.tell()
        stream.seek(count, io.SEEK_CUR)
        # Some file-likes return None from seek(), ask for the position instead.
        after = stream.tell()
    except OSError as e:
        raise EgonIOError("E_SEEK", SECTOR_SIZE, str(e)) from e
    if after != before + count:
        raise EgonIOError("E_SEEK", SECTOR_SIZE, f"short seek ({after - before} of {count} bytes)")


def verify_image(sector: bytes, stream: BinaryIO, verbose: bool = True) -> dict:
    """Check one eGON image whose first sector has already been read.

    `stream` must sit right after `sector`. On a structural failure nothing is
    read from the stream and `sectors_remaining` is 0. Hard I/O failures raise
    EgonIOError.
    """
    if len(sector) != SECTOR_SIZE:
        raise ValueError(f"Expected a {SECTOR_SIZE} byte sector, got {len(sector)}")

    header = decode_primary(sector)
    result = {
        "status": "FAIL",
        "error_count": 0,
        "errors": [],
        "stage": None,
        "header": header_summary(header),
        "filesize": header.filesize,
        "sectors_remaining": 0,
        "checksum": None,
        "dram": None,
    }

    errors = check_primary_header(header)
    if errors:
        result.update(error_count=len(errors), errors=errors)
        return result

    result["stage"] = _stage(header)
    sectors_remaining = header.filesize // SECTOR_SIZE - 1

    if not verbose:
        skip_image(stream, header.filesize - SECTOR_SIZE)
    else:
        computed = compute_checksum(sector, stream, header.filesize)
        result["checksum"] = {
            "computed": computed,
            "declared": header.checksum,
            "match": computed == header.checksum,
        }

        window = decode_secondary(sector, header.header_size).dram_param
        variant, report = identify(window)
        result["dram"] = {
            "variant": variant.value,
            "params": decode(variant, window),
            "report": report,
        }

    result.update(status="PASS", sectors_remaining=sectors_remaining)
    return result


def _write_found(output: TextIO, header: PrimaryHeader) -> None:
    output.write("Found eGON header.\n")
    output.write(f"{_stage(header).capitalize()} Filesize is {header.filesize >> 10}kB.\n")


def validate_and_report(
    sector: bytes,
    stream: BinaryIO,
    output: TextIO,
    verbose: bool = True,
    dump_headers: bool = False,
) -> int:
    """Check one image and write a human readable report to `output`.

    Returns the number of 512-byte sectors that still belong to the image,
    0 when the image was rejected.
    """
    header = decode_primary(sector)
    try:
        result = verify_image(sector, stream, verbose)
    except EgonIOError as e:
        if e.code == "E_READ":
            _write_found(output, header)
        output.write(f"Error: {e}\n")
        raise

    for err in result["errors"]:
        output.write(f"\tERROR: {err['message']}: {err['detail']}\n")
    if result["status"] != "PASS" or not verbose:
        return result["sectors_remaining"]

    _write_found(output, header)
    if dump_headers:
        output.write(format_primary_header(header))
        output.write(format_secondary_header(decode_secondary(sector, header.header_size)))

    checksum = result["checksum"]
    if checksum["match"]:
        output.write("eGON checksum matches.\n")
    else:
        output.write(
            f"eGON checksum mismatch: 0x{checksum['computed']:08X} vs 0x{checksum['declared']:08X}\n"
        )

    output.write("\nLooking for a valid dram parameter structure...\n")
    output.write(result["dram"]["report"])
    return result["sectors_remaining"]
