"""eGON header records - decoding and C-style dumps."""
from __future__ import annotations

import struct
from typing import NamedTuple

from .protocol import (
    DRAM_PARAM_COUNT,
    PRIMARY_HEADER_FMT,
    PRIMARY_HEADER_LEN,
    SECONDARY_HEADER_FMT,
    SECONDARY_HEADER_LEN,
    SECTOR_SIZE,
    SECTOR_WORDS,
)


class PrimaryHeader(NamedTuple):
    jump: int
    magic: bytes
    checksum: int
    filesize: int
    header_size: int
    header_version: bytes
    return_address: int
    run_address: int
    egon_version: bytes
    platform_info: bytes


class SecondaryHeader(NamedTuple):
    header_size: int
    header_version: bytes
    dram_param: tuple[int, ...]


def decode_primary(sector: bytes) -> PrimaryHeader:
    """Decode the primary header from the first bytes of sector 0."""
    if len(sector) < PRIMARY_HEADER_LEN:
        raise ValueError(f"Primary header needs {PRIMARY_HEADER_LEN} bytes, got {len(sector)}")
    return PrimaryHeader._make(struct.unpack_from(PRIMARY_HEADER_FMT, sector, 0))


def decode_secondary(sector: bytes, offset: int) -> SecondaryHeader:
    """Decode the secondary header located at `offset` inside sector 0."""
    if offset < 0 or offset + SECONDARY_HEADER_LEN > len(sector):
        raise ValueError(f"Secondary header at offset {offset} does not fit in {len(sector)} bytes")
    values = struct.unpack_from(SECONDARY_HEADER_FMT, sector, offset)
    return SecondaryHeader(values[0], values[1], tuple(values[2:]))


def sector_words(sector: bytes) -> tuple[int, ...]:
    """Split one 512-byte sector into its 128 little-endian words."""
    if len(sector) != SECTOR_SIZE:
        raise ValueError(f"Expected a {SECTOR_SIZE} byte sector, got {len(sector)}")
    return struct.unpack(f"<{SECTOR_WORDS}I", sector)


def printable(raw: bytes) -> str:
    """Render an ASCII tag, masking bytes that are not printable."""
    # Header tags are ASCII, but corrupt images carry anything.
    return "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in raw)


def format_primary_header(header: PrimaryHeader) -> str:
    lines = [
        "struct egon_header header[1] = {",
        f"\t.jump = 0x{header.jump:08X},",
        f'\t.magic = "{printable(header.magic)}",',
        f"\t.checksum = 0x{header.checksum:08X},",
        f"\t.filesize = 0x{header.filesize:08X}, /* {header.filesize}bytes */",
        f"\t.header_size = 0x{header.header_size:08X},",
        f'\t.header_version = "{printable(header.header_version)}",',
        f"\t.return_address = 0x{header.return_address:08X},",
        f"\t.run_address = 0x{header.run_address:08X},",
        f'\t.eGON_version = "{printable(header.egon_version)}",',
        f'\t.platform_info = "{printable(header.platform_info)}",',
        "};",
        "",
    ]
    return "\n".join(lines) + "\n"


def format_secondary_header(header: SecondaryHeader) -> str:
    lines = [
        "struct egon_header_secondary header[1] = {",
        f"\t.header_size = 0x{header.header_size:08X},",
        f'\t.header_version = "{printable(header.header_version)}",',
    ]
    for i in range(DRAM_PARAM_COUNT):
        lines.append(f"\t.dram_param[0x{i:02X}] = 0x{header.dram_param[i]:08X},")
    lines += ["\t/* ... */", "};", ""]
    return "\n".join(lines) + "\n"
