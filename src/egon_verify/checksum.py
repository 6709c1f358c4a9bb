from __future__ import annotations

from typing import BinaryIO, Iterable, Iterator, Sequence

from egon_core.headers import sector_words
from egon_core.protocol import CHECKSUM_SEED, CHECKSUM_WORD_INDEX, SECTOR_SIZE
from .const import EgonIOError


def checksum_words(sector0: Sequence[int], later_sectors: Iterable[Sequence[int]] = ()) -> int:
    """Seed plus every word of the image, skipping the checksum word of sector 0."""
    acc = CHECKSUM_SEED
    for i, word in enumerate(sector0):
        if i == CHECKSUM_WORD_INDEX:
            continue
        acc = (acc + word) & 0xFFFFFFFF
    for words in later_sectors:
        acc = (acc + sum(words)) & 0xFFFFFFFF
    return acc


def iter_sectors(stream: BinaryIO, start: int, end: int) -> Iterator[tuple[int, ...]]:
    """Yield the words of each sector in [start, end), reading from the current position."""
    offset = start
    while offset < end:
        try:
            data = stream.read(SECTOR_SIZE)
        except OSError as e:
            raise EgonIOError("E_READ", offset, str(e)) from e
        if data is None or len(data) != SECTOR_SIZE:
            got = 0 if data is None else len(data)
            raise EgonIOError("E_READ", offset, f"short read ({got} of {SECTOR_SIZE} bytes)")
        yield sector_words(data)
        offset += SECTOR_SIZE


def compute_checksum(sector0: bytes, stream: BinaryIO, filesize: int) -> int:
    """Stream the rest of the image from `stream` and return its eGON checksum."""
    return checksum_words(sector_words(sector0), iter_sectors(stream, SECTOR_SIZE, filesize))
