"""eGON Core - Shared boot image layout and record decoding."""
from .headers import (
    PrimaryHeader,
    SecondaryHeader,
    decode_primary,
    decode_secondary,
    format_primary_header,
    format_secondary_header,
    printable,
    sector_words,
)

__all__ = [
    "PrimaryHeader",
    "SecondaryHeader",
    "decode_primary",
    "decode_secondary",
    "format_primary_header",
    "format_secondary_header",
    "printable",
    "sector_words",
]
