"""DRAM parameter layout detection for boot0 images.

The 32 words following the secondary header have no declared layout. Each SoC
family stores a different struct there, so the layout is guessed: every known
layout is decoded over the same words and the first one whose fields look
plausible wins.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from egon_core.protocol import DRAM_PARAM_COUNT


class Variant(str, Enum):
    A10 = "a10"
    A31 = "a31"
    H6 = "h6"
    H616 = "h616"
    RAW = "raw"


def _tprs(*nums: int) -> tuple[str, ...]:
    return tuple(f"tpr{n}" for n in nums)


def _mrs(*nums: int) -> tuple[str, ...]:
    return tuple(f"mr{n}" for n in nums)


def _clk(lo: int, hi: int) -> Callable[[int], bool]:
    return lambda v: lo <= v <= hi


def _one_of(*allowed: int) -> Callable[[int], bool]:
    return lambda v: v in allowed


def _lane_nibbles(v: int) -> bool:
    # Per-lane settings only use the low nibble of each byte.
    return not (v & 0xF0F0F0F0)


@dataclass(frozen=True)
class DramLayout:
    variant: Variant
    matches: str
    fields: tuple[str, ...]
    checks: tuple[tuple[str, Callable[[int], bool]], ...]
    decimal: frozenset = frozenset({"clk", "type", "odt_en", "bits"})
    padded: frozenset = frozenset()
    upper_hex: bool = False
    trailer: str = ""
    heading: str = "; For "
    notes: dict = field(default_factory=dict)

    def decode(self, window: Sequence[int]) -> dict[str, int]:
        return dict(zip(self.fields, window))

    def first_failure(self, params: dict[str, int]) -> str | None:
        """Name of the first field failing its plausibility check, or None."""
        for name, ok in self.checks:
            if not ok(params[name]):
                return name
        return None

    def format_value(self, name: str, value: int) -> str:
        if name in self.decimal:
            return str(value)
        if name in self.padded:
            return f"0x{value:08X}" if self.upper_hex else f"0x{value:08x}"
        return f"0x{value:X}" if self.upper_hex else f"0x{value:x}"

    def format(self, params: dict[str, int]) -> list[str]:
        lines = ["", f"{self.heading}{self.matches}", "[dram para]", ""]
        for name in self.fields:
            line = f"{'dram_' + name:<18} = {self.format_value(name, params[name])}{self.trailer}"
            if name in self.notes:
                line += f" ; {self.notes[name]}"
            lines.append(line)
        lines.append("")
        return lines


_DDR_TYPES = _one_of(2, 3, 6, 7)  # DDR2, DDR3, LPDDR2, LPDDR3
_ODT = _one_of(0, 1)

LAYOUT_A10 = DramLayout(
    variant=Variant.A10,
    matches="A10/A10s/A13/A20",
    heading="; ",
    fields=(
        "baseaddr", "clk", "type", "rank_num", "chip_density", "io_width",
        "bus_width", "cas", "zq", "odt_en", "size",
    ) + _tprs(0, 1, 2, 3, 4, 5) + ("emr1", "emr2", "emr3"),
    checks=(
        # Base address of DRAM, 0x40000000 in practice.
        ("baseaddr", lambda v: not (v & 0x0FFFFFFF)),
        ("clk", _clk(100, 1000)),
        ("type", _one_of(2, 3)),
        ("odt_en", _ODT),
    ),
)

LAYOUT_A31 = DramLayout(
    variant=Variant.A31,
    matches="A31/A23/A33/A83T/A64/H3",
    fields=("clk", "type", "zq", "odt_en", "para1", "para2")
    + _mrs(0, 1, 2, 3)
    + _tprs(*range(14))
    + ("bits",),
    checks=(
        ("clk", _clk(100, 1000)),
        ("type", _DDR_TYPES),
        ("odt_en", _ODT),
    ),
    padded=frozenset(_tprs(0, 1, 2, 3, 11, 12, 13)),
)

LAYOUT_H6 = DramLayout(
    variant=Variant.H6,
    matches="H6",
    fields=("clk", "type", "zq", "odt_en", "para1", "para2")
    + _mrs(*range(7))
    + _tprs(*range(14))
    + ("bits",),
    checks=(
        ("clk", _clk(100, 1000)),
        ("type", _DDR_TYPES),
        ("odt_en", _ODT),
        ("bits", _one_of(16, 32)),
    ),
    padded=frozenset(_tprs(0, 1, 2, 3, 11, 12, 13)),
)

LAYOUT_H616 = DramLayout(
    variant=Variant.H616,
    matches="H616/H700/A523",
    fields=("clk", "type", "dx_odt", "dx_dri", "ca_dri", "para0", "para1", "para2")
    + _mrs(0, 1, 2, 3, 4, 5, 6, 11, 12, 13, 14, 16, 17, 22)
    + _tprs(0, 1, 2, 3, 6, 10, 11, 12, 13, 14),
    checks=(
        ("clk", _clk(100, 1200)),
        # adds DDR4 and LPDDR4
        ("type", _one_of(2, 3, 4, 6, 7, 8)),
        ("dx_odt", _lane_nibbles),
        ("dx_dri", _lane_nibbles),
    ),
    decimal=frozenset({"clk", "type"}),
    padded=frozenset({"dx_odt", "dx_dri", "ca_dri", "para0", "para1", "para2"})
    | frozenset(_tprs(0, 6, 10, 11, 12)),
    upper_hex=True,
    trailer=",",
    notes={
        "para0": "aka odt_en on H616/H700",
        "tpr14": "unused and 0 on anything but A523",
    },
)

# H6 must be tried before A31: every plausible H6 window is also a plausible
# A31 window, only .bits tells them apart.
LAYOUTS = (LAYOUT_H6, LAYOUT_A31, LAYOUT_A10, LAYOUT_H616)
LAYOUTS_BY_VARIANT = {layout.variant: layout for layout in LAYOUTS}


def _check_window(window: Sequence[int]) -> tuple[int, ...]:
    words = tuple(window)
    if len(words) != DRAM_PARAM_COUNT:
        raise ValueError(f"DRAM parameter window must hold {DRAM_PARAM_COUNT} words, got {len(words)}")
    return words


def decode(variant: Variant, window: Sequence[int]) -> dict[str, int]:
    """Interpret the window under one variant's field layout."""
    words = _check_window(window)
    if variant == Variant.RAW:
        return {f"{i:02d}": w for i, w in enumerate(words)}
    return LAYOUTS_BY_VARIANT[Variant(variant)].decode(words)


def format_raw(window: Sequence[int]) -> list[str]:
    lines = ["; Unknown structure"]
    for i, word in enumerate(window):
        lines.append(f"dram_{i:02d}\t= 0x{word:08X}")
    return lines


def identify(window: Sequence[int]) -> tuple[Variant, str]:
    """Pick the first plausible layout for the window and render its report.

    Layouts that get rejected leave a one-line note naming the offending field,
    so the report also explains why earlier candidates lost.
    """
    words = _check_window(window)
    lines: list[str] = []
    for layout in LAYOUTS:
        params = layout.decode(words)
        bad = layout.first_failure(params)
        if bad is not None:
            lines.append(f"Invalid structure for {layout.matches}: wrong {bad}: 0x{params[bad]:08X}")
            continue
        lines.append(f"Parameters seem valid for {layout.matches}.")
        lines += layout.format(params)
        return layout.variant, "\n".join(lines) + "\n"

    lines += format_raw(words)
    return Variant.RAW, "\n".join(lines) + "\n"
