import pytest

from egon_verify.dram import (
    LAYOUTS,
    LAYOUTS_BY_VARIANT,
    Variant,
    decode,
    identify,
)


def window(**words):
    """32 zero words with selected indices set, e.g. window(w0=200)."""
    w = [0] * 32
    for k, v in words.items():
        w[int(k[1:])] = v
    return w


def report_fields(report: str) -> dict:
    fields = {}
    for line in report.splitlines():
        if line.startswith("dram_") and "=" in line:
            key, _, rest = line.partition("=")
            fields[key.strip()] = rest.split(";")[0].strip().rstrip(",")
    return fields


def test_h6_wins_over_a31():
    # clk=200, type=3, odt_en=0 satisfies A31, bits=16 at word 27 makes it H6 as well
    w = window(w0=200, w1=3, w3=0, w27=16)
    assert LAYOUTS_BY_VARIANT[Variant.A31].first_failure(decode(Variant.A31, w)) is None

    tag, report = identify(w)
    assert tag is Variant.H6
    assert "Parameters seem valid for H6." in report
    assert "A31" not in report


def test_without_bits_falls_to_a31():
    tag, report = identify(window(w0=200, w1=3, w3=0, w27=8))
    assert tag is Variant.A31
    assert report.splitlines()[0] == "Invalid structure for H6: wrong bits: 0x00000008"


@pytest.mark.parametrize("variant", ["a10", "a31", "h6", "h616"])
def test_each_variant_detected_alone(imgtool, variant):
    w = imgtool._window(variant)
    expected = Variant(variant)

    others = [layout for layout in LAYOUTS if layout.variant is not expected]
    if expected is Variant.H6:
        # every H6 window is a plausible A31 window too
        others = [layout for layout in others if layout.variant is not Variant.A31]
    assert all(layout.first_failure(layout.decode(w)) is not None for layout in others)

    tag, report = identify(w)
    assert tag is expected
    fields = report_fields(report)
    layout = LAYOUTS_BY_VARIANT[expected]
    assert list(fields) == [f"dram_{name}" for name in layout.fields]
    assert fields["dram_clk"] == str(w[layout.fields.index("clk")])
    assert fields["dram_type"] == str(w[layout.fields.index("type")])


def test_unknown_dumps_every_word_in_order():
    w = [0xDEAD0000 + i for i in range(32)]
    tag, report = identify(w)

    assert tag is Variant.RAW
    assert "; Unknown structure" in report
    dumped = [int(v, 16) for v in report_fields(report).values()]
    assert dumped == w
    assert "dram_31\t= 0xDEAD001F" in report


def test_every_rejection_is_explained():
    _, report = identify([0xFFFFFFFF] * 32)
    assert report.splitlines()[:4] == [
        "Invalid structure for H6: wrong clk: 0xFFFFFFFF",
        "Invalid structure for A31/A23/A33/A83T/A64/H3: wrong clk: 0xFFFFFFFF",
        "Invalid structure for A10/A10s/A13/A20: wrong baseaddr: 0xFFFFFFFF",
        "Invalid structure for H616/H700/A523: wrong clk: 0xFFFFFFFF",
    ]


@pytest.mark.parametrize(
    "w,expected",
    [
        (window(w0=0x40000000, w1=99, w2=3), Variant.RAW),
        (window(w0=0x40000000, w1=100, w2=3), Variant.A10),
        (window(w0=0x40000000, w1=1000, w2=2, w9=1), Variant.A10),
        (window(w0=0x40000000, w1=500, w2=6), Variant.RAW),
        (window(w0=0x40000000, w1=500, w2=3, w9=2), Variant.RAW),
        (window(w0=0x40000001, w1=500, w2=3), Variant.RAW),
        (window(w0=1001, w1=3), Variant.H616),
        (window(w0=1200, w1=8), Variant.H616),
        (window(w0=1201, w1=8), Variant.RAW),
        (window(w0=720, w1=4, w2=2, w3=0x0F0F0F0F), Variant.H616),
        (window(w0=720, w1=4, w2=0x10, w3=0x0F0F0F0F), Variant.RAW),
        (window(w0=720, w1=4, w2=2, w3=0x0F0F0F8F), Variant.RAW),
        (window(w0=720, w1=5), Variant.RAW),
    ],
)
def test_boundaries(w, expected):
    assert identify(w)[0] is expected


def test_number_bases_and_padding(imgtool):
    _, a31 = identify(imgtool._window("a31"))
    fields = report_fields(a31)
    assert fields["dram_tpr0"] == "0x0048a192"
    assert fields["dram_zq"] == "0x3b3bfb"
    assert fields["dram_odt_en"] == "1"

    _, h616 = identify(imgtool._window("h616"))
    fields = report_fields(h616)
    assert fields["dram_ca_dri"] == "0x00001E1E"
    assert fields["dram_mr0"] == "0x840"
    assert "; aka odt_en on H616/H700" in h616

    _, a10 = identify(imgtool._window("a10"))
    assert report_fields(a10)["dram_baseaddr"] == "0x40000000"


def test_identify_is_pure():
    w = window(w0=744, w1=7, w3=1, w27=32)
    snapshot = list(w)
    first = identify(w)
    second = identify(tuple(w))
    assert first == second
    assert w == snapshot


@pytest.mark.parametrize("n", [0, 31, 33])
def test_window_size_enforced(n):
    with pytest.raises(ValueError):
        identify([0] * n)


def test_decode_raw():
    w = list(range(32))
    params = decode(Variant.RAW, w)
    assert params["00"] == 0
    assert params["31"] == 31
    assert decode("h6", w)["bits"] == 27


@pytest.mark.parametrize("variant", ["a10", "a31", "h6", "h616"])
def test_sample_windows_fill_their_layout(imgtool, variant):
    assert len(imgtool.DRAM_WINDOWS[variant]) == len(LAYOUTS_BY_VARIANT[Variant(variant)].fields)


def test_h6_sample_is_h6(imgtool):
    w = imgtool._window("h6")
    assert w[27] == 32
    assert identify(w)[0] is Variant.H6


@pytest.mark.parametrize(
    "variant,heading",
    [
        ("a10", "; A10/A10s/A13/A20"),
        ("a31", "; For A31/A23/A33/A83T/A64/H3"),
        ("h6", "; For H6"),
        ("h616", "; For H616/H700/A523"),
    ],
)
def test_report_heading(imgtool, variant, heading):
    _, report = identify(imgtool._window(variant))
    lines = report.splitlines()
    assert lines[lines.index("[dram para]") - 1] == heading
