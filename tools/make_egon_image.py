"""Generate synthetic eGON boot images for tests and demos."""
import struct
from pathlib import Path

SECTOR_SIZE = 512
SEED = 0x5F0A6C39

# Representative DRAM parameter words per SoC family, padded to 32 words.
DRAM_WINDOWS = {
    # baseaddr, clk, type, rank_num, chip_density, io_width, bus_width, cas,
    # zq, odt_en, size, tpr0..tpr5, emr1..emr3
    "a10": [0x40000000, 480, 3, 1, 4096, 16, 32, 9, 0x7F, 0, 1024,
            0x30926692, 0x1090, 0x1A0C8, 0, 0, 0, 0x4, 0x10, 0],
    # clk, type, zq, odt_en, para1, para2, mr0..mr3, tpr0..tpr13, bits(0)
    "a31": [672, 3, 0x3B3BFB, 1, 0x10E40000, 0, 0x1840, 0x40, 0x18, 0x2,
            0x0048A192, 0x01C2418D, 0x00076051, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
            0x4000000, 0],
    # clk, type, zq, odt_en, para1, para2, mr0..mr6, tpr0..tpr13, bits
    "h6": [744, 7, 0x3B3BFB, 1, 0x30FA, 0x4000000, 0x1C70, 0x42, 0x18, 0,
           0, 0, 0, 0x48A192, 0x1B1A94B, 0x61043, 0x78787896, 0, 0, 0,
           0, 0, 0, 0, 0, 0, 0x2, 32],
    # clk, type, dx_odt, dx_dri, ca_dri, para0, para1, para2, mr0..mr22,
    # tpr0..tpr14
    "h616": [720, 3, 0x06060606, 0x0C0C0C0C, 0x1E1E, 0x30303030, 0x30FA,
             0x1000, 0x840, 0x4, 0x8, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
             0x80808080, 0x0, 0, 0, 0x2F0007, 0x33C0EB12, 0xCE98, 0xF0F0F0F0,
             0x34050100, 0],
    "raw": [0xDEADBEEF] * 32,
}


def _window(variant: str) -> list[int]:
    words = list(DRAM_WINDOWS[variant])
    return words + [0] * (32 - len(words))


def build_image(variant: str = "h6", size: int = 8192, boot1: bool = False, bad_checksum: bool = False) -> bytes:
    """Return a complete image with a valid checksum unless `bad_checksum`."""
    magic = b"eGON.BT1" if boot1 else b"eGON.BT0"

    # jump over both headers: b +offset
    jump = 0xEA000000 | ((0xB0 // 4 - 2) & 0x00FFFFFF)
    primary = struct.pack(
        "<I8sIII4sII4s8s",
        jump, magic, SEED, size, 48, b"2000", 0, 0, b"1100", b"\x00" * 8,
    )
    secondary = struct.pack("<I4s32I", 136, b"1230", *_window(variant))

    image = bytearray(size)
    image[0:48] = primary
    image[48:48 + len(secondary)] = secondary
    for i in range(SECTOR_SIZE, size):
        image[i] = (i * 7 + 3) & 0xFF

    # Checksum is the sum of all words with the seed in the checksum slot.
    checksum = sum(struct.unpack(f"<{size // 4}I", bytes(image))) & 0xFFFFFFFF
    if bad_checksum:
        checksum ^= 1
    image[12:16] = struct.pack("<I", checksum)
    return bytes(image)


def write_device(out_path: Path, images: list[bytes], gap_sectors: int = 0) -> Path:
    """Lay images out back to back, with `gap_sectors` of zeroes before each one."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "wb") as f:
        for img in images:
            f.write(b"\x00" * (gap_sectors * SECTOR_SIZE))
            f.write(img)
    print(f"GENERATED: {out_path}")
    return out_path


if __name__ == "__main__":
    import sys

    # Usage:
    #   python tools/make_egon_image.py OUT [--variant h6] [--size 8192] [--count 1]
    #                                       [--gap 0] [--boot1] [--bad-checksum]

    args = [a for a in sys.argv[1:] if a]

    def pop_flag(arg_list: list[str], flag: str) -> tuple[bool, list[str]]:
        """Remove a boolean flag from an argv-style list."""
        if flag in arg_list:
            return True, [a for a in arg_list if a != flag]
        return False, arg_list

    def pop_value(arg_list: list[str], flag: str, default: str) -> tuple[str, list[str]]:
        if flag in arg_list:
            i = arg_list.index(flag)
            if i + 1 >= len(arg_list):
                raise SystemExit(f"{flag} requires a value")
            return arg_list[i + 1], arg_list[:i] + arg_list[i + 2:]
        return default, arg_list

    boot1, args = pop_flag(args, "--boot1")
    bad, args = pop_flag(args, "--bad-checksum")
    variant, args = pop_value(args, "--variant", "h6")
    size, args = pop_value(args, "--size", "8192")
    count, args = pop_value(args, "--count", "1")
    gap, args = pop_value(args, "--gap", "0")

    if variant not in DRAM_WINDOWS:
        raise SystemExit(f"unknown variant {variant!r}, pick one of {', '.join(DRAM_WINDOWS)}")

    out = args[0] if args else "egon_image.bin"
    imgs = [build_image(variant, int(size), boot1=boot1, bad_checksum=bad) for _ in range(int(count))]
    write_device(Path(out), imgs, gap_sectors=int(gap))
