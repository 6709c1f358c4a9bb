import sys
from pathlib import Path

def main():
    if len(sys.argv) not in (2, 3):
        print("Usage: corrupt_one_byte.py <image> [offset]")
        raise SystemExit(2)

    p = Path(sys.argv[1])
    b = bytearray(p.read_bytes())
    if len(b) < 1024:
        print("Image too small to corrupt safely.")
        raise SystemExit(2)

    # Default: first byte of sector 2, well past both headers.
    # Headers stay intact so only the checksum comparison trips.
    idx = int(sys.argv[2], 0) if len(sys.argv) == 3 else 1024
    if idx >= len(b):
        print(f"Offset {idx} is past the end of {p}.")
        raise SystemExit(2)
    b[idx] ^= 0x01
    p.write_bytes(bytes(b))
    print(f"Corrupted 1 byte at offset {idx} in {p}")

if __name__ == "__main__":
    main()
