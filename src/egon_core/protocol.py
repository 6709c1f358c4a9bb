"""eGON boot image protocol constants.

Single source of truth for on-disk magic values and record layouts.
Keep this file stable. Verifier, scanner and image tools must remain synchronized.
"""

# Stage magics
MAGIC_BOOT0 = b"eGON.BT0"
MAGIC_BOOT1 = b"eGON.BT1"
MAGICS = (MAGIC_BOOT0, MAGIC_BOOT1)

SECTOR_SIZE = 512
SECTOR_WORDS = SECTOR_SIZE // 4

# Primary header:
# [Jump(4) | Magic(8) | Checksum(4) | Filesize(4) | HeaderSize(4) | HeaderVer(4) |
#  ReturnAddr(4) | RunAddr(4) | EgonVer(4) | PlatformInfo(8)] = 48 bytes
PRIMARY_HEADER_FMT = "<I8sIII4sII4s8s"
PRIMARY_HEADER_LEN = 48

# Checksum word lives at byte offset 12 and is excluded from its own sum.
CHECKSUM_SEED = 0x5F0A6C39
CHECKSUM_WORD_INDEX = 12 // 4

FILESIZE_ALIGN = 4096

# Secondary header: [HeaderSize(4) | HeaderVer(4) | dram_param(32 * 4)] = 136 bytes
DRAM_PARAM_COUNT = 32
SECONDARY_HEADER_FMT = f"<I4s{DRAM_PARAM_COUNT}I"
SECONDARY_HEADER_LEN = 8 + DRAM_PARAM_COUNT * 4

# Magic sits right after the jump word.
MAGIC_OFFSET = 4
