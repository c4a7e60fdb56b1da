"""Bus protocol constants shared by the address map, encoder, and compiler."""

from __future__ import annotations

# Start of the writable command region; every register offset is relative to it.
COMMAND_REGION_BASE = 0x1000
ADDRESS_MAX = 0xFFFF

BYTE_MIN = 0
BYTE_MAX = 0xFF

# Custom "write bytes" function code understood by the strip controllers.
FCODE_WRITE_BYTES = 66

# Largest payload a single write-multiple transaction can carry.
MAX_CHUNK_BYTES = 249

FLAG_UPDATED = 0x01

# strip effect selector: bits 4..7 of the flags register
FX_SHIFT = 4
FX_NONE = 0 << FX_SHIFT
FX_STATIC = 1 << FX_SHIFT
FX_FIRE = 2 << FX_SHIFT
FX_TORCH = 3 << FX_SHIFT
FX_NOISE = 4 << FX_SHIFT

SERVICE_PREFIX = "modbus_master_/"


def is_byte(value: int) -> bool:
    """Return True when value fits an unsigned 8-bit register."""
    return BYTE_MIN <= value <= BYTE_MAX


def is_address(value: int) -> bool:
    """Return True when value fits the unsigned 16-bit address space."""
    return 0 <= value <= ADDRESS_MAX
