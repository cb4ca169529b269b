from __future__ import annotations

# On-disk coordinates of both formats are 32-bit signed integers.
COORD_BITS = 32
COORD_MIN = -(1 << (COORD_BITS - 1))
COORD_MAX = (1 << (COORD_BITS - 1)) - 1


def wrap_unsigned(v: int, bits: int) -> int:
    """Truncate to an unsigned integer of the given width."""
    return v & ((1 << bits) - 1)

def wrap_signed(v: int, bits: int) -> int:
    """Two's complement truncation to the given width."""
    v = wrap_unsigned(v, bits)
    return v - (1 << bits) if v & (1 << (bits - 1)) else v

def coord_in_range(v: int) -> bool:
    return COORD_MIN <= v <= COORD_MAX

def to_coord(v: int) -> int:
    return wrap_signed(v, COORD_BITS)
