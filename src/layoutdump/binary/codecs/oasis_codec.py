from __future__ import annotations
import math
import struct
from typing import Callable, Optional, Tuple

from .bytecursor import ByteCursor
from ..errors import DumpError, UnexpectedEndOfInput
from ..scale import COORD_MAX, coord_in_range, to_coord, wrap_unsigned
from ...models.common import Point

Warn = Optional[Callable[[str], None]]

# Direction table shared by 3-deltas and octangular g-deltas: E, N, W, S, NE, NW, SW, SE.
_DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (1, 0), (0, 1), (-1, 0), (0, -1),
    (1, 1), (-1, 1), (-1, -1), (1, -1),
)


def _warn(warn: Warn, msg: str) -> None:
    if warn is not None:
        warn(msg)


# ---- integers ----

def read_uvarint(cur: ByteCursor, bits: int = 64, warn: Warn = None) -> int:
    """
    OASIS unsigned integer: 7 value bits per byte, least significant group first,
    bit 7 set on every byte but the last. Values wider than `bits` are reported
    and truncated.
    """
    v = 0
    shift = 0
    overflow = False
    while True:
        b = cur.read(1)
        if b is None:
            raise UnexpectedEndOfInput("Unexpected end-of-file", cur.tell())
        c = b[0] & 0x7f
        if shift < bits:
            v |= c << shift
            if c >> (bits - shift):
                overflow = True
        elif c:
            # groups beyond the width only matter as overflow
            overflow = True
        shift += 7
        if not b[0] & 0x80:
            break

    if overflow:
        _warn(warn, "Unsigned integer value overflow" if bits <= 32 else "Unsigned long value overflow")
        v = wrap_unsigned(v, bits)
    return v


def read_svarint(cur: ByteCursor, bits: int = 64, warn: Warn = None) -> int:
    """OASIS signed integer: bit 0 of the unsigned form is the sign, the rest the magnitude."""
    u = read_uvarint(cur, bits, warn)
    return -(u >> 1) if u & 1 else (u >> 1)


def read_string(cur: ByteCursor, warn: Warn = None) -> bytes:
    n = read_uvarint(cur, 64, warn)
    return cur.take(n)


# ---- reals ----

def _ratio(num: float, den: float, warn: Warn) -> float:
    if den == 0:
        _warn(warn, "Division by zero in real value")
        return math.copysign(math.inf, num) if num else math.nan
    return num / den


def read_real(cur: ByteCursor, warn: Warn = None) -> float:
    t = read_uvarint(cur, 32, warn)

    if t == 0 or t == 1:
        v = float(read_uvarint(cur, 64, warn))
        return -v if t == 1 else v

    if t == 2 or t == 3:
        v = _ratio(1.0, float(read_uvarint(cur, 64, warn)), warn)
        return -v if t == 3 else v

    if t == 4 or t == 5:
        num = float(read_uvarint(cur, 64, warn))
        v = _ratio(num, float(read_uvarint(cur, 64, warn)), warn)
        return -v if t == 5 else v

    # IEEE formats are stored little-endian
    if t == 6:
        return float(struct.unpack("<f", cur.take(4))[0])
    if t == 7:
        return float(struct.unpack("<d", cur.take(8))[0])

    raise DumpError(f"Invalid real type {t}", cur.tell())


# ---- coordinates ----

def read_coord(cur: ByteCursor, grid: int = 1, warn: Warn = None) -> int:
    v = read_svarint(cur, 64, warn) * grid
    if not coord_in_range(v):
        _warn(warn, "Coordinate value overflow")
    return to_coord(v)


def read_ucoord(cur: ByteCursor, grid: int = 1, warn: Warn = None) -> int:
    v = read_uvarint(cur, 64, warn) * grid
    if v > COORD_MAX:
        _warn(warn, "Coordinate value overflow")
    return to_coord(v)


# ---- deltas ----

def _directional(magnitude: int, direction: int) -> Tuple[Point, bool]:
    x = to_coord(magnitude)
    dx, dy = _DIRECTIONS[direction]
    return Point(x=dx * x, y=dy * x), magnitude > COORD_MAX


def split_2delta(raw: int, grid: int = 1) -> Tuple[Point, bool]:
    """2-delta: low 2 bits pick E/N/W/S. Returns the vector and an overflow flag."""
    return _directional((raw >> 2) * grid, raw & 3)


def split_3delta(raw: int, grid: int = 1) -> Tuple[Point, bool]:
    """3-delta: low 3 bits pick one of the eight axis/diagonal directions."""
    return _directional((raw >> 3) * grid, raw & 7)


def split_gdelta(raw: int, grid: int = 1) -> Tuple[Point, bool]:
    """Octangular (single field) g-delta: bit 0 clear, direction in bits 1..3."""
    return _directional((raw >> 4) * grid, (raw >> 1) & 7)


def read_2delta(cur: ByteCursor, grid: int = 1, warn: Warn = None) -> Point:
    p, overflow = split_2delta(read_uvarint(cur, 64, warn), grid)
    if overflow:
        _warn(warn, "Coordinate value overflow")
    return p


def read_3delta(cur: ByteCursor, grid: int = 1, warn: Warn = None) -> Point:
    p, overflow = split_3delta(read_uvarint(cur, 64, warn), grid)
    if overflow:
        _warn(warn, "Coordinate value overflow")
    return p


def read_gdelta(cur: ByteCursor, grid: int = 1, warn: Warn = None) -> Point:
    raw = read_uvarint(cur, 64, warn)

    if raw & 1:
        # explicit form: dx in the first field (sign in bit 1), dy follows as signed integer
        dx = -(raw >> 2) if raw & 2 else (raw >> 2)
        dx *= grid
        if not coord_in_range(dx):
            _warn(warn, "Coordinate value overflow")
        dy = read_svarint(cur, 64, warn) * grid
        if not coord_in_range(dy):
            _warn(warn, "Coordinate value overflow")
        return Point(x=to_coord(dx), y=to_coord(dy))

    p, overflow = split_gdelta(raw, grid)
    if overflow:
        _warn(warn, "Coordinate value overflow")
    return p
