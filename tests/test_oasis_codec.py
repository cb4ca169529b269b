import math
import struct

import pytest

from layoutdump.binary.codecs.bytecursor import ByteCursor
from layoutdump.binary.codecs.oasis_codec import (
    read_coord,
    read_gdelta,
    read_real,
    read_svarint,
    read_ucoord,
    read_uvarint,
    split_2delta,
    split_3delta,
    split_gdelta,
)
from layoutdump.binary.errors import DumpError, UnexpectedEndOfInput
from layoutdump.models.common import Point
from streams import svarint, uvarint

DIRECTIONS = [(1, 0), (0, 1), (-1, 0), (0, -1), (1, 1), (-1, 1), (-1, -1), (1, -1)]


@pytest.mark.parametrize("v", [0, 1, 127, 128, 300, 2**32 - 1, 2**63])
def test_uvarint(v):
    cur = ByteCursor(uvarint(v) + b"\xaa")
    assert read_uvarint(cur) == v
    # exactly the integer's bytes are consumed
    assert cur.read(1) == b"\xaa"


@pytest.mark.parametrize("v", [0, 1, -1, 63, -64, 1000000, -(2**40)])
def test_svarint(v):
    assert read_svarint(ByteCursor(svarint(v))) == v


def test_uvarint_overflow_is_reported_and_truncated():
    warnings = []
    cur = ByteCursor(uvarint(2**32 + 5))
    assert read_uvarint(cur, 32, warnings.append) == 5
    assert warnings == ["Unsigned integer value overflow"]


def test_uvarint_at_end_of_file():
    with pytest.raises(UnexpectedEndOfInput):
        read_uvarint(ByteCursor(b"\x80"))


@pytest.mark.parametrize("data,expected", [
    (uvarint(0) + uvarint(1000), 1000.0),
    (uvarint(1) + uvarint(7), -7.0),
    (uvarint(2) + uvarint(4), 0.25),
    (uvarint(3) + uvarint(4), -0.25),
    (uvarint(4) + uvarint(3) + uvarint(4), 0.75),
    (uvarint(5) + uvarint(3) + uvarint(4), -0.75),
    (uvarint(6) + struct.pack("<f", 1.5), 1.5),
    (uvarint(7) + struct.pack("<d", -2.25), -2.25),
])
def test_reals(data, expected):
    assert read_real(ByteCursor(data)) == expected


def test_real_division_by_zero_is_a_warning():
    warnings = []
    v = read_real(ByteCursor(uvarint(2) + uvarint(0)), warnings.append)
    assert math.isinf(v)
    assert warnings == ["Division by zero in real value"]


def test_invalid_real_type():
    with pytest.raises(DumpError) as ei:
        read_real(ByteCursor(uvarint(8)))
    assert ei.value.message == "Invalid real type 8"


def test_coordinates():
    assert read_coord(ByteCursor(svarint(-12)), 10) == -120
    assert read_ucoord(ByteCursor(uvarint(12)), 10) == 120


def test_coordinate_overflow_wraps():
    warnings = []
    assert read_coord(ByteCursor(svarint(2**31)), 1, warnings.append) == -(2**31)
    assert warnings == ["Coordinate value overflow"]


@pytest.mark.parametrize("d", range(4))
def test_2delta_directions(d):
    p, overflow = split_2delta((7 << 2) | d)
    dx, dy = DIRECTIONS[d]
    assert p == Point(x=7 * dx, y=7 * dy)
    assert not overflow


@pytest.mark.parametrize("d", range(8))
def test_3delta_directions(d):
    p, _ = split_3delta((5 << 3) | d)
    dx, dy = DIRECTIONS[d]
    assert p == Point(x=5 * dx, y=5 * dy)


@pytest.mark.parametrize("d", range(8))
def test_gdelta_octangular(d):
    p, _ = split_gdelta((3 << 4) | (d << 1))
    dx, dy = DIRECTIONS[d]
    assert p == Point(x=3 * dx, y=3 * dy)


def test_delta_grid_scaling():
    p, _ = split_2delta((5 << 2) | 1, 10)
    assert p == Point(x=0, y=50)


def test_gdelta_explicit_form():
    raw = (3 << 2) | 2 | 1
    cur = ByteCursor(uvarint(raw) + svarint(-7))
    assert read_gdelta(cur) == Point(x=-3, y=-7)
    assert cur.at_end()


def test_long_uvarint_with_zero_groups():
    warnings = []
    cur = ByteCursor(b"\x80" * 1000 + b"\x00")
    assert read_uvarint(cur, 64, warnings.append) == 0
    assert warnings == []
    assert cur.at_end()


def test_long_uvarint_overflow():
    warnings = []
    cur = ByteCursor(b"\xff" * 1000 + b"\x01")
    assert read_uvarint(cur, 64, warnings.append) == 2**64 - 1
    assert warnings == ["Unsigned long value overflow"]
    assert cur.at_end()
