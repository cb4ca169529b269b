from __future__ import annotations
import struct
from typing import Sequence

# GDS2 stores everything big-endian.
def decode_int16(b: bytes) -> int:  return struct.unpack(">h", b)[0]
def decode_uint16(b: bytes) -> int: return struct.unpack(">H", b)[0]
def decode_int32(b: bytes) -> int:  return struct.unpack(">i", b)[0]
def decode_uint32(b: bytes) -> int: return struct.unpack(">I", b)[0]


def decode_real8(b: bytes) -> float:
    """
    8-byte GDS2 real: sign bit, 7-bit excess-64 base-16 exponent, 56-bit mantissa.

    The mantissa is taken as two pieces (low 24 bits of the first word and the
    whole second word) and scaled by 16**(exponent - 64 - 14).
    """
    if len(b) != 8:
        raise ValueError(f"real8 needs 8 bytes, got {len(b)}")
    high24 = decode_uint32(b[0:4]) & 0xffffff
    low32 = decode_uint32(b[4:8])

    x = 4294967296.0 * float(high24) + float(low32)
    if b[0] & 0x80:
        x = -x

    e = (b[0] & 0x7f) - (64 + 14)
    if e != 0:
        x *= 16.0 ** e
    return x


def format_bitmap(v: int) -> str:
    return f"{v:016b} (0x{v:04x})"


def format_timestamp(values: Sequence[int]) -> str:
    year, month, day, hour, minute, sec = values
    return f"{year:04d}-{month:02d}-{day:02d} {hour:02d}:{minute:02d}:{sec:02d}"


def format_string(raw: bytes) -> str:
    """Quote a string payload, escaping anything outside printable ASCII as \\xHH."""
    if raw.endswith(b"\x00"):
        raw = raw[:-1]
    # C-string semantics: an embedded NUL ends the text
    nul = raw.find(b"\x00")
    if nul >= 0:
        raw = raw[:nul]

    out = []
    for c in raw:
        if 0x20 <= c < 0x80 and c != 0x22:
            out.append(chr(c))
        else:
            out.append(f"\\x{c:02x}")
    return '"' + "".join(out) + '"'
