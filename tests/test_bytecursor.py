import pytest

from layoutdump.binary.codecs.bytecursor import ByteCursor
from layoutdump.binary.errors import DumpError, UnexpectedEndOfInput
from streams import deflate


class _Trickle:
    """Source that hands out at most 3 bytes per read() call."""

    def __init__(self, data: bytes):
        self._data = data
        self._pos = 0

    def read(self, n: int) -> bytes:
        n = min(n, 3)
        r = self._data[self._pos:self._pos + n]
        self._pos += len(r)
        return r


def test_read_short_read_and_end():
    cur = ByteCursor(b"\x01\x02\x03")
    assert cur.read(2) == b"\x01\x02"
    assert cur.tell() == 2
    # a short read is reported and does not advance
    assert cur.read(2) is None
    assert cur.tell() == 2
    assert cur.read(1) == b"\x03"
    assert cur.at_end()


def test_take_raises_at_end_of_input():
    cur = ByteCursor(b"\x01")
    with pytest.raises(UnexpectedEndOfInput) as ei:
        cur.take(2)
    assert ei.value.position == 0
    assert "Unexpected end of file" in str(ei.value)


def test_unget_and_recording():
    cur = ByteCursor(b"abcdef")
    cur.start_recording()
    assert cur.read(3) == b"abc"
    cur.unget(2)
    assert cur.tell() == 1
    assert cur.recorded() == b"a"
    assert cur.read(2) == b"bc"
    assert cur.recorded() == b"abc"
    cur.reset_recording()
    assert cur.recorded() == b""
    with pytest.raises(ValueError):
        cur.unget(3)


def test_peek_does_not_advance():
    cur = ByteCursor(b"xyz")
    assert cur.peek(2) == b"xy"
    assert cur.tell() == 0
    assert cur.read(3) == b"xyz"


def test_large_reads_from_trickling_source():
    data = bytes(range(256)) * 40
    cur = ByteCursor(_Trickle(data))
    assert cur.read(5) == data[:5]
    assert cur.read(9000) == data[5:9005]
    cur.unget(9000)
    assert cur.tell() == 5
    assert cur.read(len(data) - 5) == data[5:]
    assert cur.read(1) is None
    assert cur.at_end()


def test_inflate_splices_into_raw_stream():
    payload = b"hello world " * 50
    comp = deflate(payload)
    cur = ByteCursor(b"AB" + comp + b"XYZ")
    cur.start_recording()

    assert cur.read(2) == b"AB"
    cur.enable_inflate(uncompressed_size=len(payload), compressed_size=len(comp))
    assert cur.inflating
    assert cur.read(len(payload)) == payload
    # recording holds the expanded bytes
    assert cur.recorded() == b"AB" + payload

    assert cur.read(3) == b"XYZ"
    assert not cur.inflating
    assert cur.tell() == 2 + len(comp) + 3
    assert cur.at_end()


def test_inflate_without_declared_sizes_stops_at_stream_end():
    payload = bytes(range(200))
    comp = deflate(payload)
    cur = ByteCursor(comp + b"\x02")
    cur.enable_inflate()
    assert cur.read(len(payload)) == payload
    assert cur.read(1) == b"\x02"
    assert cur.at_end()


def test_unget_inside_compressed_block():
    payload = b"0123456789"
    comp = deflate(payload)
    cur = ByteCursor(comp)
    cur.enable_inflate(uncompressed_size=len(payload), compressed_size=len(comp))
    assert cur.read(5) == b"01234"
    cur.unget(2)
    assert cur.read(2) == b"34"
    with pytest.raises(ValueError):
        cur.unget(3)


def test_enable_inflate_twice_is_rejected():
    comp = deflate(b"abc")
    cur = ByteCursor(comp)
    cur.enable_inflate()
    with pytest.raises(RuntimeError):
        cur.enable_inflate()


def test_truncated_compressed_data():
    payload = bytes(range(256)) * 8
    comp = deflate(payload)
    cur = ByteCursor(comp[: len(comp) // 2])
    cur.enable_inflate(uncompressed_size=len(payload), compressed_size=len(comp))
    with pytest.raises(DumpError):
        cur.read(len(payload))


def test_byte_count_mismatch_is_a_warning():
    payload = b"abcabcabc" * 10
    comp = deflate(payload)
    warnings = []
    cur = ByteCursor(comp + b"\x00\x00\x07", on_warning=warnings.append)
    cur.enable_inflate(uncompressed_size=len(payload) + 1, compressed_size=len(comp) + 2)
    assert cur.read(len(payload)) == payload
    # leaving the block checks the counts
    assert cur.read(1) == b"\x00"
    assert warnings == [
        f"Compressed byte count mismatch (declared {len(comp) + 2}, actual {len(comp)})",
        f"Uncompressed byte count mismatch (declared {len(payload) + 1}, actual {len(payload)})",
    ]


def test_stop_recording():
    cur = ByteCursor(b"abcd")
    cur.start_recording()
    cur.read(2)
    cur.stop_recording()
    cur.read(2)
    assert cur.recorded() == b""


def test_read_past_end_of_compressed_block():
    payload = b"0123456789"
    comp = deflate(payload)
    cur = ByteCursor(comp + b"tail")
    cur.enable_inflate(uncompressed_size=len(payload), compressed_size=len(comp))
    assert cur.read(8) == b"01234567"
    with pytest.raises(UnexpectedEndOfInput) as ei:
        cur.read(4)
    assert ei.value.message == "Unexpected end of compressed block"


def test_corrupt_compressed_data():
    # block type 3 is reserved in DEFLATE
    cur = ByteCursor(b"\xff" * 16)
    cur.enable_inflate(compressed_size=16)
    with pytest.raises(DumpError) as ei:
        cur.read(1)
    assert ei.value.message.startswith("Invalid compressed data")
