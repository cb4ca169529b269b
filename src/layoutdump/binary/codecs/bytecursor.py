from __future__ import annotations

import io
import logging
import zlib
from typing import BinaryIO, Callable, Optional, Union

from ..errors import DumpError, UnexpectedEndOfInput

log = logging.getLogger(__name__)

SourceLike = Union[BinaryIO, bytes, bytearray, memoryview]

_INITIAL_CAPACITY = 4096


class InflateReader:
    """
    Raw DEFLATE (RFC1951) decompression fed from the undecoded bytes of a ByteCursor.

    Only the compressed bytes actually used by the deflate stream are taken from
    the cursor, so the cursor continues right after the compressed span once the
    stream is finished.
    """

    __slots__ = ("_cursor", "_z", "_out", "_optr", "_last", "_limit", "consumed", "produced")

    def __init__(self, cursor: "ByteCursor", compressed_size: Optional[int] = None):
        self._cursor = cursor
        self._z = zlib.decompressobj(-zlib.MAX_WBITS)
        self._out = bytearray()
        self._optr = 0
        self._last = 0
        self._limit = compressed_size
        self.consumed = 0
        self.produced = 0

    def available(self) -> int: return len(self._out) - self._optr

    def at_end(self) -> bool:
        while self.available() == 0 and not self._z.eof:
            self._pump()
        return self.available() == 0

    def read(self, n: int) -> bytes | None:
        while self.available() < n and not self._z.eof:
            self._pump()
        if self.available() < n:
            return None
        start = self._optr
        self._optr += n
        self._last = n
        return bytes(self._out[start:self._optr])

    def unget(self, n: int) -> None:
        if n > self._last:
            raise ValueError(f"unget of {n} bytes exceeds last read of {self._last}")
        self._optr -= n
        self._last -= n

    def _pump(self) -> None:
        want = _INITIAL_CAPACITY
        if self._limit is not None:
            want = min(want, self._limit - self.consumed)
        chunk = self._cursor._raw_peek(want) if want > 0 else b""
        if not chunk:
            raise UnexpectedEndOfInput("Unexpected end of compressed data", self._cursor.tell())
        try:
            data = self._z.decompress(chunk)
        except zlib.error as e:
            raise DumpError(f"Invalid compressed data ({e})", self._cursor.tell()) from e

        used = len(chunk) - len(self._z.unused_data)
        self._cursor._raw_skip(used)
        self.consumed += used
        self.produced += len(data)

        # drop everything except the region of the last read (unget window)
        drop = self._optr - self._last
        if drop > 0:
            del self._out[:drop]
            self._optr -= drop
        self._out += data


class ByteCursor:
    """
    Buffered, position-tracked reader over a binary source.

    read() hands out exactly n bytes or None, unget() rewinds the most recent
    read, and enable_inflate() splices a DEFLATE block into the same stream.
    A recording buffer collects the consumed bytes for the hex dump.
    """

    __slots__ = ("_src", "_buf", "_bptr", "_cap", "_pos", "_last", "_inflate", "_expect",
                 "_recording", "_recorded", "on_warning")

    def __init__(self, source: SourceLike, *, on_warning: Optional[Callable[[str], None]] = None):
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._src = source
        self._buf = bytearray()
        self._bptr = 0
        self._cap = _INITIAL_CAPACITY
        self._pos = 0
        self._last = 0
        self._inflate: InflateReader | None = None
        self._expect: tuple[Optional[int], Optional[int]] = (None, None)
        self._recording = False
        self._recorded = bytearray()
        self.on_warning = on_warning or log.warning

    def tell(self) -> int: return self._pos

    @property
    def inflating(self) -> bool: return self._inflate is not None

    # raw buffer management
    def _fill(self, n: int) -> int:
        avail = len(self._buf) - self._bptr
        if avail >= n:
            return avail

        while self._cap < n:
            self._cap *= 2

        # compact, keeping the last read region so unget stays valid
        drop = self._bptr - self._last
        if drop > 0:
            del self._buf[:drop]
            self._bptr -= drop

        while avail < n:
            chunk = self._src.read(max(self._cap - avail, n - avail))
            if not chunk:
                break
            self._buf += chunk
            avail += len(chunk)
        return avail

    def _raw_peek(self, n: int) -> bytes:
        avail = self._fill(n)
        return bytes(self._buf[self._bptr:self._bptr + min(n, avail)])

    def _raw_skip(self, n: int) -> None:
        self._bptr += n
        self._pos += n
        self._last = 0

    def _record(self, data: bytes) -> None:
        if self._recording:
            self._recorded += data

    # reading
    def read(self, n: int) -> bytes | None:
        if self._inflate is not None:
            if not self._inflate.at_end():
                r = self._inflate.read(n)
                if r is None:
                    raise UnexpectedEndOfInput("Unexpected end of compressed block", self._pos)
                self._record(r)
                return r
            self._finish_inflate()

        if self._fill(n) < n:
            return None
        start = self._bptr
        self._bptr += n
        self._pos += n
        self._last = n
        r = bytes(self._buf[start:self._bptr])
        self._record(r)
        return r

    def take(self, n: int) -> bytes:
        r = self.read(n)
        if r is None:
            raise UnexpectedEndOfInput("Unexpected end of file", self._pos)
        return r

    def unget(self, n: int) -> None:
        if n <= 0:
            return
        if self._inflate is not None:
            self._inflate.unget(n)
        else:
            if n > self._last:
                raise ValueError(f"unget of {n} bytes exceeds last read of {self._last}")
            self._bptr -= n
            self._pos -= n
            self._last -= n
        if self._recording:
            del self._recorded[max(0, len(self._recorded) - n):]

    def peek(self, n: int) -> bytes | None:
        r = self.read(n)
        if r is not None:
            self.unget(n)
        return r

    def at_end(self) -> bool:
        return self.peek(1) is None

    # DEFLATE blocks
    def enable_inflate(self, *, uncompressed_size: Optional[int] = None,
                       compressed_size: Optional[int] = None) -> None:
        if self._inflate is not None:
            raise RuntimeError("inflate mode is already active")
        self._inflate = InflateReader(self, compressed_size)
        self._expect = (uncompressed_size, compressed_size)
        self._last = 0

    def _finish_inflate(self) -> None:
        inf, self._inflate = self._inflate, None
        uncomp, comp = self._expect
        self._expect = (None, None)
        if comp is not None and inf.consumed != comp:
            self.on_warning(f"Compressed byte count mismatch (declared {comp}, actual {inf.consumed})")
        if uncomp is not None and inf.produced != uncomp:
            self.on_warning(f"Uncompressed byte count mismatch (declared {uncomp}, actual {inf.produced})")

    # hex dump recording
    def start_recording(self) -> None:
        self._recorded.clear()
        self._recording = True

    def stop_recording(self) -> None:
        self._recorded.clear()
        self._recording = False

    def reset_recording(self) -> None: self._recorded.clear()
    def recorded(self) -> bytes: return bytes(self._recorded)
