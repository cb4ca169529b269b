from __future__ import annotations
from typing import Callable

from .codecs.bytecursor import ByteCursor


class Emitter:
    """
    Turns the bytes recorded since the previous emit into hex dump lines:

        000000014   03 31 2e 30              version ("1.0")
        000000022 + 0a 0b 0c

    The first line carries `width` columns plus the annotation; remaining bytes
    go to continuation lines (or a single "..." line in short mode). Bytes
    expanded from a compressed block have no source offset of their own, so
    their continuation lines leave the offset column blank.
    """

    def __init__(self, cursor: ByteCursor, write_line: Callable[[str], None], *,
                 width: int = 8, short_mode: bool = False):
        if width < 1:
            raise ValueError("width must be positive")
        self.cursor = cursor
        self.write_line = write_line
        self.width = width
        self.short_mode = short_mode
        self._last_emit = cursor.tell()

    def emit(self, text: str) -> None:
        pos = self._last_emit
        self._last_emit = self.cursor.tell()
        inflated = self.cursor.inflating
        data = self.cursor.recorded()
        self.cursor.reset_recording()

        first = data[:self.width]
        cols = "".join(f"{b:02x} " for b in first) + "   " * (self.width - len(first))
        self.write_line(f"{pos:09d}   {cols} {text}")

        off = self.width
        while off < len(data):
            lead = " " * 9 if inflated else f"{pos + off:09d}"
            if self.short_mode:
                self.write_line(f"{lead} + ...")
                break
            chunk = data[off:off + self.width]
            self.write_line(f"{lead} + " + "".join(f"{b:02x} " for b in chunk))
            off += self.width
