from __future__ import annotations

import gzip
import io
import sys
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from .codecs.bytecursor import ByteCursor
from .gds2_dumper import GDS2Dumper
from .oasis_dumper import OASIS_MAGIC, OASISDumper
from ..models.options import DumpOptions

BytesLike = Union[str, Path, bytes, bytearray, memoryview]

GZIP_MAGIC = b"\x1f\x8b"

DUMPERS = {
    "oasis": OASISDumper,
    "gds2": GDS2Dumper,
}


# -----------------------------
# Helpers
# -----------------------------

def open_source(inp: BytesLike) -> BinaryIO:
    """
    Open a dump input. Paths are opened as binary files ("-" is stdin), in-memory
    data is wrapped. gzip-compressed input is decompressed on the fly.
    """
    if isinstance(inp, (bytes, bytearray, memoryview)):
        data = bytes(inp)
        f: BinaryIO = io.BytesIO(data)
        return gzip.GzipFile(fileobj=f, mode="rb") if data[:2] == GZIP_MAGIC else f

    if str(inp) == "-":
        f = sys.stdin.buffer
        return gzip.GzipFile(fileobj=f, mode="rb") if f.peek(2)[:2] == GZIP_MAGIC else f

    path = Path(str(inp))
    with open(path, "rb") as probe:
        head = probe.read(2)
    return gzip.open(path, "rb") if head == GZIP_MAGIC else open(path, "rb")


def detect_format(cur: ByteCursor) -> str:
    """OASIS if the stream starts with the OASIS magic bytes, GDS2 otherwise."""
    head = cur.peek(len(OASIS_MAGIC))
    return "oasis" if head == OASIS_MAGIC else "gds2"


# -----------------------------
# Driver
# -----------------------------

def dump_file(
    inp: BytesLike,
    *,
    fmt: Optional[str] = None,
    options: Optional[DumpOptions] = None,
    write_line: Callable[[str], None] = print,
    warn: Optional[Callable[[str], None]] = None,
) -> str:
    """
    Dump a GDS2 or OASIS file (fmt "gds2", "oasis" or None/"auto" to detect).
    Returns the format that was dumped. Fatal format errors raise DumpError.
    """
    src = open_source(inp)
    try:
        cur = ByteCursor(src)
        if fmt is None or fmt == "auto":
            fmt = detect_format(cur)
        try:
            dumper_cls = DUMPERS[fmt]
        except KeyError:
            raise ValueError(f"Unknown format {fmt!r}") from None
        dumper_cls(cur, options=options, write_line=write_line, warn=warn).dump()
        return fmt
    finally:
        if src is not sys.stdin.buffer:
            src.close()
