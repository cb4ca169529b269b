from __future__ import annotations
from typing import Callable

from .codecs.oasis_codec import (
    read_2delta,
    read_3delta,
    read_coord,
    read_gdelta,
    read_real,
    read_string,
    read_svarint,
    read_ucoord,
    read_uvarint,
)
from .dumper import BaseDumper
from .scale import coord_in_range, to_coord
from ..models.common import Point
from ..models.records import OasisRecord as R

OASIS_MAGIC = b"%SEMI-OASIS\r\n"

# LAYERNAME intervals without an explicit bound
_UNBOUNDED = 0xffffffff - 1

_NAME_RECORDS = {
    R.CELLNAME: ("CELLNAME", False),
    R.CELLNAME_ID: ("CELLNAME", True),
    R.TEXTSTRING: ("TEXTSTRING", False),
    R.TEXTSTRING_ID: ("TEXTSTRING", True),
    R.PROPNAME: ("PROPNAME", False),
    R.PROPNAME_ID: ("PROPNAME", True),
    R.PROPSTRING: ("PROPSTRING", False),
    R.PROPSTRING_ID: ("PROPSTRING", True),
}


def _fmt(v: float) -> str:
    return f"{v:.12g}"


def _text(raw: bytes) -> str:
    return "".join(chr(c) if 0x20 <= c < 0x7f else f"\\x{c:02x}" for c in raw)


class OASISDumper(BaseDumper):
    """
    Walks an OASIS stream: magic bytes, START, the record sequence (with CELL
    bodies and CBLOCK-compressed spans) and END.

    Modal variables are not tracked. Repetitions and placements that reuse a
    previous value are reported as such, and point lists and repetitions
    accumulate their positions locally.
    """

    xy_absolute = True

    # ---- primitives ----

    def _byte(self) -> int:
        return self._cur.take(1)[0]

    def _uint(self) -> int: return read_uvarint(self._cur, 32, self.warn)
    def _ulong(self) -> int: return read_uvarint(self._cur, 64, self.warn)
    def _int(self) -> int: return read_svarint(self._cur, 32, self.warn)
    def _long(self) -> int: return read_svarint(self._cur, 64, self.warn)
    def _str(self) -> str: return _text(read_string(self._cur, self.warn))
    def _real(self) -> float: return read_real(self._cur, self.warn)
    def _coord(self, grid: int = 1) -> int: return read_coord(self._cur, grid, self.warn)
    def _ucoord(self, grid: int = 1) -> int: return read_ucoord(self._cur, grid, self.warn)
    def _gdelta(self, grid: int = 1) -> Point: return read_gdelta(self._cur, grid, self.warn)

    # running sums stay in the 32-bit coordinate range
    def _advance(self, v: int, d: int) -> int:
        s = v + d
        if not coord_in_range(s):
            self.warn("Coordinate value overflow")
        return to_coord(s)

    def _advance_point(self, p: Point, d: Point) -> Point:
        s = p + d
        if not (coord_in_range(s.x) and coord_in_range(s.y)):
            self.warn("Coordinate value overflow")
            s = Point(x=to_coord(s.x), y=to_coord(s.y))
        return s

    # ---- file level ----

    def _dump(self) -> None:
        cur = self._cur

        mb = cur.read(len(OASIS_MAGIC))
        if mb is None:
            self.error("File too short")
        if mb != OASIS_MAGIC:
            self.error("Format error (missing magic bytes)")
        self.emit("magic bytes")

        if self._byte() != R.START:
            self.error("Format error (START record expected)")
        self.emit("START")

        raw = read_string(cur, self.warn)
        if raw != b"1.0":
            self.error(f"Format error (only version 1.0 is supported, file has version {_text(raw)})")
        self.emit('version ("1.0")')

        res = self._real()
        if not res >= 1e-6:
            self.error(f"Invalid resolution of {_fmt(res)}")
        self.emit(f"resolution ({_fmt(res)})")

        tables_at_end = self._uint() != 0
        self.emit(f"table flag ({'at end' if tables_at_end else 'here'})")
        if not tables_at_end:
            self._read_table_offsets()

        while True:
            r = self._byte()
            if r == R.END:
                self._read_end(tables_at_end)
                break
            self._read_global_record(r)

        self.emit("tail")

        if not cur.at_end():
            self.error("Format error (too many bytes after END record)")

    def _read_table_offsets(self) -> None:
        for _ in range(12):
            self.emit(f"tables entry ({self._ulong()})")

    def _read_end(self, tables_at_end: bool) -> None:
        self.emit("END")
        if tables_at_end:
            self._read_table_offsets()

        self.emit(f'padding string ("{self._str()}")')

        vs = self._uint()
        self.emit(f"validation scheme ({vs})")
        # CRC32 (1) and checksum-32 (2) signatures are shown, not verified
        if vs == 1 or vs == 2:
            self._cur.take(4)
            self.emit("validation signature")

    def _read_global_record(self, r: int) -> None:
        if r == R.PAD:
            self.emit("PAD")

        elif r in _NAME_RECORDS:
            kind, with_id = _NAME_RECORDS[r]
            name = self._str()
            if with_id:
                self.emit(f'{kind} ("{name}", id={self._ulong()})')
            else:
                self.emit(f'{kind} ("{name}")')

        elif r == R.LAYERNAME or r == R.LAYERNAME_TEXT:
            name = self._str()
            l1, l2 = self._read_interval("layer")
            d1, d2 = self._read_interval("datatype")
            self.emit(f'LAYERNAME ("{name}", layers={l1}..{l2}, datatypes={d1}..{d2})')

        elif r == R.PROPERTY:
            self._read_properties()

        elif r == R.PROPERTY_REPEAT:
            self.emit("PROPERTY (repeat)")

        elif r == R.XNAME or r == R.XNAME_REF:
            self.emit("XNAME")
            self._ulong()
            self._str()
            if r == R.XNAME_REF:
                self._ulong()
            self.emit("data")

        elif r == R.CELL_REF or r == R.CELL_NAME:
            if r == R.CELL_REF:
                ref = self._ulong()
                self.emit(f"CELL ({ref})")
                self.cell = str(ref)
            else:
                name = self._str()
                self.emit(f'CELL ("{name}")')
                self.cell = name
            self._read_cell()
            self.cell = None

        elif r == R.CBLOCK:
            self._read_cblock()

        else:
            self.error(f"Invalid record type on global level {r}")

    def _read_interval(self, what: str) -> tuple[int, int]:
        lo, hi = 0, _UNBOUNDED
        mode = self._uint()
        if mode == 0:
            pass
        elif mode == 1:
            hi = self._uint()
        elif mode == 2:
            lo = self._uint()
        elif mode == 3:
            lo = hi = self._uint()
        elif mode == 4:
            lo = self._uint()
            hi = self._uint()
        else:
            self.error(f"Invalid LAYERNAME interval mode ({what})")
        return lo, hi

    def _read_cblock(self) -> None:
        self.emit("CBLOCK (data will be expanded)")

        comp_type = self._uint()
        if comp_type != 0:
            self.error(f"Invalid CBLOCK compression type {comp_type}")
        uncomp_bytes = self._ulong()
        comp_bytes = self._ulong()
        self.emit(f"cblock-info (type={comp_type}, uncomp-bytes={uncomp_bytes}, comp_bytes={comp_bytes})")

        if self._cur.inflating:
            self.error("CBLOCK inside a compressed block")
        self._cur.enable_inflate(uncompressed_size=uncomp_bytes, compressed_size=comp_bytes)

    # ---- cell body ----

    def _read_cell(self) -> None:
        self.xy_absolute = True

        while True:
            r = self._byte()

            if r == R.PAD:
                pass
            elif r == R.XYABSOLUTE:
                self.xy_absolute = True
                self.emit("XYABSOLUTE")
            elif r == R.XYRELATIVE:
                self.xy_absolute = False
                self.emit("XYRELATIVE")
            elif r == R.PLACEMENT or r == R.PLACEMENT_XFORM:
                self._read_placement(r)
            elif r == R.TEXT:
                self._read_text()
            elif r == R.RECTANGLE:
                self._read_rectangle()
            elif r == R.POLYGON:
                self._read_polygon()
            elif r == R.PATH:
                self._read_path()
            elif r in (R.TRAPEZOID, R.TRAPEZOID_A, R.TRAPEZOID_B):
                self._read_trapezoid(r)
            elif r == R.CTRAPEZOID:
                self._read_ctrapezoid()
            elif r == R.CIRCLE:
                self._read_circle()
            elif r == R.PROPERTY:
                self._read_properties()
            elif r == R.PROPERTY_REPEAT:
                self.emit("PROPERTY (repeat)")
            elif r == R.XELEMENT:
                self._ulong()
                self._str()
                self.emit("XELEMENT")
            elif r == R.XGEOMETRY:
                self._read_xgeometry()
            elif r == R.CBLOCK:
                self._read_cblock()
            else:
                # not part of the cell: leave it for the file level loop
                self._cur.unget(1)
                break

    # ---- elements ----

    def _layer_datatype(self, m: int, datatype_label: str = "datatype") -> None:
        if m & 0x01:
            self.emit(f"layer={self._uint()}")
        if m & 0x02:
            self.emit(f"{datatype_label}={self._uint()}")

    def _position(self, m: int, xbit: int = 0x10, ybit: int = 0x08) -> None:
        if m & xbit:
            self.emit(f"x={self._int()}")
        if m & ybit:
            self.emit(f"y={self._int()}")

    def _trailer(self, m: int, repbit: int = 0x04) -> None:
        if m & repbit:
            self._read_repetition()
        self._read_element_properties()

    def _read_placement(self, r: int) -> None:
        m = self._byte()
        self.emit("PLACEMENT")

        if m & 0x80:
            if m & 0x40:
                self.emit(f"id={self._ulong()}")
            else:
                self.emit(f"name={self._str()}")

        if r == R.PLACEMENT_XFORM:
            if m & 0x04:
                self.emit(f"mag={_fmt(self._real())}")
            if m & 0x02:
                self.emit(f"angle={_fmt(self._real())}")

        self._position(m, 0x20, 0x10)
        self._trailer(m, 0x08)

    def _read_text(self) -> None:
        m = self._byte()
        self.emit("TEXT")

        if m & 0x40:
            if m & 0x20:
                self.emit(f"id={self._ulong()}")
            else:
                self.emit(f"Text={self._str()}")

        self._layer_datatype(m, "texttype")
        self._position(m)
        self._trailer(m)

    def _read_rectangle(self) -> None:
        m = self._byte()
        self.emit("RECTANGLE")

        self._layer_datatype(m)
        if m & 0x40:
            self.emit(f"width={self._ucoord()}")
        # square rectangles (0x80) have no height
        if not m & 0x80 and m & 0x20:
            self.emit(f"height={self._ucoord()}")
        self._position(m)
        self._trailer(m)

    def _read_polygon(self) -> None:
        m = self._byte()
        self.emit("POLYGON")

        self._layer_datatype(m)
        if m & 0x20:
            self._read_pointlist()
        self._position(m)
        self._trailer(m)

    def _read_path(self) -> None:
        m = self._byte()
        self.emit("PATH")

        self._layer_datatype(m)
        if m & 0x40:
            self.emit(f"half_width={self._ucoord()}")

        if m & 0x80:
            e = self._uint()
            self.emit(f"extensions (type={e})")
            if (e & 0x0c) == 0x0c:
                self.emit(f"  e1={self._coord()}")
            if (e & 0x03) == 0x03:
                self.emit(f"  e2={self._coord()}")

        if m & 0x20:
            self._read_pointlist()
        self._position(m)
        self._trailer(m)

    def _read_trapezoid(self, r: int) -> None:
        m = self._byte()
        self.emit("TRAPEZOID")

        self._layer_datatype(m)
        if m & 0x40:
            self.emit(f"w={self._ucoord()}")
        if m & 0x20:
            self.emit(f"h={self._ucoord()}")
        if r == R.TRAPEZOID or r == R.TRAPEZOID_A:
            self.emit(f"a={self._coord()}")
        if r == R.TRAPEZOID or r == R.TRAPEZOID_B:
            self.emit(f"b={self._coord()}")
        self._position(m)
        self._trailer(m)

    def _read_ctrapezoid(self) -> None:
        m = self._byte()
        self.emit("CTRAPEZOID")

        self._layer_datatype(m)
        if m & 0x80:
            self.emit(f"type={self._uint()}")
        if m & 0x40:
            self.emit(f"w={self._ucoord()}")
        if m & 0x20:
            self.emit(f"h={self._ucoord()}")
        self._position(m)
        self._trailer(m)

    def _read_circle(self) -> None:
        m = self._byte()
        self.emit("CIRCLE")

        self._layer_datatype(m)
        if m & 0x20:
            self.emit(f"r={self._ucoord()}")
        self._position(m)
        self._trailer(m)

    def _read_xgeometry(self) -> None:
        m = self._byte()
        self.emit("XGEOMETRY")

        self.emit(f"attribute={self._uint()}")
        self._layer_datatype(m)
        read_string(self._cur, self.warn)
        self.emit("data")
        self._position(m)
        if m & 0x04:
            self._read_repetition()

    # ---- properties ----

    def _read_element_properties(self) -> None:
        while True:
            r = self._byte()
            if r == R.PROPERTY:
                self._read_properties()
            elif r == R.PROPERTY_REPEAT:
                self.emit("PROPERTY (repeat)")
            else:
                self._cur.unget(1)
                break

    def _read_properties(self) -> None:
        m = self._byte()

        if m & 0x04:
            if m & 0x02:
                self.emit(f"PROPERTY (id={self._ulong()})")
            else:
                self.emit(f"PROPERTY (name={self._str()})")
        else:
            self.emit("PROPERTY (same id)")

        # V flag: values are reused from the previous property
        if m & 0x08:
            return

        n = (m >> 4) & 0x0f
        if n == 15:
            n = self._ulong()

        for i in range(n):
            t = self._byte()
            if t < 8:
                self._cur.unget(1)
                value = _fmt(self._real())
            elif t == 8:
                value = str(self._ulong())
            elif t == 9:
                value = str(self._long())
            elif t in (10, 11, 12):
                value = self._str()
            elif t in (13, 14, 15):
                self.emit(f"value[{i}]={self._ulong()} (propstring-ref, type {t})")
                continue
            else:
                self.error(f"Invalid property value type {t}")
            self.emit(f"value[{i}]={value} (type {t})")

    # ---- point lists and repetitions ----

    def _read_pointlist(self) -> None:
        t = self._uint()
        self.emit(f"pointlist (type={t})")

        n = self._ulong()
        if n == 0:
            self.error("Invalid point list: length is zero")

        pos = Point()

        if t == 0 or t == 1:
            horizontal = t == 0
            for _ in range(n):
                d = self._coord()
                pos = self._advance_point(pos, Point(x=d) if horizontal else Point(y=d))
                self.emit(f"  xy={pos}")
                horizontal = not horizontal

        elif t in (2, 3, 4):
            step: Callable[..., Point] = {2: read_2delta, 3: read_3delta, 4: read_gdelta}[t]
            for _ in range(n):
                pos = self._advance_point(pos, step(self._cur, 1, self.warn))
                self.emit(f"  xy={pos}")

        elif t == 5:
            delta = Point()
            for _ in range(n):
                delta = self._advance_point(delta, self._gdelta())
                pos = self._advance_point(pos, delta)
                self.emit(f"  xy={pos}")

        else:
            self.error(f"Invalid point list type {t}")

    def _read_repetition(self) -> None:
        t = self._uint()
        self.emit(f"repetition (type={t})")

        if t == 0:
            # reuse of the previous repetition
            pass

        elif t == 1:
            self.emit(f"  nx={self._ulong()}")
            self.emit(f"  ny={self._ulong()}")
            self.emit(f"  dx={self._ucoord()}")
            self.emit(f"  dy={self._ucoord()}")

        elif t == 2:
            self.emit(f"  nx={self._ulong()}")
            self.emit(f"  dx={self._ucoord()}")

        elif t == 3:
            self.emit(f"  ny={self._ulong()}")
            self.emit(f"  dy={self._ucoord()}")

        elif t in (4, 5, 6, 7):
            axis = "x" if t in (4, 5) else "y"
            n = self._ulong()
            self.emit(f"  n={n}")
            grid = 1
            if t in (5, 7):
                grid = self._ulong()
                self.emit(f"  grid={grid}")
            v = 0
            for _ in range(n + 1):
                v = self._advance(v, self._ucoord(grid))
                self.emit(f"  {axis}={v}")

        elif t == 8:
            self.emit(f"  n={self._ulong()}")
            self.emit(f"  m={self._ulong()}")
            self.emit(f"  dn={self._gdelta()}")
            self.emit(f"  dm={self._gdelta()}")

        elif t == 9:
            self.emit(f"  n={self._ulong()}")
            self.emit(f"  dn={self._gdelta()}")

        elif t == 10 or t == 11:
            n = self._ulong()
            self.emit(f"  n={n}")
            grid = 1
            if t == 11:
                grid = self._ulong()
                self.emit(f"  grid={grid}")
            p = Point()
            for _ in range(n + 1):
                p = self._advance_point(p, self._gdelta(grid))
                self.emit(f"  xy={p}")

        else:
            self.error(f"Invalid repetition type {t}")
