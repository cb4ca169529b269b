from __future__ import annotations

from .codecs.gds2_codec import (
    decode_int16,
    decode_int32,
    decode_real8,
    decode_uint16,
    format_bitmap,
    format_string,
    format_timestamp,
)
from .dumper import BaseDumper
from ..models.records import RECORDS_BY_TYPE, GDS2DataType, RecordDefinition, RecordKind

_INDENT = "  "


class GDS2Dumper(BaseDumper):
    """
    Disassembles a GDS2 stream: every record is a 4-byte header (length incl.
    header, record type, data type) followed by a payload decoded according to
    RECORD_DEFINITIONS.
    """

    def _u8(self) -> int: return self._cur.take(1)[0]
    def _u16(self) -> int: return decode_uint16(self._cur.take(2))
    def _s16(self) -> int: return decode_int16(self._cur.take(2))
    def _s32(self) -> int: return decode_int32(self._cur.take(4))
    def _real8(self) -> float: return decode_real8(self._cur.take(8))

    def _dump(self) -> None:
        cur = self._cur
        while not cur.at_end():
            length = self._u16()
            if length >= 0x8000:
                self.warn("Record length treated as unsigned int")
            if length < 4:
                self.error("Invalid record length less than 4")
            if length % 2 == 1:
                self.error("Invalid odd record length")

            rtype = self._u8()
            datatype = self._u8()

            rec = RECORDS_BY_TYPE.get(rtype)
            if rec is None:
                self.error(f"Invalid record type 0x{rtype:02x}")
            if rec.datatype != datatype:
                self.error(f"Invalid type code 0x{datatype:02x} for record 0x{rtype:02x}")

            self.emit(rec.name)
            self._dump_payload(rec, length - 4)

    def _dump_payload(self, rec: RecordDefinition, n: int) -> None:
        kind = rec.kind

        if kind is RecordKind.HEADER:
            self._check_items(rec, n, 2)
            for _ in range(n // 2):
                self.emit(f"{_INDENT}{self._s16()}")

        elif kind is RecordKind.LAYER or kind is RecordKind.DATATYPE:
            what = "layer" if kind is RecordKind.LAYER else "datatype"
            if n != 2:
                self.error(f"There must be one {what} number only")
            v = self._u16()
            if v >= 0x8000:
                self.warn(f"{what.capitalize()} number treated as unsigned int")
            self.emit(f"{_INDENT}{v}")

        elif kind is RecordKind.TIMESTAMP:
            if n != 24:
                self.error(f"There must be two timestamps for {rec.name} records")
            for _ in range(2):
                self.emit(_INDENT + format_timestamp([self._u16() for _ in range(6)]))

        elif kind is RecordKind.XY:
            self._check_items(rec, n, 8)
            for _ in range(n // 8):
                x = self._s32()
                y = self._s32()
                self.emit(f"{_INDENT}{x},{y}")

        else:
            self._dump_generic(rec, n)

    def _dump_generic(self, rec: RecordDefinition, n: int) -> None:
        dt = rec.datatype

        if dt == GDS2DataType.NONE:
            if n != 0:
                self.error(f"Invalid record length {n + 4} for {rec.name}")
            if rec.name == "ENDSTR":
                self.cell = None
            return

        if dt == GDS2DataType.STRING:
            s = format_string(self._cur.take(n))
            if rec.name == "STRNAME":
                self.cell = s[1:-1]
            self.emit(_INDENT + s)
            return

        self._check_items(rec, n, dt.item_size)
        for _ in range(n // dt.item_size):
            if dt == GDS2DataType.BITMAP:
                self.emit(_INDENT + format_bitmap(self._u16()))
            elif dt == GDS2DataType.INT16:
                self.emit(f"{_INDENT}{self._s16()}")
            elif dt == GDS2DataType.INT32:
                self.emit(f"{_INDENT}{self._s32()}")
            elif dt == GDS2DataType.REAL8:
                self.emit(f"{_INDENT}{self._real8():.12g}")
            else:
                self.error(f"Unsupported data type {int(dt)} for {rec.name}")

    def _check_items(self, rec: RecordDefinition, n: int, size: int) -> None:
        if n % size != 0:
            self.error(f"Invalid record length {n + 4} for {rec.name}")
