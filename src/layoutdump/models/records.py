from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Mapping, Tuple


class GDS2DataType(IntEnum):
    NONE = 0
    BITMAP = 1
    INT16 = 2
    INT32 = 3
    REAL4 = 4
    REAL8 = 5
    STRING = 6

    @property
    def item_size(self) -> int:
        return _ITEM_SIZES[self]

_ITEM_SIZES = {0: 1, 1: 2, 2: 2, 3: 4, 4: 4, 5: 8, 6: 1}


class RecordKind(Enum):
    HEADER = "header"
    LAYER = "layer"
    DATATYPE = "datatype"
    TIMESTAMP = "timestamp"
    XY = "xy"
    GENERIC = "generic"


@dataclass(frozen=True)
class RecordDefinition:
    type: int
    datatype: GDS2DataType
    name: str
    kind: RecordKind = RecordKind.GENERIC


_N, _BM, _I2, _I4, _R8, _S = (GDS2DataType.NONE, GDS2DataType.BITMAP, GDS2DataType.INT16,
                              GDS2DataType.INT32, GDS2DataType.REAL8, GDS2DataType.STRING)

RECORD_DEFINITIONS: Tuple[RecordDefinition, ...] = (
    RecordDefinition(0x00, _I2, "HEADER", RecordKind.HEADER),
    RecordDefinition(0x01, _I2, "BGNLIB", RecordKind.TIMESTAMP),
    RecordDefinition(0x02, _S,  "LIBNAME"),
    RecordDefinition(0x03, _R8, "UNITS"),
    RecordDefinition(0x04, _N,  "ENDLIB"),
    RecordDefinition(0x05, _I2, "BGNSTR", RecordKind.TIMESTAMP),
    RecordDefinition(0x06, _S,  "STRNAME"),
    RecordDefinition(0x07, _N,  "ENDSTR"),
    RecordDefinition(0x08, _N,  "BOUNDARY"),
    RecordDefinition(0x09, _N,  "PATH"),
    RecordDefinition(0x0a, _N,  "SREF"),
    RecordDefinition(0x0b, _N,  "AREF"),
    RecordDefinition(0x0c, _N,  "TEXT"),
    RecordDefinition(0x0d, _I2, "LAYER", RecordKind.LAYER),
    RecordDefinition(0x0e, _I2, "DATATYPE", RecordKind.DATATYPE),
    RecordDefinition(0x0f, _I4, "WIDTH"),
    RecordDefinition(0x10, _I4, "XY", RecordKind.XY),
    RecordDefinition(0x11, _N,  "ENDEL"),
    RecordDefinition(0x12, _S,  "SNAME"),
    RecordDefinition(0x13, _I2, "COLROW"),
    RecordDefinition(0x14, _N,  "TEXTNODE"),
    RecordDefinition(0x15, _N,  "NODE"),
    RecordDefinition(0x16, _I2, "TEXTTYPE", RecordKind.DATATYPE),
    RecordDefinition(0x17, _BM, "PRESENTATION"),
    RecordDefinition(0x19, _S,  "STRING"),
    RecordDefinition(0x1a, _BM, "STRANS"),
    RecordDefinition(0x1b, _R8, "MAG"),
    RecordDefinition(0x1c, _R8, "ANGLE"),
    RecordDefinition(0x1f, _S,  "REFLIBS"),
    RecordDefinition(0x20, _S,  "FONTS"),
    RecordDefinition(0x21, _I2, "PATHTYPE"),
    RecordDefinition(0x22, _I2, "GENERATIONS"),
    RecordDefinition(0x23, _S,  "ATTRTABLE"),
    RecordDefinition(0x24, _S,  "STYPTABLE"),
    RecordDefinition(0x25, _I2, "STRTYPE"),
    RecordDefinition(0x26, _BM, "ELFLAGS"),
    RecordDefinition(0x27, _I4, "ELKEY"),
    RecordDefinition(0x2a, _I2, "NODETYPE"),
    RecordDefinition(0x2b, _I2, "PROPATTR"),
    RecordDefinition(0x2c, _S,  "PROPVALUE"),
    RecordDefinition(0x2d, _N,  "BOX"),
    RecordDefinition(0x2e, _I2, "BOXTYPE", RecordKind.DATATYPE),
    RecordDefinition(0x2f, _I4, "PLEX"),
    RecordDefinition(0x30, _I4, "BGNEXTN"),
    RecordDefinition(0x31, _I4, "ENDEXTN"),
    RecordDefinition(0x32, _I2, "TAPENUM"),
    RecordDefinition(0x33, _I2, "TAPECODE"),
    RecordDefinition(0x34, _BM, "STRCLASS"),
    RecordDefinition(0x35, _I4, "RESERVED"),
    RecordDefinition(0x36, _I2, "FORMAT"),
    RecordDefinition(0x37, _S,  "MASK"),
    RecordDefinition(0x38, _N,  "ENDMASKS"),
    RecordDefinition(0x39, _I2, "LIBDIRSIZE"),
    RecordDefinition(0x3a, _S,  "SRFNAME"),
)

RECORDS_BY_TYPE: Mapping[int, RecordDefinition] = MappingProxyType(
    {d.type: d for d in RECORD_DEFINITIONS}
)


class OasisRecord(IntEnum):
    PAD = 0
    START = 1
    END = 2
    CELLNAME = 3
    CELLNAME_ID = 4
    TEXTSTRING = 5
    TEXTSTRING_ID = 6
    PROPNAME = 7
    PROPNAME_ID = 8
    PROPSTRING = 9
    PROPSTRING_ID = 10
    LAYERNAME = 11
    LAYERNAME_TEXT = 12
    CELL_REF = 13
    CELL_NAME = 14
    XYABSOLUTE = 15
    XYRELATIVE = 16
    PLACEMENT = 17
    PLACEMENT_XFORM = 18
    TEXT = 19
    RECTANGLE = 20
    POLYGON = 21
    PATH = 22
    TRAPEZOID = 23
    TRAPEZOID_A = 24
    TRAPEZOID_B = 25
    CTRAPEZOID = 26
    CIRCLE = 27
    PROPERTY = 28
    PROPERTY_REPEAT = 29
    XNAME = 30
    XNAME_REF = 31
    XELEMENT = 32
    XGEOMETRY = 33
    CBLOCK = 34
