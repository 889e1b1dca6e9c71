"""Primitive attribute kinds and their wire encoding."""

import struct
from enum import StrEnum


class AttribType(StrEnum):
    """Fixed-width scalar kinds that may appear in a grammar."""

    U8 = "U8"
    U16 = "U16"
    U32 = "U32"
    S8 = "S8"
    S16 = "S16"
    S32 = "S32"
    DATA_LEN_U16 = "DataLenU16"
    DATA_LEN_U32 = "DataLenU32"
    COLOR_REF = "T_ColorRef"
    GID = "T_Gid"
    IR_DURATION = "T_IrDuration"
    POSITION = "T_Position"
    DIMENSION = "T_Dimension"
    POINTER = "Pointer"
    DATA_POINTER = "DataPointer"


POINTER_TYPES = frozenset([AttribType.POINTER, AttribType.DATA_POINTER])

_TYPE_NAMES = frozenset(t.value for t in AttribType)

# Size in bytes for each kind. Pointers are always 32-bit addresses.
ATTRIB_SIZES: dict[AttribType, int] = {
    AttribType.U8: 1,
    AttribType.S8: 1,
    AttribType.U16: 2,
    AttribType.S16: 2,
    AttribType.DATA_LEN_U16: 2,
    AttribType.GID: 2,
    AttribType.IR_DURATION: 2,
    AttribType.U32: 4,
    AttribType.S32: 4,
    AttribType.DATA_LEN_U32: 4,
    AttribType.COLOR_REF: 4,
    AttribType.POSITION: 4,
    AttribType.DIMENSION: 4,
    AttribType.POINTER: 4,
    AttribType.DATA_POINTER: 4,
}

# struct format characters, always read little-endian
FORMAT_CHARS: dict[AttribType, str] = {
    AttribType.U8: "B",
    AttribType.S8: "b",
    AttribType.U16: "H",
    AttribType.S16: "h",
    AttribType.DATA_LEN_U16: "H",
    AttribType.GID: "H",
    AttribType.IR_DURATION: "H",
    AttribType.U32: "I",
    AttribType.S32: "i",
    AttribType.DATA_LEN_U32: "I",
    AttribType.COLOR_REF: "I",
    AttribType.POSITION: "I",
    AttribType.DIMENSION: "I",
    AttribType.POINTER: "I",
    AttribType.DATA_POINTER: "I",
}


def is_attrib_type(name: str) -> bool:
    """Check if a grammar type name is a primitive kind."""
    return name in _TYPE_NAMES


def is_pointer_type(t: object) -> bool:
    """Check if a declared type is one of the pointer kinds."""
    return t in POINTER_TYPES


def deserialize_value(t: AttribType, data: bytes | memoryview, offset: int = 0) -> int:
    """Decode one little-endian scalar of kind ``t`` at ``offset``."""
    return struct.unpack_from("<" + FORMAT_CHARS[t], data, offset)[0]
