"""Unit tests configuration file."""

import struct

import pytest

from cfdecode.cf import Deserializer
from cfdecode.grammar import Attrib, AttribType, Class, ClassRef, TypeRegistry


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


TEST_GRAMMAR = """
# Header shared by every record
class CFObject = 1 {
    ObjectType: U16
    ExtensionCount: U8
    RootType: U8
}

class CFString = 100 {
    base: CFObject @ancestor
    Size: U32
    cfData: DataPointer
}

class CFArray = 101 {
    base: CFObject @ancestor
    TypeOfData: U16
    NrOfElements: U16
}

class Node = 200 {
    mask HasLabel = 0x01
    mask HasExtra = 0x02

    base: CFObject @ancestor
    value: U32
    next: Pointer -> Node
    label: Pointer -> CFString @mask(0x01)
    extra: U16[2] @mask(0x02)
}

class Panel = 201 {
    base: CFObject @ancestor
    gid: Pointer -> U16
    children: Pointer[] -> Node
    codes: Pointer[] -> U16
    blob: DataPointer @padding(2)
    blobs: Pointer[] -> DataPointer
}
"""


def _header_attrib() -> Attrib:
    return Attrib("base", ClassRef("CFObject"), ancestor=True)


def build_registry() -> TypeRegistry:
    """Build the test classes without going through a grammar loader."""
    registry = TypeRegistry()

    def add(name: str, class_id: int, *attribs: Attrib) -> None:
        registry.add(Class(registry, name, class_id, list(attribs)))

    add(
        "CFObject",
        1,
        Attrib("ObjectType", AttribType.U16),
        Attrib("ExtensionCount", AttribType.U8),
        Attrib("RootType", AttribType.U8),
    )
    add(
        "CFString",
        100,
        _header_attrib(),
        Attrib("Size", AttribType.U32),
        Attrib("cfData", AttribType.DATA_POINTER),
    )
    add(
        "CFArray",
        101,
        _header_attrib(),
        Attrib("TypeOfData", AttribType.U16),
        Attrib("NrOfElements", AttribType.U16),
    )
    add(
        "Node",
        200,
        _header_attrib(),
        Attrib("value", AttribType.U32),
        Attrib("next", AttribType.POINTER, pointer_target=ClassRef("Node")),
        Attrib("label", AttribType.POINTER, pointer_target=ClassRef("CFString"), mask=0x01),
        Attrib("extra", AttribType.U16, count=2, mask=0x02),
    )
    add(
        "Panel",
        201,
        _header_attrib(),
        Attrib("gid", AttribType.POINTER, pointer_target=AttribType.U16),
        Attrib("children", AttribType.POINTER, array=True, pointer_target=ClassRef("Node")),
        Attrib("codes", AttribType.POINTER, array=True, pointer_target=AttribType.U16),
        Attrib("blob", AttribType.DATA_POINTER),
        Attrib("blobs", AttribType.POINTER, array=True, pointer_target=AttribType.DATA_POINTER),
    )
    add(
        "Masked",
        202,
        _header_attrib(),
        Attrib("a", AttribType.U8, mask=0x01),
        Attrib("b", AttribType.U8, mask=0x02),
    )
    add(
        "Leaf",
        203,
        _header_attrib(),
        Attrib("weight", AttribType.S32),
    )
    return registry


def pack_header(class_id: int, mask: int = 0, root_type: int = 0) -> bytes:
    return struct.pack("<HBB", class_id, mask, root_type)


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def deserializer(registry):
    return Deserializer(registry)


@pytest.fixture
def header():
    return pack_header


@pytest.fixture
def grammar_text():
    return TEST_GRAMMAR
