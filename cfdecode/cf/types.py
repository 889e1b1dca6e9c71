"""Decoded CF values: records, properties and pointers.

Records and pointers never own the buffer they were decoded from. Every
dereference takes the same buffer that was passed to the top-level decode;
addresses are absolute offsets into it.
"""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar, cast

from ..errors import ClassNotFoundError, DecodeError, NullPointerError
from ..grammar.attrib_type import AttribType, deserialize_value
from ..grammar.registry import TypeRegistry
from ..grammar.types import Attrib, Class, ClassRef
from .constants import (
    ARRAY_LENGTH_PROPERTY,
    ARRAY_TYPE_PROPERTY,
    STRING_DATA_PROPERTY,
    STRING_SIZE_PROPERTY,
)
from .stream import Buffer, BufferStream
from .utils import format_hex32

if TYPE_CHECKING:
    from .deserializer import Deserializer


@dataclass(frozen=True)
class Property:
    """A piece of data associated with a class attribute."""

    attrib: Attrib
    location: int

    def inspect(self) -> str:
        return f"<{type(self).__name__}@{format_hex32(self.location)} attrib={self.attrib.inspect()}>"


@dataclass(frozen=True)
class IntegerProperty(Property):
    """A property that holds an integer value."""

    value: int

    def __post_init__(self) -> None:
        if self.attrib.count > 1:
            raise DecodeError("Attribute is a fixed array, use IntegerArrayProperty")
        if self.attrib.is_composite:
            raise DecodeError("IntegerProperty cannot be used with a composite value")

    def inspect(self) -> str:
        return (
            f"<{type(self).__name__}@{format_hex32(self.location)} "
            f"value={self.value}, attrib={self.attrib.inspect()}>"
        )


@dataclass(frozen=True)
class IntegerArrayProperty(Property):
    """A property that holds a fixed-length list of integer values."""

    value: tuple[int, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.attrib.type, AttribType):
            raise DecodeError("IntegerArrayProperty cannot be used with a composite value")

    def inspect(self) -> str:
        return (
            f"<{type(self).__name__}@{format_hex32(self.location)} "
            f"value={list(self.value)}, attrib={self.attrib.inspect()}>"
        )


@dataclass(frozen=True)
class Pointer:
    """An integer value that references an object, an integer, or a piece of data."""

    location: int  # where the pointer itself is stored
    address: int  # where the pointer points to

    @property
    def is_null(self) -> bool:
        return self.address == 0

    def _check_null(self) -> None:
        if self.is_null:
            raise NullPointerError(f"Cannot dereference null pointer at {format_hex32(self.location)}")

    def inspect(self) -> str:
        return f"<{type(self).__name__}@{format_hex32(self.location)} address={format_hex32(self.address)}>"


@dataclass(frozen=True)
class ObjectPointer(Pointer):
    """References a record decoded on demand."""

    type: Class

    def dereference(self, deserializer: Deserializer, data: Buffer) -> CFObject:
        self._check_null()
        return deserializer.decode(data, self.address)

    def inspect(self) -> str:
        return (
            f"<{type(self).__name__}@{format_hex32(self.location)} "
            f"address={format_hex32(self.address)} type={self.type.inspect()}>"
        )


@dataclass(frozen=True)
class IntegerPointer(Pointer):
    """References a single scalar of a primitive kind."""

    type: AttribType

    def dereference(self, data: Buffer) -> int:
        self._check_null()
        try:
            return deserialize_value(self.type, data, self.address)
        except struct.error as err:
            raise DecodeError(f"{self.inspect()} points outside of the buffer") from err

    def inspect(self) -> str:
        return (
            f"<{type(self).__name__}@{format_hex32(self.location)} "
            f"address={format_hex32(self.address)} type=`{self.type}`>"
        )


@dataclass(frozen=True)
class DataPointer(Pointer):
    """References an untyped blob whose length is known only to the caller."""

    def dereference(self, data: Buffer, length: int) -> bytes:
        self._check_null()
        return BufferStream(data, self.address).read(length)


@dataclass(frozen=True)
class PointerProperty(Property):
    """A property that holds a single pointer."""

    pointer: Pointer


@dataclass(frozen=True)
class ArrayProperty(Property):
    """A dynamic array of pointers, all to the attribute's pointer target."""

    type_of_data: int  # element type tag as read from the wire
    items: tuple[Pointer, ...]

    def __post_init__(self) -> None:
        if not self.attrib.array:
            raise DecodeError(f"Attribute '{self.attrib.name}' is not an array")

    def __len__(self) -> int:
        return len(self.items)

    def dereference_items(
        self, data: Buffer, deserializer: Deserializer | None = None
    ) -> list[CFObject] | list[int]:
        """Dereference every item, failing before any item is returned."""
        target = self.attrib.pointer_target
        if target == AttribType.DATA_POINTER:
            raise DecodeError("Cannot use dereference_items on an array of DataPointers")

        if isinstance(target, ClassRef):
            if deserializer is None:
                raise DecodeError("deserializer must be given for an array of object pointers")
            return [cast(ObjectPointer, item).dereference(deserializer, data) for item in self.items]

        return [cast(IntegerPointer, item).dereference(data) for item in self.items]

    def inspect(self) -> str:
        inspect_items = ", ".join(i.inspect() for i in self.items)
        return (
            f"<{type(self).__name__}@{format_hex32(self.location)} "
            f"items=[{inspect_items}], attrib={self.attrib.inspect()}>"
        )


TProperty = TypeVar("TProperty", bound=Property)


@dataclass
class CFObject:
    """A decoded record: its class, where it was read, and its properties."""

    type: Class
    address: int
    properties: tuple[Property, ...]

    def get(self, name: str) -> Property | None:
        """Find a property by attribute name (first match)."""
        return next((p for p in self.properties if p.attrib.name == name), None)

    def require(self, name: str, property_type: type[TProperty]) -> TProperty:
        """Find a property that must be present with the given type."""
        prop = self.get(name)
        if not isinstance(prop, property_type):
            raise DecodeError(f"Unexpected missing property for {type(self).__name__}: {name}")
        return prop

    def __contains__(self, name: object) -> bool:
        return any(p.attrib.name == name for p in self.properties)

    def inspect(self) -> str:
        return f"<{type(self).__name__}@{format_hex32(self.address)} type={self.type.inspect()}>"


@dataclass
class CFString(CFObject):
    """A record holding a length and a pointer to the text bytes."""

    size: int = field(init=False, repr=False, compare=False)
    data_pointer: DataPointer = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.size = self.require(STRING_SIZE_PROPERTY, IntegerProperty).value

        pointer = self.require(STRING_DATA_PROPERTY, PointerProperty).pointer
        if not isinstance(pointer, DataPointer):
            raise DecodeError(f"{self.inspect()}: {STRING_DATA_PROPERTY} is not a data pointer")
        self.data_pointer = pointer

    def get_contents(self, data: Buffer, encoding: str = "utf-8") -> str:
        if self.size == 0:
            return ""
        text_bytes = self.data_pointer.dereference(data, self.size)
        return text_bytes.decode(encoding, errors="replace")


@dataclass
class CFArray(CFObject):
    """A record followed by a list of addresses of objects of one class."""

    length: int = field(init=False, repr=False, compare=False)
    item_class_id: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.length = self.require(ARRAY_LENGTH_PROPERTY, IntegerProperty).value
        self.item_class_id = self.require(ARRAY_TYPE_PROPERTY, IntegerProperty).value

    def get_class(self, type_registry: TypeRegistry) -> Class:
        try:
            return type_registry.find_by_id(self.item_class_id)
        except ClassNotFoundError:
            raise ClassNotFoundError(
                self.item_class_id, f"{self.inspect()}: Class ID {self.item_class_id} not found"
            ) from None

    def item_pointers(self, data: Buffer, type_registry: TypeRegistry) -> Iterator[ObjectPointer]:
        """Yield a pointer for each item stored after the record's fixed part."""
        klass = self.get_class(type_registry)
        stream = BufferStream(data, self.address + self.type.size)

        for _ in range(self.length):
            location = stream.position
            yield ObjectPointer(location=location, address=stream.read_u32(), type=klass)

    def dereference_items(self, data: Buffer, deserializer: Deserializer) -> Iterator[CFObject]:
        for item in self.item_pointers(data, deserializer.type_registry):
            yield item.dereference(deserializer, data)

    def inspect(self) -> str:
        return (
            f"<{type(self).__name__}@{format_hex32(self.address)} type={self.type.inspect()}, "
            f"length={self.length}, itemClassId={self.item_class_id}>"
        )
