"""Grammar-driven decoder for CF records."""

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import NamedTuple

from ..errors import DecodeError
from ..grammar.attrib_type import FORMAT_CHARS, AttribType
from ..grammar.registry import TypeRegistry
from ..grammar.types import Attrib, Class, ClassRef
from .constants import (
    ADDRESS_SIZE,
    ARRAY_CLASS_ID,
    ARRAY_HEADER_FORMAT,
    ARRAY_HEADER_SIZE,
    HEADER_FORMAT,
    STRING_CLASS_ID,
)
from .stream import Buffer, BufferStream
from .types import (
    ArrayProperty,
    CFArray,
    CFObject,
    CFString,
    DataPointer,
    IntegerArrayProperty,
    IntegerPointer,
    IntegerProperty,
    ObjectPointer,
    Pointer,
    PointerProperty,
    Property,
)
from .utils import check_aligned32, format_hex32

log = logging.getLogger("cfdecode")

# Builds a record from the generic decode result: (class, address, properties)
ObjectFactory = Callable[[Class, int, tuple[Property, ...]], CFObject]


class RecordHeader(NamedTuple):
    """The S_CFOBJECT header at the start of every record."""

    class_id: int
    extension_mask: int
    root_type: int


class ObjectTypeRegistry:
    """Maps class ids to specialised record types.

    Classes without an entry decode to a plain ``CFObject``.
    """

    def __init__(self, object_types: Mapping[int, ObjectFactory] | None = None) -> None:
        self._object_types: dict[int, ObjectFactory] = dict(object_types or {})

    @classmethod
    def default(cls) -> "ObjectTypeRegistry":
        """A registry with the built-in string and array records."""
        return cls({STRING_CLASS_ID: CFString, ARRAY_CLASS_ID: CFArray})

    def register(self, class_id: int, factory: ObjectFactory) -> None:
        self._object_types[class_id] = factory

    def unregister(self, class_id: int) -> None:
        self._object_types.pop(class_id, None)

    def get(self, class_id: int) -> ObjectFactory | None:
        return self._object_types.get(class_id)

    def __contains__(self, class_id: object) -> bool:
        return class_id in self._object_types

    def __iter__(self) -> Iterator[int]:
        return iter(self._object_types)

    def __len__(self) -> int:
        return len(self._object_types)


class Deserializer:
    """Decode records from a buffer using the classes of a type registry.

    Decoding is lazy: pointers found in a record are returned undecoded and
    must be dereferenced explicitly, each with the same buffer.

    Example:
        registry = load_grammar_file("grammar.xml")
        deserializer = Deserializer(registry)
        root = deserializer.parse(data)
        for prop in root.properties:
            if isinstance(prop, PointerProperty) and isinstance(prop.pointer, ObjectPointer):
                child = prop.pointer.dereference(deserializer, data)

    Args:
        type_registry: Classes available for decoding.
        object_types: Specialised record types by class id. Defaults to the
            built-in string and array records.
        resolve_array_tags: Resolve the class of object-pointer array items
            from the element type tag on the wire instead of the grammar's
            pointer target.
    """

    def __init__(
        self,
        type_registry: TypeRegistry,
        *,
        object_types: ObjectTypeRegistry | None = None,
        resolve_array_tags: bool = False,
    ) -> None:
        self.type_registry = type_registry
        self.object_types = object_types if object_types is not None else ObjectTypeRegistry.default()
        self.resolve_array_tags = resolve_array_tags

    def register_object_type(self, class_id: int, factory: ObjectFactory) -> None:
        log.debug("Registering object type %s for class id %d", getattr(factory, "__name__", factory), class_id)
        self.object_types.register(class_id, factory)

    def unregister_object_type(self, class_id: int) -> None:
        log.debug("Unregistering object type for class id %d", class_id)
        self.object_types.unregister(class_id)

    def parse(self, data: Buffer) -> CFObject:
        """Decode the root record at the start of the buffer."""
        return self.decode(data, 0)

    def peek_header(self, data: Buffer, offset: int) -> RecordHeader:
        """Read the header of the record at offset."""
        check_aligned32(offset)
        return RecordHeader(*BufferStream(data, offset).peek(HEADER_FORMAT))

    def decode(self, data: Buffer, offset: int) -> CFObject:
        """Decode the record at an absolute offset of the buffer."""
        check_aligned32(offset)

        # The header is the first attribute of every record, so peek it
        # without consuming and let the class attributes read it again.
        buf = BufferStream(data, offset)
        header = RecordHeader(*buf.peek(HEADER_FORMAT))
        klass = self._get_class(header.class_id)

        log.debug(
            "Decoding %s at %s (mask 0x%02x)",
            klass.inspect(),
            format_hex32(offset),
            header.extension_mask,
        )

        properties: list[Property] = []
        for attrib in klass.flat_attributes:
            if (attrib.mask & header.extension_mask) != attrib.mask:
                continue
            properties.append(self._create_property(buf, attrib))

        factory = self.object_types.get(header.class_id)
        if factory is None:
            return CFObject(klass, offset, tuple(properties))

        log.debug("Using %s for class id %d", getattr(factory, "__name__", factory), header.class_id)
        return factory(klass, offset, tuple(properties))

    def _get_class(self, class_id: int) -> Class:
        return self.type_registry.find_by_id(class_id)

    def _read_array(self, buf: BufferStream, attrib: Attrib) -> ArrayProperty:
        array_pos = buf.position
        type_of_data, nr_of_elements = buf.unpack(ARRAY_HEADER_FORMAT)
        addresses = buf.unpack_many("I", nr_of_elements)
        first = array_pos + ARRAY_HEADER_SIZE
        locations = range(first, first + ADDRESS_SIZE * nr_of_elements, ADDRESS_SIZE)

        target = attrib.pointer_target
        elements: list[Pointer]
        if isinstance(target, ClassRef):
            if self.resolve_array_tags:
                elem_class = self._get_class(type_of_data)
            else:
                elem_class = target.resolve(self.type_registry)
            elements = [
                ObjectPointer(location=loc, address=addr, type=elem_class)
                for loc, addr in zip(locations, addresses)
            ]
        elif target is not None:
            elements = [
                IntegerPointer(location=loc, address=addr, type=target)
                for loc, addr in zip(locations, addresses)
            ]
        else:
            raise DecodeError(f"Array attribute '{attrib.name}' has no pointer target")

        return ArrayProperty(attrib, array_pos, type_of_data, tuple(elements))

    def _read_pointer(self, buf: BufferStream, attrib: Attrib) -> Pointer:
        pos = buf.position
        address = buf.read_u32()

        if attrib.type == AttribType.DATA_POINTER:
            return DataPointer(location=pos, address=address)

        target = attrib.pointer_target
        if isinstance(target, ClassRef):
            return ObjectPointer(location=pos, address=address, type=target.resolve(self.type_registry))
        if target is None:
            raise DecodeError(f"Pointer attribute '{attrib.name}' has no pointer target")
        return IntegerPointer(location=pos, address=address, type=target)

    def _read_integer(self, buf: BufferStream, attrib: Attrib) -> IntegerProperty:
        pos = buf.position
        if not isinstance(attrib.type, AttribType):
            raise DecodeError("_read_integer cannot be used with a composite value")
        (num,) = buf.unpack("<" + FORMAT_CHARS[attrib.type])
        return IntegerProperty(attrib, pos, num)

    def _read_integer_array(self, buf: BufferStream, attrib: Attrib) -> IntegerArrayProperty:
        pos = buf.position
        if not isinstance(attrib.type, AttribType):
            raise DecodeError("_read_integer_array cannot be used with a composite value")
        value = buf.unpack_many(FORMAT_CHARS[attrib.type], attrib.count)
        return IntegerArrayProperty(attrib, pos, value)

    def _create_property(self, buf: BufferStream, attrib: Attrib) -> Property:
        pos = buf.position

        # Attribute is some kind of pointer or array
        if attrib.is_pointer:
            if attrib.array:
                return self._read_array(buf, attrib)
            return PointerProperty(attrib, pos, self._read_pointer(buf, attrib))

        # Attribute is an integer or integer array
        if attrib.count > 1:
            return self._read_integer_array(buf, attrib)

        return self._read_integer(buf, attrib)
