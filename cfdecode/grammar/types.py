"""Type definitions for CF grammars.

A grammar is a catalogue of classes. Each class is an ordered list of
attributes describing how a record of that class is laid out on the wire.
Attributes may refer to other classes by name; those references are
resolved lazily against a ``TypeRegistry`` so classes can be loaded in any
order and may refer to themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING, Union

from dataclasses_json import DataClassJsonMixin

from ..errors import DynamicSizeError, GrammarError
from .attrib_type import ATTRIB_SIZES, AttribType, is_attrib_type, is_pointer_type

if TYPE_CHECKING:
    from .registry import TypeRegistry

__all__ = [
    "UNASSIGNED_CLASS_ID",
    "Attrib",
    "AttribTarget",
    "Bit",
    "Bitmask",
    "Bits",
    "Class",
    "ClassRef",
    "Enum",
    "EnumEntry",
    "Mask",
    "inspect_target",
    "parse_type",
]

# Class id used for grammar classes that do not declare one
UNASSIGNED_CLASS_ID = 999


@dataclass
class Mask(DataClassJsonMixin):
    """[documentation only] A named extension mask value of a class."""

    name: str
    value: int


@dataclass
class EnumEntry(DataClassJsonMixin):
    """A single value of an attribute enumeration."""

    value: int
    name: str | None = None


@dataclass
class Enum(DataClassJsonMixin):
    """Enumeration of the values an integer attribute may take."""

    entries: list[EnumEntry]
    prefix: str | None = None


@dataclass
class Bit(DataClassJsonMixin):
    """A single named bit of a bitmask attribute."""

    index: int
    name: str


@dataclass
class Bits(DataClassJsonMixin):
    """A named range of bits of a bitmask attribute."""

    start: int
    end: int
    name: str
    enum: Enum | None = None


@dataclass
class Bitmask(DataClassJsonMixin):
    """Describes the bits of an integer attribute."""

    bits: list[Bit | Bits]


@dataclass(eq=False)
class ClassRef:
    """A reference to a class by name, resolved on first use."""

    class_name: str
    _class: Class | None = field(default=None, repr=False)

    @property
    def is_resolved(self) -> bool:
        return self._class is not None

    def resolve(self, registry: TypeRegistry) -> Class:
        """Look up the referenced class, caching the result."""
        if self._class is None:
            self._class = registry.find_by_name(self.class_name)
        return self._class

    def inspect(self) -> str:
        return f"<ClassRef {self.class_name}>"


AttribTarget = Union[AttribType, ClassRef]


def parse_type(name: str) -> AttribTarget:
    """Map a grammar type name to a primitive kind or a class reference."""
    if is_attrib_type(name):
        return AttribType(name)
    return ClassRef(name)


def inspect_target(t: AttribTarget) -> str:
    if isinstance(t, ClassRef):
        return t.inspect()
    return str(t)


@dataclass(eq=False)
class Attrib:
    """One field of a class.

    For arrays:
    - array=True: a dynamic list of pointers to ``pointer_target``
    - count=N: N consecutive scalars of ``type`` (fixed length)
    """

    name: str
    type: AttribTarget
    ancestor: bool = False
    array: bool = False
    pointer_target: AttribTarget | None = None
    mask: int = 0
    count: int = 1
    padding: int = 0  # documentation only, never consumed
    enum: Enum | None = None
    bitmask: Bitmask | None = None
    documentation: str | None = None
    klass: Class | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.array:
            if self.pointer_target is None:
                raise GrammarError(f"Expected array attribute '{self.name}' to have a pointer target")
            if self.type != AttribType.POINTER:
                raise GrammarError(f"Expected array attribute '{self.name}' to be of type pointer")
            if self.ancestor:
                raise GrammarError(f"Array attribute '{self.name}' cannot be an ancestor")
        elif self.type == AttribType.POINTER and self.pointer_target is None:
            raise GrammarError(f"Pointer attribute '{self.name}' requires a pointer target")

        if self.count < 1:
            raise GrammarError(f"Attribute '{self.name}' has invalid count {self.count}")
        if self.count > 1 and (self.array or not isinstance(self.type, AttribType) or self.is_pointer):
            raise GrammarError(f"Attribute '{self.name}' cannot repeat a pointer, array or class")

    @property
    def is_pointer(self) -> bool:
        return is_pointer_type(self.type)

    @property
    def is_composite(self) -> bool:
        return isinstance(self.type, ClassRef)

    @property
    def element_size(self) -> int:
        """Size in bytes of a single element of this attribute."""
        if self.array:
            raise DynamicSizeError(f"Array attribute '{self.name}' size is dynamic")

        if isinstance(self.type, ClassRef):
            if self.klass is None:
                raise GrammarError(f"Attribute '{self.name}' is not bound to a class")
            return self.type.resolve(self.klass.registry).size

        return ATTRIB_SIZES[self.type]

    @property
    def size(self) -> int:
        """Size in bytes of this attribute on the wire."""
        return self.element_size * self.count

    def inspect(self) -> str:
        optional_attrs: list[str] = []
        if self.ancestor:
            optional_attrs.append("ancestor=True")
        if self.array:
            optional_attrs.append("array=True")
        if self.pointer_target is not None:
            optional_attrs.append(f"pointerTarget={inspect_target(self.pointer_target)}")
        if self.mask:
            optional_attrs.append(f"mask=0x{self.mask:02x}")
        if self.count > 1:
            optional_attrs.append(f"count={self.count}")
        return f'<Attrib{{{inspect_target(self.type)}}} "{self.name}" {", ".join(optional_attrs)}>'


@dataclass(eq=False)
class Class:
    """A record type. A class contains one or more attributes.

    The class id must match the id in the record header; the name is only
    used for references within the grammar.
    """

    registry: TypeRegistry = field(repr=False)
    name: str
    id: int
    attributes: list[Attrib] = field(default_factory=list, repr=False)
    masks: list[Mask] = field(default_factory=list, repr=False)
    documentation: str | None = field(default=None, repr=False)
    _flattening: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        for attrib in self.attributes:
            attrib.klass = self

    def add_attributes(self, *attribs: Attrib) -> None:
        """Append attributes, binding them to this class."""
        if "flat_attributes" in self.__dict__:
            raise GrammarError(f"Class '{self.name}' is already in use")
        for attrib in attribs:
            attrib.klass = self
            self.attributes.append(attrib)

    @cached_property
    def flat_attributes(self) -> tuple[Attrib, ...]:
        """Attributes in wire order with every class-typed attribute inlined.

        Arrays are kept as-is since their size is dynamic.
        """
        if self._flattening:
            raise GrammarError(f"Class '{self.name}' inherits from itself")

        flat: list[Attrib] = []
        self._flattening = True
        try:
            for attrib in self.attributes:
                if not attrib.array and isinstance(attrib.type, ClassRef):
                    flat.extend(attrib.type.resolve(self.registry).flat_attributes)
                else:
                    flat.append(attrib)
        finally:
            self._flattening = False
        return tuple(flat)

    @cached_property
    def size(self) -> int:
        """Total size in bytes of a record of this class with every attribute present."""
        return sum(attrib.size for attrib in self.flat_attributes)

    @property
    def is_fixed_size(self) -> bool:
        return not any(attrib.array for attrib in self.flat_attributes)

    def get_attribute(self, name: str) -> Attrib | None:
        """Find a flattened attribute by name (first match)."""
        return next((a for a in self.flat_attributes if a.name == name), None)

    def inspect(self) -> str:
        return f'<Class#{self.id} "{self.name}">'
