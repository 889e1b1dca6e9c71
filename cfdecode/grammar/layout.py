"""Wire layout calculation for grammar classes."""

from dataclasses import dataclass
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin

from .attrib_type import AttribType
from .registry import TypeRegistry
from .types import Attrib, AttribTarget, Class, ClassRef

# Dynamic arrays start with a u16 element type tag and a u16 element count
ARRAY_HEADER_SIZE = 4


class LayoutKind(StrEnum):
    """Classification of record layouts."""

    FIXED = auto()  # Every attribute always present, no dynamic arrays
    MASKED = auto()  # Size depends on the record's extension mask
    DYNAMIC = auto()  # Contains a dynamic array, unbounded


@dataclass(frozen=True)
class FieldLayout(DataClassJsonMixin):
    """Position and size of one flattened attribute.

    Offsets assume every masked attribute is present; they are None for
    attributes following a dynamic array.
    """

    name: str
    type: str
    pointer_target: str | None
    offset: int | None
    size: int | None
    mask: int
    count: int
    array: bool


@dataclass(frozen=True)
class ClassLayout(DataClassJsonMixin):
    """Complete layout of a class."""

    name: str
    id: int
    min_size: int
    max_size: int | None  # None means unbounded
    kind: LayoutKind
    fields: list[FieldLayout]

    @property
    def is_fixed(self) -> bool:
        return self.kind == LayoutKind.FIXED


def _type_name(t: AttribTarget | None) -> str | None:
    if t is None:
        return None
    if isinstance(t, ClassRef):
        return t.class_name
    return AttribType(t).value


class LayoutCalculator:
    """Calculate layouts for the classes of a registry."""

    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self._cache: dict[Class, ClassLayout] = {}

    def calc_field(self, attrib: Attrib, offset: int | None) -> FieldLayout:
        return FieldLayout(
            name=attrib.name,
            type=_type_name(attrib.type) or "",
            pointer_target=_type_name(attrib.pointer_target),
            offset=offset,
            size=None if attrib.array else attrib.size,
            mask=attrib.mask,
            count=attrib.count,
            array=attrib.array,
        )

    def calc_class(self, klass: Class) -> ClassLayout:
        """Calculate the layout of a class (with caching)."""
        if klass in self._cache:
            return self._cache[klass]

        fields: list[FieldLayout] = []
        offset: int | None = 0
        total_min = 0
        total_max: int | None = 0
        kind = LayoutKind.FIXED

        for attrib in klass.flat_attributes:
            layout = self.calc_field(attrib, offset)
            fields.append(layout)

            if attrib.array:
                if not attrib.mask:
                    total_min += ARRAY_HEADER_SIZE
                total_max = None
                offset = None
                kind = LayoutKind.DYNAMIC
                continue

            size = attrib.size
            if not attrib.mask:
                total_min += size
            elif kind == LayoutKind.FIXED:
                kind = LayoutKind.MASKED

            if total_max is not None:
                total_max += size
            if offset is not None:
                offset += size

        class_layout = ClassLayout(
            name=klass.name,
            id=klass.id,
            min_size=total_min,
            max_size=total_max,
            kind=kind,
            fields=fields,
        )
        self._cache[klass] = class_layout
        return class_layout

    def calc_by_name(self, name: str) -> ClassLayout:
        return self.calc_class(self.registry.find_by_name(name))

    def calc_all(self) -> dict[str, ClassLayout]:
        """Calculate layouts for every registered class, keyed by name."""
        return {klass.name: self.calc_class(klass) for klass in self.registry}


def calculate_layouts(registry: TypeRegistry) -> dict[str, ClassLayout]:
    """Calculate layout information for every class of a registry."""
    return LayoutCalculator(registry).calc_all()
