"""Lookup table of grammar classes by id and by name."""

from collections.abc import Iterator

from ..errors import ClassNotFoundError
from .types import Class


class TypeRegistry:
    """Append-only registry of classes.

    Adding a class whose id or name is already registered replaces the
    earlier mapping. Iteration yields one class per registered id.
    """

    def __init__(self) -> None:
        self._type_name_lookup: dict[str, Class] = {}
        self._type_id_lookup: dict[int, Class] = {}

    def add(self, *types: Class) -> None:
        """Register one or more classes."""
        for t in types:
            self._type_name_lookup[t.name] = t
            self._type_id_lookup[t.id] = t

    def find_by_name(self, name: str) -> Class:
        try:
            return self._type_name_lookup[name]
        except KeyError:
            raise ClassNotFoundError(name) from None

    def find_by_id(self, class_id: int) -> Class:
        try:
            return self._type_id_lookup[class_id]
        except KeyError:
            raise ClassNotFoundError(class_id) from None

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return key in self._type_name_lookup
        return key in self._type_id_lookup

    def __iter__(self) -> Iterator[Class]:
        return iter(self._type_id_lookup.values())

    def __len__(self) -> int:
        return len(self._type_id_lookup)
