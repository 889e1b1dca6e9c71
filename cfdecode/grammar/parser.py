"""Parser for the cfdef text grammar format using Lark."""

import logging
import os
from dataclasses import dataclass
from typing import Any, TypeVar

from lark import Lark
from lark.exceptions import VisitError
from lark.visitors import Transformer

from ..errors import CFError, GrammarError
from .registry import TypeRegistry
from .types import Attrib, Class, Mask, parse_type

log = logging.getLogger("cfdecode")

_g_parser: Lark | None = None

ANNOTATIONS = frozenset(["ancestor", "mask", "padding"])


@dataclass
class _Count:
    value: int


@dataclass
class _ArrayFlag:
    pass


@dataclass
class _Target:
    value: str


@dataclass
class _Number:
    value: int


@dataclass
class _Annotation:
    name: str
    value: int | None


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_one(args: list[Any], class_type: type[TFilter]) -> TFilter | None:
    filtered = _filter(args, class_type)
    if len(filtered) == 0:
        return None
    if len(filtered) > 1:
        raise GrammarError(f"Found more than one {class_type.__name__}")
    return filtered[0]


class TreeTransformer(Transformer):
    """Transform a parse tree into grammar classes bound to a registry."""

    def __init__(self, registry: TypeRegistry) -> None:
        super().__init__()
        self.registry = registry

    def number(self, args: list[Any]) -> _Number:
        text = str(args[0])
        if text.lower().startswith("0x"):
            return _Number(value=int(text, 16))
        return _Number(value=int(text, 10))

    def count(self, args: list[Any]) -> _Count:
        return _Count(value=args[0].value)

    def array(self, args: list[Any]) -> _ArrayFlag:
        return _ArrayFlag()

    def target(self, args: list[Any]) -> _Target:
        return _Target(value=str(args[0]))

    def annotation(self, args: list[Any]) -> _Annotation:
        name = str(args[0])
        if name not in ANNOTATIONS:
            raise GrammarError(f"Unknown annotation @{name}")

        number = _find_one(args[1:], _Number)
        if name in ("mask", "padding") and number is None:
            raise GrammarError(f"Annotation @{name} requires a value")
        return _Annotation(name=name, value=number.value if number else None)

    def mask_def(self, args: list[Any]) -> Mask:
        return Mask(name=str(args[0]), value=args[1].value)

    def member(self, args: list[Any]) -> Attrib:
        count = _find_one(args, _Count)
        target = _find_one(args, _Target)
        annotations = {a.name: a.value for a in _filter(args, _Annotation)}

        return Attrib(
            name=str(args[0]),
            type=parse_type(str(args[1])),
            ancestor="ancestor" in annotations,
            array=_find_one(args, _ArrayFlag) is not None,
            pointer_target=parse_type(target.value) if target else None,
            mask=annotations.get("mask") or 0,
            count=count.value if count else 1,
            padding=annotations.get("padding") or 0,
        )

    def class_def(self, args: list[Any]) -> Class:
        return Class(
            registry=self.registry,
            name=str(args[0]),
            id=args[1].value,
            attributes=_filter(args, Attrib),
            masks=_filter(args, Mask),
        )

    def start(self, args: list[Any]) -> list[Class]:
        return _filter(args, Class)


def _get_parser() -> Lark:
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/cfdef.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar)
    return _g_parser


def parse(text: str, registry: TypeRegistry | None = None) -> TypeRegistry:
    """Parse a cfdef grammar and add its classes to a registry."""
    actual_registry = registry if registry is not None else TypeRegistry()

    tree = _get_parser().parse(text)
    try:
        classes = TreeTransformer(actual_registry).transform(tree)
    except VisitError as err:
        if isinstance(err.orig_exc, CFError):
            raise err.orig_exc from None
        raise

    actual_registry.add(*classes)
    log.debug("Loaded %d classes from cfdef grammar", len(classes))
    return actual_registry
