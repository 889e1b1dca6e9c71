"""Loader for XML grammar documents."""

import logging
import xml.etree.ElementTree as ET

from ..errors import GrammarError
from .registry import TypeRegistry
from .types import (
    UNASSIGNED_CLASS_ID,
    Attrib,
    Bit,
    Bitmask,
    Bits,
    Class,
    Enum,
    EnumEntry,
    Mask,
    parse_type,
)

log = logging.getLogger("cfdecode")


def _number(text: str) -> int:
    text = text.strip()
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text, 10)
    except ValueError:
        raise GrammarError(f"Invalid number in grammar: {text!r}") from None


def _require_attribute(elem: ET.Element, name: str) -> str:
    value = elem.get(name)
    if value is None:
        raise GrammarError(f"expected attribute '{name}' to be defined on element <{elem.tag}>")
    return value


def _optional_number(elem: ET.Element, name: str, default: int) -> int:
    value = elem.get(name)
    return default if value is None else _number(value)


def _documentation(elem: ET.Element) -> str | None:
    doc = elem.find("doc")
    if doc is None:
        return None
    text = "".join(doc.itertext()).strip()
    return text or None


class GrammarDocument:
    """An XML grammar: a ``<grammar>`` element whose children are classes."""

    def __init__(self, xml: str | bytes) -> None:
        try:
            root = ET.fromstring(xml)
        except ET.ParseError as err:
            raise GrammarError(f"Invalid grammar document: {err}") from err

        grammar = root if root.tag == "grammar" else root.find(".//grammar")
        if grammar is None:
            raise GrammarError("Invalid grammar document: no <grammar> element")
        self.grammar = grammar

    @property
    def revision(self) -> int | None:
        rev = self.grammar.get("rev")
        return None if rev is None else _number(rev)

    def _handle_enum_entry(self, entry_def: ET.Element) -> EnumEntry:
        return EnumEntry(
            value=_number(_require_attribute(entry_def, "value")),
            name=entry_def.get("name"),
        )

    def _handle_enum(self, enum_def: ET.Element) -> Enum:
        return Enum(
            entries=[self._handle_enum_entry(e) for e in enum_def.findall("entry")],
            prefix=enum_def.get("prefix"),
        )

    def _handle_bits(self, bits_def: ET.Element) -> Bits:
        enum_def = bits_def.find("enum")
        return Bits(
            start=_number(_require_attribute(bits_def, "from")),
            end=_number(_require_attribute(bits_def, "to")),
            name=_require_attribute(bits_def, "name"),
            enum=self._handle_enum(enum_def) if enum_def is not None else None,
        )

    def _handle_bit(self, bit_def: ET.Element) -> Bit:
        return Bit(
            index=_number(_require_attribute(bit_def, "index")),
            name=_require_attribute(bit_def, "name"),
        )

    def _handle_bitmask(self, bitmask_def: ET.Element) -> Bitmask:
        bits: list[Bit | Bits] = [self._handle_bit(b) for b in bitmask_def.findall("bit")]
        bits.extend(self._handle_bits(b) for b in bitmask_def.findall("bits"))
        return Bitmask(bits=bits)

    def _handle_attribute(self, attribute_def: ET.Element) -> Attrib:
        enum_def = attribute_def.find("enum")
        bitmask_def = attribute_def.find("bitmask")
        ptrtgt = attribute_def.get("ptrtgt")

        return Attrib(
            name=_require_attribute(attribute_def, "name"),
            type=parse_type(_require_attribute(attribute_def, "type")),
            ancestor=attribute_def.get("ancestor") == "1",
            array=attribute_def.get("array") == "1",
            padding=_optional_number(attribute_def, "padding", 0),
            pointer_target=parse_type(ptrtgt) if ptrtgt is not None else None,
            mask=_optional_number(attribute_def, "mask", 0),
            enum=self._handle_enum(enum_def) if enum_def is not None else None,
            count=_optional_number(attribute_def, "count", 1),
            bitmask=self._handle_bitmask(bitmask_def) if bitmask_def is not None else None,
            documentation=_documentation(attribute_def),
        )

    def _handle_mask(self, mask_def: ET.Element) -> Mask:
        return Mask(
            name=_require_attribute(mask_def, "name"),
            value=_number(_require_attribute(mask_def, "value")),
        )

    def _handle_class(self, registry: TypeRegistry, class_def: ET.Element) -> Class:
        return Class(
            registry=registry,
            name=_require_attribute(class_def, "name"),
            id=_optional_number(class_def, "classid", UNASSIGNED_CLASS_ID),
            attributes=[self._handle_attribute(a) for a in class_def.findall("attrib")],
            masks=[self._handle_mask(m) for m in class_def.findall("masks")],
            documentation=_documentation(class_def),
        )

    def parse(self, registry: TypeRegistry | None = None) -> TypeRegistry:
        """Build classes from the document and add them to a registry."""
        actual_registry = registry if registry is not None else TypeRegistry()

        classes = [self._handle_class(actual_registry, c) for c in self.grammar.findall("class")]
        actual_registry.add(*classes)

        log.debug("Loaded %d classes from XML grammar rev %s", len(classes), self.revision)
        return actual_registry


def parse_xml(xml: str | bytes, registry: TypeRegistry | None = None) -> TypeRegistry:
    """Parse an XML grammar document into a type registry."""
    return GrammarDocument(xml).parse(registry)
