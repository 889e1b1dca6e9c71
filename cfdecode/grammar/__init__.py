"""CF grammar type system and loaders."""

from pathlib import Path

from .attrib_type import ATTRIB_SIZES as ATTRIB_SIZES
from .attrib_type import AttribType as AttribType
from .attrib_type import deserialize_value as deserialize_value
from .layout import ClassLayout as ClassLayout
from .layout import FieldLayout as FieldLayout
from .layout import LayoutCalculator as LayoutCalculator
from .layout import LayoutKind as LayoutKind
from .layout import calculate_layouts as calculate_layouts
from .parser import parse as parse
from .registry import TypeRegistry as TypeRegistry
from .types import *
from .xml_loader import GrammarDocument as GrammarDocument
from .xml_loader import parse_xml as parse_xml

GRAMMAR_FORMATS = ("auto", "xml", "cfdef")


def load_grammar_file(
    path: str | Path, format: str = "auto", registry: TypeRegistry | None = None
) -> TypeRegistry:
    """Load a grammar file into a type registry.

    With format="auto", files ending in .xml are read as XML grammars and
    everything else as cfdef text.
    """
    path = Path(path)
    if format == "auto":
        format = "xml" if path.suffix.lower() == ".xml" else "cfdef"

    if format == "xml":
        return parse_xml(path.read_bytes(), registry)
    if format == "cfdef":
        return parse(path.read_text(encoding="utf-8"), registry)
    raise ValueError(f"Unknown grammar format: {format}")
