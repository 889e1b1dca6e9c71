"""Decoding of CF records against a grammar."""

from .deserializer import Deserializer as Deserializer
from .deserializer import ObjectFactory as ObjectFactory
from .deserializer import ObjectTypeRegistry as ObjectTypeRegistry
from .deserializer import RecordHeader as RecordHeader
from .types import ArrayProperty as ArrayProperty
from .types import CFArray as CFArray
from .types import CFObject as CFObject
from .types import CFString as CFString
from .types import DataPointer as DataPointer
from .types import IntegerArrayProperty as IntegerArrayProperty
from .types import IntegerPointer as IntegerPointer
from .types import IntegerProperty as IntegerProperty
from .types import ObjectPointer as ObjectPointer
from .types import Pointer as Pointer
from .types import PointerProperty as PointerProperty
from .types import Property as Property
from .utils import format_hex32 as format_hex32
