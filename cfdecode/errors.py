"""Exceptions raised while loading grammars and decoding CF data."""


class CFError(RuntimeError):
    """Base class for all cfdecode errors."""


class AlignmentError(CFError):
    """Raised when a record offset is not aligned to 32 bits."""

    def __init__(self, offset: int) -> None:
        super().__init__(f"Alignment error: offset 0x{offset:08x} not aligned to 32 bits")
        self.offset = offset


class ClassNotFoundError(CFError, LookupError):
    """Raised when a class id or class name is not in the type registry."""

    def __init__(self, key: int | str, message: str | None = None) -> None:
        super().__init__(message or f"Class not found: {key}")
        self.key = key


class GrammarError(CFError):
    """Raised when a grammar definition is malformed."""


class DynamicSizeError(GrammarError):
    """Raised when sizing an attribute or class whose size is only known after decoding."""


class DecodeError(CFError):
    """Raised when a record cannot be decoded or dereferenced."""


class NullPointerError(DecodeError):
    """Raised when dereferencing a pointer whose address is zero."""
