"""Helpers shared by the CF decoder."""

from ..errors import AlignmentError
from .constants import RECORD_ALIGNMENT


def format_hex32(num: int) -> str:
    return f"0x{num:08x}"


def check_aligned32(offset: int) -> None:
    """Raise AlignmentError unless offset is a multiple of 4."""
    if offset % RECORD_ALIGNMENT != 0:
        raise AlignmentError(offset)
