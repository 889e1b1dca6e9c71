"""Positioned little-endian reader over a borrowed byte buffer.

Uses memoryview for zero-copy slicing.
"""

import struct
from typing import Any

from ..errors import DecodeError
from .utils import format_hex32

Buffer = bytes | bytearray | memoryview


class BufferStream:
    """Read cursor over an immutable view of the caller's buffer."""

    def __init__(self, data: Buffer, position: int = 0) -> None:
        view = memoryview(data)
        self.data = view if view.format == "B" else view.cast("B")
        self.position = position

    def _unpack_at(self, fmt: str, position: int) -> tuple[Any, ...]:
        if position < 0:
            raise DecodeError(f"Negative buffer position {position}")
        try:
            return struct.unpack_from(fmt, self.data, position)
        except struct.error as err:
            raise DecodeError(
                f"Cannot read {struct.calcsize(fmt)} bytes at {format_hex32(position)}: "
                f"buffer is {len(self.data)} bytes"
            ) from err

    def peek(self, fmt: str, extra_offset: int = 0) -> tuple[Any, ...]:
        """Unpack without moving the cursor."""
        return self._unpack_at(fmt, self.position + extra_offset)

    def unpack(self, fmt: str) -> tuple[Any, ...]:
        result = self._unpack_at(fmt, self.position)
        self.position += struct.calcsize(fmt)
        return result

    def unpack_many(self, fmt: str, count: int) -> tuple[Any, ...]:
        """Unpack ``count`` items of the same little-endian format in one call."""
        return self.unpack(f"<{count}{fmt}")

    def read_u32(self) -> int:
        return self.unpack("<I")[0]

    def read(self, size: int) -> bytes:
        if size < 0:
            raise DecodeError(f"Cannot read a negative number of bytes ({size})")
        end = self.position + size
        if self.position < 0 or end > len(self.data):
            raise DecodeError(
                f"Cannot read {size} bytes at {format_hex32(self.position)}: "
                f"buffer is {len(self.data)} bytes"
            )
        result = bytes(self.data[self.position : end])
        self.position = end
        return result
