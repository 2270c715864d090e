"""
Byte-order-parameterized integer extraction.

The byte order is fixed for a whole decode session. PrimitiveReader does not
check lengths: body decoders validate the body size before calling it, so a
short slice here is a programming error and surfaces as struct.error.
"""

import struct
from enum import Enum


class ByteOrder(str, Enum):
    """Session byte order, mapped to struct format prefixes."""

    native = "native"
    little = "little"
    big = "big"

    @property
    def prefix(self) -> str:
        return _PREFIXES[self]


_PREFIXES = {
    ByteOrder.native: '=',
    ByteOrder.little: '<',
    ByteOrder.big: '>',
}


def preview(data: bytes, limit: int = 16) -> str:
    """
    Describe a byte slice for error messages.

    Examples:
        preview(b'\\x01\\x02')         = "2 B: [1, 2]"
        preview(bytes(5), limit=2) = "5 B: [0, 0, ...]"
    """
    shown = ', '.join(str(b) for b in data[:limit])
    if len(data) > limit:
        shown += ', ...'
    return f"{len(data)} B: [{shown}]"


class PrimitiveReader:
    """Fixed-width integer reads at an offset, in one byte order."""

    def __init__(self, byte_order: ByteOrder = ByteOrder.native):
        self.byte_order = ByteOrder(byte_order)
        p = self.byte_order.prefix
        self._u16 = struct.Struct(p + 'H')
        self._u32 = struct.Struct(p + 'I')
        self._u64 = struct.Struct(p + 'Q')
        self._i32 = struct.Struct(p + 'i')
        self._i64 = struct.Struct(p + 'q')

    def u16(self, data: bytes, offset: int = 0) -> int:
        return self._u16.unpack_from(data, offset)[0]

    def u32(self, data: bytes, offset: int = 0) -> int:
        return self._u32.unpack_from(data, offset)[0]

    def u64(self, data: bytes, offset: int = 0) -> int:
        return self._u64.unpack_from(data, offset)[0]

    def i32(self, data: bytes, offset: int = 0) -> int:
        return self._i32.unpack_from(data, offset)[0]

    def i64(self, data: bytes, offset: int = 0) -> int:
        return self._i64.unpack_from(data, offset)[0]

    def u32_array(self, data: bytes) -> list:
        """Read consecutive u32 words; callers check the length is a multiple of 4."""
        count = len(data) // 4
        return list(struct.unpack_from(f"{self.byte_order.prefix}{count}I", data))

    def u64_array(self, data: bytes) -> list:
        """Read consecutive u64 words; callers check the length is a multiple of 8."""
        count = len(data) // 8
        return list(struct.unpack_from(f"{self.byte_order.prefix}{count}Q", data))

    def __repr__(self) -> str:
        return f"PrimitiveReader({self.byte_order.value})"


# ProcessCreation flags always arrive in the host's native order
NATIVE_READER = PrimitiveReader(ByteOrder.native)
