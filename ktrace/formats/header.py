"""
ktrace record header (struct ktr_header).

Layout for a 64-bit word size (56 bytes):
    Offset  Size  Field
    0       4     ktr_len    (u32)  Body length in bytes, header excluded
    4       2     ktr_type   (u16)  Record type code
    6       2     padding
    8       4     ktr_pid    (u32)  Process ID
    12      20    ktr_comm   (char[MAXCOMLEN + 1])  Command name, NUL-terminated
    32      8     tv_sec     (time_t)
    40      8     tv_usec    (suseconds_t)
    48      8     ktr_tid    (intptr_t)  Thread ID

For a 32-bit word size the timeval and thread ID are 4 bytes each, giving a
44-byte header.

The type code is validated before any other field is trusted.
"""

import struct
from dataclasses import dataclass
from typing import Dict

from ..core.errors import BadValueError
from .byteorder import ByteOrder, PrimitiveReader, preview
from .record_types import RecordType


# Usable command characters; the buffer holds one more for the NUL
MAXCOMLEN = 19
COMMAND_SIZE = MAXCOMLEN + 1

# Header size for the default 64-bit layout
HEADER_SIZE = 56

TYPE_OFFSET = 4


@dataclass(frozen=True)
class HeaderLayout:
    """Byte layout of ktr_header for one word size."""

    word_size: int
    # I=ktr_len, H=ktr_type, 2x=pad, I=ktr_pid, 20s=ktr_comm,
    # then tv_sec, tv_usec (signed words) and ktr_tid (unsigned word)
    body: str

    def format(self, byte_order: ByteOrder) -> str:
        return ByteOrder(byte_order).prefix + self.body

    @property
    def size(self) -> int:
        return struct.calcsize('<' + self.body)

    @classmethod
    def for_word_size(cls, word_size: int) -> 'HeaderLayout':
        try:
            return LAYOUTS[word_size]
        except KeyError:
            raise ValueError(f"Unsupported word size: {word_size} (expected 4 or 8)") from None


LAYOUTS: Dict[int, HeaderLayout] = {
    8: HeaderLayout(word_size=8, body=f'IH2xI{COMMAND_SIZE}sqqQ'),
    4: HeaderLayout(word_size=4, body=f'IH2xI{COMMAND_SIZE}siiI'),
}


@dataclass
class TimeVal:
    """struct timeval from the record header."""

    seconds: int
    microseconds: int

    def __str__(self) -> str:
        return f"{self.seconds}.{self.microseconds:06d}"


@dataclass
class Header:
    """Decoded ktrace record header."""

    length: int
    record_type: RecordType
    pid: int
    command: str
    timestamp: TimeVal
    tid: int

    @classmethod
    def decode(
        cls,
        data: bytes,
        byte_order: ByteOrder = ByteOrder.native,
        word_size: int = 8,
    ) -> 'Header':
        """
        Decode a header from exactly one layout's worth of bytes.

        Raises:
            BadValueError: wrong buffer size, unknown ktr_type or a command
                name that is not valid UTF-8
        """
        layout = HeaderLayout.for_word_size(word_size)
        if len(data) != layout.size:
            raise BadValueError(f"{layout.size} B header", preview(data))

        reader = PrimitiveReader(byte_order)
        record_type = RecordType.from_code(reader.u16(data, TYPE_OFFSET))

        length, _type, pid, comm, tv_sec, tv_usec, tid = struct.unpack(
            layout.format(byte_order), data
        )

        return cls(
            length=length,
            record_type=record_type,
            pid=pid,
            command=_decode_command(comm),
            timestamp=TimeVal(seconds=tv_sec, microseconds=tv_usec),
            tid=tid,
        )

    def encode(
        self,
        byte_order: ByteOrder = ByteOrder.native,
        word_size: int = 8,
    ) -> bytes:
        """Encode header to bytes. The command is cut to MAXCOMLEN bytes."""
        layout = HeaderLayout.for_word_size(word_size)
        return struct.pack(
            layout.format(byte_order),
            self.length,
            int(self.record_type),
            self.pid,
            self.command.encode('utf-8')[:MAXCOMLEN],
            self.timestamp.seconds,
            self.timestamp.microseconds,
            self.tid,
        )

    def to_dict(self) -> dict:
        return {
            'length': self.length,
            'record_type': self.record_type.label,
            'pid': self.pid,
            'command': self.command,
            'timestamp': {
                'seconds': self.timestamp.seconds,
                'microseconds': self.timestamp.microseconds,
            },
            'tid': self.tid,
        }


def _decode_command(buf: bytes) -> str:
    """Text up to the first NUL of the fixed command buffer."""
    raw = buf.split(b'\x00', 1)[0]
    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError:
        raise BadValueError("UTF-8 command name (ktr_comm)", preview(raw)) from None


# Verify struct sizes at module load
assert LAYOUTS[8].size == HEADER_SIZE, \
    f"64-bit header size mismatch: {LAYOUTS[8].size} != {HEADER_SIZE}"
assert LAYOUTS[4].size == 44, \
    f"32-bit header size mismatch: {LAYOUTS[4].size} != 44"
