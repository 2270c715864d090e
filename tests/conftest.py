"""Pytest fixtures and helpers for building synthetic ktrace streams."""

import struct
from pathlib import Path
from typing import List

import pytest

from ktrace.formats.byteorder import ByteOrder
from ktrace.formats.header import Header, TimeVal
from ktrace.formats.record_types import RecordType


LE = ByteOrder.little


def make_header(
    record_type: int,
    length: int,
    pid: int = 1234,
    command: str = 'ls',
    seconds: int = 1_500_000_000,
    microseconds: int = 250_000,
    tid: int = 100_001,
    byte_order: ByteOrder = LE,
    word_size: int = 8,
) -> bytes:
    """Encode a header; record_type may be an invalid raw code."""
    fmt = '<IH2xI20sqqQ' if word_size == 8 else '<IH2xI20siiI'
    if byte_order == ByteOrder.big:
        fmt = '>' + fmt[1:]
    return struct.pack(
        fmt, length, int(record_type), pid, command.encode('utf-8'),
        seconds, microseconds, tid,
    )


def make_record(record_type: RecordType, body: bytes, **kwargs) -> bytes:
    """Header + body with a matching length."""
    return make_header(record_type, len(body), **kwargs) + body


def sysret_body(code: int = 2, eosys: int = 0, error: int = 0, retval: int = 0) -> bytes:
    return struct.pack('<HHIQ', code, eosys, error, retval)


def syscall_body(code: int, args: List[int]) -> bytes:
    return struct.pack('<HH4x', code, len(args)) + b''.join(struct.pack('<Q', a) for a in args)


@pytest.fixture
def sample_stream() -> bytes:
    """A small, valid stream covering several record types."""
    return b''.join([
        make_record(RecordType.SYSTEM_CALL, syscall_body(5, [0x7fff0000, 0, 0o644])),
        make_record(RecordType.NAMEI, b'/etc/passwd'),
        make_record(RecordType.SYSTEM_CALL_RETURN, sysret_body(code=5, retval=3)),
        make_record(RecordType.GENERIC_IO, struct.pack('<iI', 3, 0) + b'root:*:0:0'),
        make_record(RecordType.PROCESS_DESTRUCTION, b''),
    ])


@pytest.fixture
def sample_trace_file(tmp_path: Path, sample_stream: bytes) -> Path:
    """Sample stream written to a file."""
    path = tmp_path / 'ktrace.out'
    path.write_bytes(sample_stream)
    return path


@pytest.fixture
def header() -> Header:
    return Header(
        length=16,
        record_type=RecordType.SYSTEM_CALL_RETURN,
        pid=4242,
        command='sshd',
        timestamp=TimeVal(seconds=1_700_000_000, microseconds=123_456),
        tid=100_123,
    )
