"""
ktrace v0.3 - Decoder for BSD ktrace(2) dump files.

This package provides:
- core: Error model shared by every decoder
- formats: Record header, record types, body decoders and stream reader
- display: One-line text rendering of decoded records
- config: YAML configuration with environment variable support
- cli: Command-line interface
"""

__version__ = "0.3.0"

from .core import (
    ErrorKind,
    KtraceError,
    BadValueError,
    StreamIOError,
    MessageError,
    TextDecodingError,
)
from .formats import (
    ByteOrder,
    PrimitiveReader,
    RecordType,
    Header,
    TimeVal,
    HEADER_SIZE,
    Record,
    CapabilityRights,
    CapFail,
    KtraceReader,
    DecodeOptions,
    DecodedRecord,
    DecodeResult,
    decode_body,
)
from .config import KtraceConfig, load_config

__all__ = [
    # Version
    '__version__',
    # Errors
    'ErrorKind',
    'KtraceError',
    'BadValueError',
    'StreamIOError',
    'MessageError',
    'TextDecodingError',
    # Formats
    'ByteOrder',
    'PrimitiveReader',
    'RecordType',
    'Header',
    'TimeVal',
    'HEADER_SIZE',
    'Record',
    'CapabilityRights',
    'CapFail',
    'KtraceReader',
    'DecodeOptions',
    'DecodedRecord',
    'DecodeResult',
    'decode_body',
    # Config
    'KtraceConfig',
    'load_config',
]
