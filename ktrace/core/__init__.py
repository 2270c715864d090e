"""Error model shared by every decoder."""

from .errors import (
    ErrorKind,
    ERROR_METADATA,
    KtraceError,
    BadValueError,
    StreamIOError,
    MessageError,
    TextDecodingError,
    decode_text,
)

__all__ = [
    'ErrorKind',
    'ERROR_METADATA',
    'KtraceError',
    'BadValueError',
    'StreamIOError',
    'MessageError',
    'TextDecodingError',
    'decode_text',
]
