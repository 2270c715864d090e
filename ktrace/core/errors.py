"""
Error model for ktrace decoding.

Every decoder reports failures through one of four error kinds:

- BAD_VALUE:     A field failed a structural or semantic check
- IO:            The byte source could not supply the requested bytes
- MESSAGE:       A decode precondition failed (no expected/got pair)
- TEXT_DECODING: A text field contained invalid UTF-8

Errors are raised inside decoders. The stream reader catches body errors and
stores them next to the record header so that decoding can continue; framing
errors (header or I/O) stop the stream.
"""

from enum import Enum


class ErrorKind(Enum):
    """Closed set of failure kinds."""

    BAD_VALUE = "bad_value"
    IO = "io"
    MESSAGE = "message"
    TEXT_DECODING = "text_decoding"


# Error kind metadata
ERROR_METADATA = {
    ErrorKind.BAD_VALUE: {
        'severity': 'error',
        'description': 'Field failed a structural check',
    },
    ErrorKind.IO: {
        'severity': 'critical',
        'description': 'Byte source failed',
    },
    ErrorKind.MESSAGE: {
        'severity': 'error',
        'description': 'Decode precondition failed',
    },
    ErrorKind.TEXT_DECODING: {
        'severity': 'error',
        'description': 'Invalid UTF-8 in text field',
    },
}


class KtraceError(Exception):
    """Base class for all decode failures."""

    kind: ErrorKind = ErrorKind.MESSAGE

    # Set by the stream reader when the failure stopped the stream
    framing: bool = False

    @property
    def severity(self) -> str:
        return ERROR_METADATA.get(self.kind, {}).get('severity', 'error')

    @property
    def message(self) -> str:
        return str(self)

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'severity': self.severity,
            'message': self.message,
            'framing': self.framing,
        }


class BadValueError(KtraceError):
    """
    A field failed a structural or semantic check.

    Both sides are human-readable, e.g. expected="16 B", got="12 B: [..]".
    """

    kind = ErrorKind.BAD_VALUE

    def __init__(self, expected: str, got: str):
        self.expected = str(expected)
        self.got = str(got)
        super().__init__(f"bad value: expected {self.expected}, got {self.got}")

    def to_dict(self) -> dict:
        d = super().to_dict()
        d['expected'] = self.expected
        d['got'] = self.got
        return d


class StreamIOError(KtraceError):
    """The byte source could not supply the requested bytes."""

    kind = ErrorKind.IO

    def __init__(self, cause):
        self.cause = cause
        super().__init__(f"I/O error: {cause}")


class MessageError(KtraceError):
    """A decode precondition failed with no natural expected/got pair."""

    kind = ErrorKind.MESSAGE

    def __init__(self, text: str):
        self.text = text
        super().__init__(text)


class TextDecodingError(KtraceError):
    """A field declared as text contained invalid UTF-8."""

    kind = ErrorKind.TEXT_DECODING

    def __init__(self, cause: UnicodeDecodeError):
        self.cause = cause
        super().__init__(f"UTF8 error: {cause}")


def decode_text(data: bytes) -> str:
    """Decode UTF-8 text, raising TextDecodingError on invalid input."""
    try:
        return bytes(data).decode('utf-8')
    except UnicodeDecodeError as e:
        raise TextDecodingError(e) from e
