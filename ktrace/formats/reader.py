"""
KtraceReader - decode a ktrace stream into (header, record) pairs.

The stream is a sequence of header + body records. The reader:
- Reads one header; zero bytes at a header boundary is a clean end
- Validates the header (an unknown type code stops the stream)
- Reads exactly header.length body bytes
- Decodes the body, keeping any body error next to its header

Framing failures (short reads, I/O errors, bad headers) stop the stream
because the next record's position depends on the current header. Body
failures do not: the record is kept with its error and decoding continues.
"""

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional

from ..core.errors import KtraceError, StreamIOError
from .byteorder import ByteOrder, PrimitiveReader
from .dispatch import decode_body
from .header import Header, HeaderLayout
from .records import Record

logger = logging.getLogger(__name__)


@dataclass
class DecodeOptions:
    """
    Session settings for one decode.

    Attributes:
        byte_order: Byte order of multi-byte fields
        word_size: Pointer width of the traced ABI (8 or 4 bytes)
    """
    byte_order: ByteOrder = ByteOrder.native
    word_size: int = 8

    def __post_init__(self):
        self.byte_order = ByteOrder(self.byte_order)
        # Fails early on unsupported word sizes
        HeaderLayout.for_word_size(self.word_size)

    @property
    def header_size(self) -> int:
        return HeaderLayout.for_word_size(self.word_size).size


@dataclass
class DecodedRecord:
    """
    One length-framed record: its header and either a record or an error.

    Attributes:
        header: Validated record header
        record: Decoded body (None if the body failed to decode)
        error: Body decode failure (None on success)
    """
    header: Header
    record: Optional[Record] = None
    error: Optional[KtraceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Record:
        """Return the record or raise its body error."""
        if self.error is not None:
            raise self.error
        return self.record

    def to_dict(self) -> dict:
        d = {'header': self.header.to_dict()}
        if self.error is not None:
            d['error'] = self.error.to_dict()
        else:
            d['record'] = self.record.to_dict()
        return d


@dataclass
class DecodeResult:
    """
    Outcome of decoding a whole stream.

    Records decoded before a framing failure are kept; `error` holds the
    failure that stopped the stream (None after a clean end of stream).
    """
    records: List[DecodedRecord] = field(default_factory=list)
    error: Optional[KtraceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def body_errors(self) -> int:
        return sum(1 for r in self.records if not r.ok)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[DecodedRecord]:
        return iter(self.records)


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    """
    Read up to `size` bytes, looping over short reads.

    Returns fewer than `size` bytes only at end of stream.
    """
    chunks = []
    remaining = size
    while remaining > 0:
        try:
            chunk = stream.read(remaining)
        except OSError as e:
            raise _framing(StreamIOError(e)) from e
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b''.join(chunks)


class KtraceReader:
    """
    Decoder for ktrace dump streams.

    Usage:
        # Option 1: Iterate; framing failures raise KtraceError
        for decoded in KtraceReader.iter_records(stream):
            process(decoded)

        # Option 2: Collect everything, framing failure kept on the result
        result = KtraceReader.decode(stream)
        if not result.ok:
            report(result.error)

        # Option 3: From a path
        result = KtraceReader.read_path(path)
    """

    @classmethod
    def iter_records(
        cls,
        stream: BinaryIO,
        options: Optional[DecodeOptions] = None,
    ) -> Iterator[DecodedRecord]:
        """
        Yield each length-framed record in stream order.

        Raises:
            StreamIOError: Short header (not at a record boundary), short
                body, or an I/O failure of the stream
            BadValueError: Header failed to decode
        """
        options = options or DecodeOptions()
        reader = PrimitiveReader(options.byte_order)
        header_size = options.header_size
        index = 0

        while True:
            raw = _read_exact(stream, header_size)
            if len(raw) == 0:
                logger.debug(f"Clean end of stream after {index} records")
                return
            if len(raw) < header_size:
                raise _framing(StreamIOError(
                    f"unexpected end of stream: {len(raw)} of {header_size} "
                    f"header bytes after record {index}"
                ))

            try:
                header = Header.decode(raw, options.byte_order, options.word_size)
            except KtraceError as e:
                raise _framing(e)

            body = _read_exact(stream, header.length)
            if len(body) < header.length:
                raise _framing(StreamIOError(
                    f"unexpected end of stream: {len(body)} of {header.length} "
                    f"body bytes for {header.record_type.label} record {index}"
                ))

            try:
                decoded = DecodedRecord(
                    header=header,
                    record=decode_body(header.record_type, body, reader),
                )
            except KtraceError as e:
                logger.warning(
                    f"Record {index} ({header.record_type.label}, pid {header.pid}): {e}"
                )
                decoded = DecodedRecord(header=header, error=e)

            logger.debug(
                f"Record {index}: {header.record_type.label} len={header.length}"
            )
            index += 1
            yield decoded

    @classmethod
    def decode(
        cls,
        stream: BinaryIO,
        options: Optional[DecodeOptions] = None,
    ) -> DecodeResult:
        """Decode a whole stream, keeping records read before any framing failure."""
        result = DecodeResult()
        try:
            for decoded in cls.iter_records(stream, options):
                result.records.append(decoded)
        except KtraceError as e:
            logger.error(f"Decoding stopped after {len(result.records)} records: {e}")
            result.error = e
        return result

    @classmethod
    def decode_bytes(
        cls,
        data: bytes,
        options: Optional[DecodeOptions] = None,
    ) -> DecodeResult:
        """Decode an in-memory dump."""
        return cls.decode(io.BytesIO(data), options)

    @classmethod
    def read_path(
        cls,
        path: Path,
        options: Optional[DecodeOptions] = None,
    ) -> DecodeResult:
        """
        Open and decode a dump file.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Trace file not found: {path}")

        with open(path, 'rb') as f:
            return cls.decode(f, options)


def _framing(error: KtraceError) -> KtraceError:
    error.framing = True
    return error
