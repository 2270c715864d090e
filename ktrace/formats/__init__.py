"""ktrace wire format: header, record types, body decoders and stream reader."""

from .byteorder import ByteOrder, PrimitiveReader, preview
from .record_types import RecordType
from .header import Header, HeaderLayout, TimeVal, HEADER_SIZE, MAXCOMLEN
from .capability import (
    Bitmask,
    CapabilityRights,
    CapFail,
    CapFailKind,
    NotCapable,
    Increase,
    Syscall,
    Lookup,
    parse_capfail,
)
from .records import (
    Record,
    IODir,
    Drop,
    SystemCall,
    SystemCallReturn,
    Namei,
    GenericIO,
    Signal,
    ContextSwitch,
    UserData,
    Struct,
    Sysctl,
    ProcessCreation,
    ProcessDestruction,
    CapabilityFailure,
    PageFault,
    PageFaultEnd,
)
from .dispatch import decode_body, DECODERS
from .reader import KtraceReader, DecodeOptions, DecodedRecord, DecodeResult

__all__ = [
    'ByteOrder',
    'PrimitiveReader',
    'preview',
    'RecordType',
    'Header',
    'HeaderLayout',
    'TimeVal',
    'HEADER_SIZE',
    'MAXCOMLEN',
    'Bitmask',
    'CapabilityRights',
    'CapFail',
    'CapFailKind',
    'NotCapable',
    'Increase',
    'Syscall',
    'Lookup',
    'parse_capfail',
    'Record',
    'IODir',
    'Drop',
    'SystemCall',
    'SystemCallReturn',
    'Namei',
    'GenericIO',
    'Signal',
    'ContextSwitch',
    'UserData',
    'Struct',
    'Sysctl',
    'ProcessCreation',
    'ProcessDestruction',
    'CapabilityFailure',
    'PageFault',
    'PageFaultEnd',
    'decode_body',
    'DECODERS',
    'KtraceReader',
    'DecodeOptions',
    'DecodedRecord',
    'DecodeResult',
]
