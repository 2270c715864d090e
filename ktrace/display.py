"""
One-line text rendering of decoded records, in the style of kdump(1).
"""

from typing import Callable, Dict, Type

from .formats.capability import (
    CapabilityRights,
    CapFail,
    Increase,
    Lookup,
    NotCapable,
    Syscall,
)
from .formats.header import Header
from .formats.reader import DecodedRecord
from .formats.records import (
    CapabilityFailure,
    ContextSwitch,
    Drop,
    GenericIO,
    Namei,
    PageFault,
    PageFaultEnd,
    ProcessCreation,
    ProcessDestruction,
    Record,
    Signal,
    Struct,
    Sysctl,
    SystemCall,
    SystemCallReturn,
    UserData,
)


DEFAULT_DATA_PREVIEW = 8


def hex_bytes(data: bytes, limit: int = DEFAULT_DATA_PREVIEW) -> str:
    """Space-separated hex of the first `limit` bytes."""
    return ' '.join(f"{b:02x}" for b in data[:limit])


def format_rights(rights: CapabilityRights) -> str:
    return '<' + ', '.join(str(m) for m in rights.masks) + '>'


def format_capfail(failure: CapFail) -> str:
    if isinstance(failure, NotCapable):
        return (
            f"operation requires {format_rights(failure.needed)}, "
            f"descriptor holds {format_rights(failure.held)}"
        )
    if isinstance(failure, Increase):
        return "increase"
    if isinstance(failure, Syscall):
        return "not permitted in capability mode"
    if isinstance(failure, Lookup):
        return "restricted VFS lookup"
    raise TypeError(f"Unknown capability failure: {failure!r}")


def _genio(rec: GenericIO, limit: int) -> str:
    return (
        f"GENIO {rec.fd} {rec.rw.name}: {len(rec.data)}B: "
        f"{hex_bytes(rec.data, limit)} [...]"
    )


def _psig(rec: Signal, limit: int) -> str:
    mask = ','.join(f"0x{w:x}" for w in rec.mask) or '-'
    return f"PSIG  {rec.signo} caught handler=0x{rec.handler:x} mask={mask} code={rec.code}"


_FORMATTERS: Dict[Type[Record], Callable[[Record, int], str]] = {
    Drop: lambda rec, limit: "<record(s) dropped>",
    SystemCall: lambda rec, limit: (
        f"CALL  {rec.number}(" + ', '.join(f"0x{a:x}" for a in rec.args) + ")"
    ),
    SystemCallReturn: lambda rec, limit: f"RET   {rec.code} 0x{rec.retval:x}",
    Namei: lambda rec, limit: f'NAMI  "{rec.path}"',
    GenericIO: _genio,
    Signal: _psig,
    ContextSwitch: lambda rec, limit: (
        f"CSW   {'stop' if rec.out else 'resume'} "
        f"{'user' if rec.user else 'kernel'} \"{rec.message}\""
    ),
    UserData: lambda rec, limit: f"USER  {len(rec.data)}B: {hex_bytes(rec.data, limit)}",
    Struct: lambda rec, limit: f"STRU  struct {rec.name} {{ ... }}",
    Sysctl: lambda rec, limit: f'SCTL  "{rec.name}"',
    ProcessCreation: lambda rec, limit: f"PROCC 0x{rec.flags:x}",
    ProcessDestruction: lambda rec, limit: "PDEST",
    CapabilityFailure: lambda rec, limit: f"CAP   {format_capfail(rec.failure)}",
    PageFault: lambda rec, limit: f"PFLT  0x{rec.virtual_address:x} {rec.fault_type}",
    PageFaultEnd: lambda rec, limit: f"PRET  {rec.result}",
}


def format_record(record: Record, data_preview: int = DEFAULT_DATA_PREVIEW) -> str:
    """Render a record as one line."""
    try:
        formatter = _FORMATTERS[type(record)]
    except KeyError:
        raise TypeError(f"No formatter for {type(record).__name__}") from None
    return formatter(record, data_preview)


def format_header(header: Header) -> str:
    return (
        f"{header.record_type.label} (PID {header.pid}, TID {header.tid}, "
        f"command {header.command}, len {header.length})"
    )


def format_decoded(decoded: DecodedRecord, data_preview: int = DEFAULT_DATA_PREVIEW) -> str:
    """`<pid> <command> <record>` with `<error: ...>` in place of a bad body."""
    prefix = f"{decoded.header.pid:6} {decoded.header.command:8} "
    if decoded.ok:
        return prefix + format_record(decoded.record, data_preview)
    return prefix + f"<error: {decoded.error}>"
