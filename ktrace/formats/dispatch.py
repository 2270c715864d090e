"""
Record body decoders.

decode_body() picks exactly one decoder per RecordType from DECODERS. Each
decoder checks the body length before reading any field, so no decoder reads
past the end of the body.

Body layouts (offsets into the body):
    SystemCall          0:u16 code, 2:u16 nargs, 4:pad[4], 8:u64[nargs]
    SystemCallReturn    0:u16 code, 2:u16 eosys, 4:u32 error, 8:u64 retval
    Namei               UTF-8 path
    GenericIO           0:i32 fd, 4:u32 rw, 8:data
    Signal              0:i32 signo, 4:pad[4], 8:u64 handler, 16:i32 code, 20:u32[] mask
    ContextSwitch       0:u32 out, 4:u32 user, 8:UTF-8 message
    UserData            opaque
    Struct              name NUL content
    Sysctl              UTF-8 MIB name
    ProcessCreation     0:u32 flags (always native byte order)
    ProcessDestruction  empty
    CapabilityFailure   see capability.py
    PageFault           0:u64 virtual address, 8:u32 fault type
    PageFaultEnd        0:u32 result
"""

from typing import Callable, Dict

from ..core.errors import BadValueError, MessageError, decode_text
from .byteorder import NATIVE_READER, PrimitiveReader, preview
from .capability import parse_capfail
from .record_types import RecordType
from .records import (
    CapabilityFailure,
    ContextSwitch,
    GenericIO,
    IODir,
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


BodyDecoder = Callable[[bytes, PrimitiveReader], Record]


def _syscall(data: bytes, r: PrimitiveReader) -> Record:
    if len(data) < 4:
        raise BadValueError("2*u16", preview(data))

    code = r.u16(data, 0)
    nargs = r.u16(data, 2)

    # Arguments start after 4 bytes of padding
    expected = 8 + 8 * nargs
    if len(data) != expected:
        raise BadValueError(
            f"{nargs} 8B arguments ({expected} B body)", preview(data)
        )

    return SystemCall(number=code, args=r.u64_array(data[8:]))


def _sysret(data: bytes, r: PrimitiveReader) -> Record:
    if len(data) != 16:
        raise BadValueError("16 B", preview(data))

    return SystemCallReturn(
        code=r.u16(data, 0),
        eosys=r.u16(data, 2),
        error=r.u32(data, 4),
        retval=r.u64(data, 8),
    )


def _namei(data: bytes, r: PrimitiveReader) -> Record:
    return Namei(path=decode_text(data))


def _genio(data: bytes, r: PrimitiveReader) -> Record:
    if len(data) < 8:
        raise BadValueError("2*int", preview(data))

    rw = r.u32(data, 4)
    if rw not in (IODir.Read.value, IODir.Write.value):
        raise BadValueError("uio_rw", str(rw))

    return GenericIO(fd=r.i32(data, 0), rw=IODir(rw), data=bytes(data[8:]))


def _psig(data: bytes, r: PrimitiveReader) -> Record:
    if len(data) < 20:
        raise BadValueError("2*int + sig_t + sigset_t + padding", preview(data))
    if (len(data) - 20) % 4 != 0:
        raise BadValueError("sigset_t (u32 words)", preview(data))

    return Signal(
        signo=r.i32(data, 0),
        handler=r.u64(data, 8),
        code=r.i32(data, 16),
        mask=r.u32_array(data[20:]),
    )


def _csw(data: bytes, r: PrimitiveReader) -> Record:
    if len(data) < 8:
        raise BadValueError("2*int", preview(data))

    return ContextSwitch(
        out=r.u32(data, 0) != 0,
        user=r.u32(data, 4) != 0,
        message=decode_text(data[8:]),
    )


def _user(data: bytes, r: PrimitiveReader) -> Record:
    return UserData(data=bytes(data))


def _struct(data: bytes, r: PrimitiveReader) -> Record:
    nul = bytes(data).find(b'\x00')
    if nul < 0:
        raise MessageError("no NUL byte in struct name")

    return Struct(name=decode_text(data[:nul]), content=bytes(data[nul:]))


def _sysctl(data: bytes, r: PrimitiveReader) -> Record:
    if len(data) == 0:
        raise BadValueError("sysctl MIB", "empty string")

    return Sysctl(name=decode_text(data))


def _procctor(data: bytes, r: PrimitiveReader) -> Record:
    if len(data) != 4:
        raise BadValueError("u32", preview(data))

    # Not the session byte order
    return ProcessCreation(flags=NATIVE_READER.u32(data, 0))


def _procdtor(data: bytes, r: PrimitiveReader) -> Record:
    if len(data) != 0:
        raise BadValueError("no data for process destruction", preview(data))

    return ProcessDestruction()


def _capfail(data: bytes, r: PrimitiveReader) -> Record:
    return CapabilityFailure(failure=parse_capfail(data, r))


def _fault(data: bytes, r: PrimitiveReader) -> Record:
    if len(data) < 12:
        raise BadValueError("vm_offset_t + int", preview(data))

    return PageFault(virtual_address=r.u64(data, 0), fault_type=r.u32(data, 8))


def _faultend(data: bytes, r: PrimitiveReader) -> Record:
    if len(data) != 4:
        raise BadValueError("int", preview(data))

    return PageFaultEnd(result=r.u32(data, 0))


DECODERS: Dict[RecordType, BodyDecoder] = {
    RecordType.SYSTEM_CALL: _syscall,
    RecordType.SYSTEM_CALL_RETURN: _sysret,
    RecordType.NAMEI: _namei,
    RecordType.GENERIC_IO: _genio,
    RecordType.SIGNAL: _psig,
    RecordType.CONTEXT_SWITCH: _csw,
    RecordType.USER_DATA: _user,
    RecordType.STRUCT: _struct,
    RecordType.SYSCTL: _sysctl,
    RecordType.PROCESS_CREATION: _procctor,
    RecordType.PROCESS_DESTRUCTION: _procdtor,
    RecordType.CAPABILITY_FAILURE: _capfail,
    RecordType.PAGE_FAULT: _fault,
    RecordType.PAGE_FAULT_END: _faultend,
}


def decode_body(record_type: RecordType, data: bytes, reader: PrimitiveReader) -> Record:
    """
    Decode one record body.

    Args:
        record_type: Type from the already-validated header
        data: Exactly header.length bytes of body
        reader: Session byte order

    Returns:
        The Record variant for record_type

    Raises:
        KtraceError: If the body does not match the layout for its type
    """
    return DECODERS[record_type](data, reader)


# Verify every record type has a decoder at module load
_missing = set(RecordType) - set(DECODERS)
assert not _missing, f"No body decoder for: {sorted(t.label for t in _missing)}"
