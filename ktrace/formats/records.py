"""
Decoded ktrace records.

Record is a tagged union: one dataclass per RecordType, each carrying only
the fields meaningful to that type. Drop marks a gap of lost records reported
by the kernel; it is never decoded from a body.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional

from .capability import CapFail
from .record_types import RecordType


class IODir(Enum):
    """Direction of a generic I/O transfer (enum uio_rw)."""

    Read = 0
    Write = 1


@dataclass
class Record:
    """Base of all record variants."""

    record_type: ClassVar[Optional[RecordType]] = None

    def to_dict(self) -> dict:
        d = {'type': self.record_type.label if self.record_type else 'Drop'}
        d.update(self._fields())
        return d

    def _fields(self) -> dict:
        return {}


@dataclass
class Drop(Record):
    """At least one record was dropped."""


@dataclass
class SystemCall(Record):
    """KTR_SYSCALL - system call record"""

    record_type: ClassVar[RecordType] = RecordType.SYSTEM_CALL

    number: int
    args: List[int] = field(default_factory=list)

    def _fields(self) -> dict:
        return {'number': self.number, 'args': list(self.args)}


@dataclass
class SystemCallReturn(Record):
    """KTR_SYSRET - return from system call record"""

    record_type: ClassVar[RecordType] = RecordType.SYSTEM_CALL_RETURN

    code: int
    eosys: int
    error: int
    retval: int

    def _fields(self) -> dict:
        return {
            'code': self.code,
            'eosys': self.eosys,
            'error': self.error,
            'retval': self.retval,
        }


@dataclass
class Namei(Record):
    """KTR_NAMEI - namei record"""

    record_type: ClassVar[RecordType] = RecordType.NAMEI

    path: str

    def _fields(self) -> dict:
        return {'path': self.path}


@dataclass
class GenericIO(Record):
    """KTR_GENIO - trace generic process I/O"""

    record_type: ClassVar[RecordType] = RecordType.GENERIC_IO

    fd: int
    rw: IODir
    data: bytes = b''

    def _fields(self) -> dict:
        return {'fd': self.fd, 'rw': self.rw.name, 'data': self.data.hex()}


@dataclass
class Signal(Record):
    """
    KTR_PSIG - trace processed signal

    `handler` is the bit pattern of the sig_t the kernel recorded. It is
    display-only and never dereferenced.
    """

    record_type: ClassVar[RecordType] = RecordType.SIGNAL

    signo: int
    handler: int
    code: int
    mask: List[int] = field(default_factory=list)

    def _fields(self) -> dict:
        return {
            'signo': self.signo,
            'handler': self.handler,
            'code': self.code,
            'mask': list(self.mask),
        }


@dataclass
class ContextSwitch(Record):
    """KTR_CSW - trace context switches"""

    record_type: ClassVar[RecordType] = RecordType.CONTEXT_SWITCH

    out: bool
    user: bool
    message: str = ''

    def _fields(self) -> dict:
        return {'out': self.out, 'user': self.user, 'message': self.message}


@dataclass
class UserData(Record):
    """KTR_USER - data coming from userland"""

    record_type: ClassVar[RecordType] = RecordType.USER_DATA

    data: bytes = b''

    def _fields(self) -> dict:
        return {'data': self.data.hex()}


@dataclass
class Struct(Record):
    """
    KTR_STRUCT - misc. structs

    `content` starts at the NUL that terminates the name.
    """

    record_type: ClassVar[RecordType] = RecordType.STRUCT

    name: str
    content: bytes = b''

    def _fields(self) -> dict:
        return {'name': self.name, 'content': self.content.hex()}


@dataclass
class Sysctl(Record):
    """KTR_SYSCTL - name of a sysctl MIB"""

    record_type: ClassVar[RecordType] = RecordType.SYSCTL

    name: str

    def _fields(self) -> dict:
        return {'name': self.name}


@dataclass
class ProcessCreation(Record):
    """KTR_PROCCTOR - trace process creation (multiple ABI support)"""

    record_type: ClassVar[RecordType] = RecordType.PROCESS_CREATION

    flags: int

    def _fields(self) -> dict:
        return {'flags': self.flags}


@dataclass
class ProcessDestruction(Record):
    """KTR_PROCDTOR - trace process destruction (multiple ABI support)"""

    record_type: ClassVar[RecordType] = RecordType.PROCESS_DESTRUCTION


@dataclass
class CapabilityFailure(Record):
    """KTR_CAPFAIL - trace capability check failure"""

    record_type: ClassVar[RecordType] = RecordType.CAPABILITY_FAILURE

    failure: CapFail

    def _fields(self) -> dict:
        return {'failure': self.failure.to_dict()}


@dataclass
class PageFault(Record):
    """KTR_FAULT - page fault record"""

    record_type: ClassVar[RecordType] = RecordType.PAGE_FAULT

    virtual_address: int
    fault_type: int

    def _fields(self) -> dict:
        return {
            'virtual_address': self.virtual_address,
            'fault_type': self.fault_type,
        }


@dataclass
class PageFaultEnd(Record):
    """KTR_FAULTEND - end of page fault record"""

    record_type: ClassVar[RecordType] = RecordType.PAGE_FAULT_END

    result: int

    def _fields(self) -> dict:
        return {'result': self.result}
