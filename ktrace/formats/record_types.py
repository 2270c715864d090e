"""
ktrace record type codes (ktr_type).

The type code decides how a record body is laid out. There is no
type-independent way to find the body layout, so an unknown code stops the
stream.
"""

from enum import IntEnum

from ..core.errors import BadValueError


class RecordType(IntEnum):
    """Record type discriminant from the header."""

    SYSTEM_CALL = 1           # KTR_SYSCALL
    SYSTEM_CALL_RETURN = 2    # KTR_SYSRET
    NAMEI = 3                 # KTR_NAMEI
    GENERIC_IO = 4            # KTR_GENIO
    SIGNAL = 5                # KTR_PSIG
    CONTEXT_SWITCH = 6        # KTR_CSW
    USER_DATA = 7             # KTR_USER
    STRUCT = 8                # KTR_STRUCT
    SYSCTL = 9                # KTR_SYSCTL
    PROCESS_CREATION = 10     # KTR_PROCCTOR
    PROCESS_DESTRUCTION = 11  # KTR_PROCDTOR
    CAPABILITY_FAILURE = 12   # KTR_CAPFAIL
    PAGE_FAULT = 13           # KTR_FAULT
    PAGE_FAULT_END = 14       # KTR_FAULTEND

    @classmethod
    def from_code(cls, code: int) -> 'RecordType':
        """Validate a raw type code."""
        try:
            return cls(code)
        except ValueError:
            raise BadValueError("ktr_type", str(code)) from None

    @classmethod
    def is_valid(cls, code: int) -> bool:
        return code in cls._value2member_map_

    @property
    def label(self) -> str:
        """Human-readable name, e.g. SystemCallReturn."""
        return _LABELS[self]

    def __str__(self) -> str:
        return self.label


_LABELS = {
    RecordType.SYSTEM_CALL: 'SystemCall',
    RecordType.SYSTEM_CALL_RETURN: 'SystemCallReturn',
    RecordType.NAMEI: 'Namei',
    RecordType.GENERIC_IO: 'GenericIO',
    RecordType.SIGNAL: 'Signal',
    RecordType.CONTEXT_SWITCH: 'ContextSwitch',
    RecordType.USER_DATA: 'UserData',
    RecordType.STRUCT: 'Struct',
    RecordType.SYSCTL: 'Sysctl',
    RecordType.PROCESS_CREATION: 'ProcessCreation',
    RecordType.PROCESS_DESTRUCTION: 'ProcessDestruction',
    RecordType.CAPABILITY_FAILURE: 'CapabilityFailure',
    RecordType.PAGE_FAULT: 'PageFault',
    RecordType.PAGE_FAULT_END: 'PageFaultEnd',
}
