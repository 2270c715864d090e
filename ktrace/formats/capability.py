"""
Capability failure records (KTR_CAPFAIL) and capability rights.

Body layout:
    Offset  Size  Field
    0       4     cap_type    (u32)  enum ktr_cap_fail_type
    4       4     padding
    8       N/2   held        (cap_rights_t)  first half of the rights area
    8+N/2   N/2   needed      (cap_rights_t)  second half

Only CAPFAIL_NOTCAPABLE carries rights. A cap_rights_t is a sequence of
8-byte masks. Its version is not transmitted; it is derived from the size of
the whole rights area (both halves) as `size / 8 - 2`. This ties the version
to the mask width: if a future format changes the mask width the derived
version is silently wrong.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, List

from ..core.errors import BadValueError
from .byteorder import PrimitiveReader, preview


MASK_SIZE = 8

# cap_type (4 bytes) + padding (4 bytes)
RIGHTS_OFFSET = 8

MIN_CAPFAIL_SIZE = 20


class CapFailKind(IntEnum):
    """enum ktr_cap_fail_type"""

    NOT_CAPABLE = 0   # insufficient capabilities in cap_check()
    INCREASE = 1      # attempt to increase capabilities
    SYSCALL = 2       # disallowed system call
    LOOKUP = 3        # disallowed VFS lookup


@dataclass(frozen=True)
class Bitmask:
    """
    One 8-byte rights mask, viewed as a bit vector.

    Bits are taken in byte order, most significant bit of each byte first.
    """

    raw: bytes

    @property
    def value(self) -> int:
        """Integer with the same bit order as `bits`."""
        return int.from_bytes(self.raw, 'big')

    @property
    def bits(self) -> List[bool]:
        return [bool(byte & (0x80 >> i)) for byte in self.raw for i in range(8)]

    def __len__(self) -> int:
        return len(self.raw) * 8

    def __str__(self) -> str:
        return ''.join('1' if b else '0' for b in self.bits)


@dataclass
class CapabilityRights:
    """Rights that are (or can be) associated with a capability."""

    version: int
    masks: List[Bitmask] = field(default_factory=list)

    @classmethod
    def parse(cls, data: bytes, version: int) -> 'CapabilityRights':
        if len(data) % MASK_SIZE != 0:
            raise BadValueError("cap_rights_t", preview(data))

        return cls(
            version=version,
            masks=[
                Bitmask(bytes(data[i:i + MASK_SIZE]))
                for i in range(0, len(data), MASK_SIZE)
            ],
        )

    def to_dict(self) -> dict:
        return {
            'version': self.version,
            'masks': [f"0x{m.value:016x}" for m in self.masks],
        }


@dataclass
class CapFail:
    """Base of the capability failure variants."""

    kind: ClassVar[CapFailKind]

    def to_dict(self) -> dict:
        return {'kind': self.kind.name.lower()}


@dataclass
class NotCapable(CapFail):
    """Insufficient capabilities in cap_check()."""

    kind: ClassVar[CapFailKind] = CapFailKind.NOT_CAPABLE

    needed: CapabilityRights
    held: CapabilityRights

    def to_dict(self) -> dict:
        d = super().to_dict()
        d['needed'] = self.needed.to_dict()
        d['held'] = self.held.to_dict()
        return d


@dataclass
class Increase(CapFail):
    kind: ClassVar[CapFailKind] = CapFailKind.INCREASE


@dataclass
class Syscall(CapFail):
    kind: ClassVar[CapFailKind] = CapFailKind.SYSCALL


@dataclass
class Lookup(CapFail):
    kind: ClassVar[CapFailKind] = CapFailKind.LOOKUP


def parse_capfail(data: bytes, reader: PrimitiveReader) -> CapFail:
    """
    Decode a KTR_CAPFAIL body.

    Raises:
        BadValueError: body shorter than 20 bytes, unknown cap_type, or a
            rights area that cannot be split into two cap_rights_t
    """
    if len(data) < MIN_CAPFAIL_SIZE:
        raise BadValueError(
            "enum ktr_cap_fail_type + two cap_rights_t", preview(data)
        )

    code = reader.u32(data, 0)

    if code == CapFailKind.NOT_CAPABLE:
        rights = data[RIGHTS_OFFSET:]
        if len(rights) % (2 * MASK_SIZE) != 0:
            raise BadValueError("two cap_rights_t", preview(rights))

        half = len(rights) // 2
        version = len(rights) // MASK_SIZE - 2

        return NotCapable(
            held=CapabilityRights.parse(rights[:half], version),
            needed=CapabilityRights.parse(rights[half:], version),
        )

    if code == CapFailKind.INCREASE:
        return Increase()
    if code == CapFailKind.SYSCALL:
        return Syscall()
    if code == CapFailKind.LOOKUP:
        return Lookup()

    raise BadValueError("ktr_cap_fail_type (integer 0-3)", str(code))
