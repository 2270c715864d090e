"""
Tests for record body decoding.

CRITICAL TESTS:
1. test_syscall_length_mismatch - arg count must match body size exactly
2. test_genio_bad_direction - uio_rw other than 0/1 is rejected
3. test_struct_no_nul - struct name must be NUL-terminated
4. test_procctor_native_order - flags ignore the session byte order
"""

import struct

import pytest

from ktrace.core.errors import (
    BadValueError,
    ErrorKind,
    MessageError,
    TextDecodingError,
)
from ktrace.formats.byteorder import ByteOrder, PrimitiveReader
from ktrace.formats.capability import NotCapable
from ktrace.formats.dispatch import DECODERS, decode_body
from ktrace.formats.record_types import RecordType
from ktrace.formats.records import (
    CapabilityFailure,
    ContextSwitch,
    GenericIO,
    IODir,
    Namei,
    PageFault,
    PageFaultEnd,
    ProcessCreation,
    ProcessDestruction,
    Signal,
    Struct,
    Sysctl,
    SystemCall,
    SystemCallReturn,
    UserData,
)

from conftest import syscall_body, sysret_body


LE = PrimitiveReader(ByteOrder.little)
BE = PrimitiveReader(ByteOrder.big)


def decode(record_type, data, reader=LE):
    return decode_body(record_type, data, reader)


class TestDispatchTable:
    """Test the decoder table."""

    def test_every_type_has_decoder(self):
        assert set(DECODERS) == set(RecordType)

    def test_records_tagged_with_type(self):
        """Each decoded variant reports the type it was decoded from."""
        rec = decode(RecordType.USER_DATA, b'abc')
        assert rec.record_type is RecordType.USER_DATA


class TestSystemCall:
    """Test KTR_SYSCALL bodies."""

    def test_no_args(self):
        """8-byte body with zero arguments."""
        rec = decode(RecordType.SYSTEM_CALL, syscall_body(20, []))
        assert rec == SystemCall(number=20, args=[])

    def test_args(self):
        rec = decode(RecordType.SYSTEM_CALL, syscall_body(5, [1, 2, 0xFFFFFFFFFFFFFFFF]))
        assert rec.number == 5
        assert rec.args == [1, 2, 0xFFFFFFFFFFFFFFFF]

    def test_one_arg_exact(self):
        """One argument needs exactly 16 bytes."""
        body = syscall_body(4, [99])
        assert len(body) == 16
        assert decode(RecordType.SYSTEM_CALL, body).args == [99]

    def test_syscall_length_mismatch(self):
        """
        CRITICAL TEST: 15-byte body with one argument is rejected.
        """
        body = syscall_body(4, [99])[:15]
        with pytest.raises(BadValueError) as exc:
            decode(RecordType.SYSTEM_CALL, body)
        assert "1 8B arguments" in exc.value.expected
        assert "16 B" in exc.value.expected
        assert exc.value.got.startswith("15 B")

    def test_too_short(self):
        with pytest.raises(BadValueError, match="2\\*u16"):
            decode(RecordType.SYSTEM_CALL, b'\x01\x00')

    def test_big_endian(self):
        body = struct.pack('>HH4xQ', 3, 1, 7)
        rec = decode(RecordType.SYSTEM_CALL, body, BE)
        assert rec == SystemCall(number=3, args=[7])


class TestSystemCallReturn:
    """Test KTR_SYSRET bodies."""

    def test_decode(self):
        rec = decode(RecordType.SYSTEM_CALL_RETURN, sysret_body(code=3, eosys=1, error=2, retval=0x1000))
        assert rec == SystemCallReturn(code=3, eosys=1, error=2, retval=0x1000)

    @pytest.mark.parametrize("size", [0, 15, 17])
    def test_wrong_size(self, size):
        with pytest.raises(BadValueError, match="16 B"):
            decode(RecordType.SYSTEM_CALL_RETURN, b'\x00' * size)


class TestNamei:
    """Test KTR_NAMEI bodies."""

    def test_path(self):
        assert decode(RecordType.NAMEI, b'/usr/lib/libc.so.7') == Namei(path='/usr/lib/libc.so.7')

    def test_invalid_utf8(self):
        """Invalid path text is a text decoding error."""
        with pytest.raises(TextDecodingError) as exc:
            decode(RecordType.NAMEI, b'/tmp/\xff')
        assert exc.value.kind == ErrorKind.TEXT_DECODING
        assert str(exc.value).startswith("UTF8 error:")


class TestGenericIO:
    """Test KTR_GENIO bodies."""

    def test_read(self):
        rec = decode(RecordType.GENERIC_IO, struct.pack('<iI', 3, 0) + b'hello')
        assert rec == GenericIO(fd=3, rw=IODir.Read, data=b'hello')

    def test_write_negative_fd(self):
        rec = decode(RecordType.GENERIC_IO, struct.pack('<iI', -1, 1))
        assert rec.fd == -1
        assert rec.rw is IODir.Write
        assert rec.data == b''

    def test_genio_bad_direction(self):
        """
        CRITICAL TEST: direction 2 is not a uio_rw.
        """
        with pytest.raises(BadValueError) as exc:
            decode(RecordType.GENERIC_IO, struct.pack('<iI', 3, 2) + b'data')
        assert exc.value.expected == "uio_rw"
        assert exc.value.got == "2"

    def test_too_short(self):
        with pytest.raises(BadValueError, match="2\\*int"):
            decode(RecordType.GENERIC_IO, b'\x00' * 7)


class TestSignal:
    """Test KTR_PSIG bodies."""

    def test_decode(self):
        body = struct.pack('<i4xQi', 11, 0xDEADBEEF, 1) + struct.pack('<II', 0x10, 0x20)
        rec = decode(RecordType.SIGNAL, body)
        assert rec == Signal(signo=11, handler=0xDEADBEEF, code=1, mask=[0x10, 0x20])

    def test_no_mask(self):
        body = struct.pack('<i4xQi', 2, 0, 0)
        assert len(body) == 20
        assert decode(RecordType.SIGNAL, body).mask == []

    def test_too_short(self):
        with pytest.raises(BadValueError, match="sig_t"):
            decode(RecordType.SIGNAL, b'\x00' * 19)

    def test_partial_mask_word(self):
        """Mask bytes that don't fill a whole u32 are rejected, not dropped."""
        body = struct.pack('<i4xQi', 2, 0, 0) + struct.pack('<I', 0xff) + b'\x01\x02'
        assert len(body) == 26
        with pytest.raises(BadValueError) as exc:
            decode(RecordType.SIGNAL, body)
        assert exc.value.expected == "sigset_t (u32 words)"
        assert exc.value.got.startswith("26 B")


class TestContextSwitch:
    """Test KTR_CSW bodies."""

    def test_decode(self):
        body = struct.pack('<II', 1, 0) + b'sleep'
        assert decode(RecordType.CONTEXT_SWITCH, body) == ContextSwitch(out=True, user=False, message='sleep')

    def test_nonzero_flags_are_true(self):
        body = struct.pack('<II', 0, 7)
        rec = decode(RecordType.CONTEXT_SWITCH, body)
        assert rec.out is False
        assert rec.user is True
        assert rec.message == ''

    def test_too_short(self):
        with pytest.raises(BadValueError):
            decode(RecordType.CONTEXT_SWITCH, b'\x01\x00\x00\x00')

    def test_invalid_message(self):
        with pytest.raises(TextDecodingError):
            decode(RecordType.CONTEXT_SWITCH, struct.pack('<II', 0, 0) + b'\x80')


class TestUserData:
    """Test KTR_USER bodies."""

    def test_opaque(self):
        assert decode(RecordType.USER_DATA, b'\x00\xff\x10') == UserData(data=b'\x00\xff\x10')

    def test_empty(self):
        assert decode(RecordType.USER_DATA, b'') == UserData(data=b'')


class TestStruct:
    """Test KTR_STRUCT bodies."""

    def test_name_and_content(self):
        """Content starts at the NUL."""
        rec = decode(RecordType.STRUCT, b'foo\x00bar')
        assert rec == Struct(name='foo', content=b'\x00bar')

    def test_struct_no_nul(self):
        """
        CRITICAL TEST: no NUL anywhere is a message error.
        """
        with pytest.raises(MessageError) as exc:
            decode(RecordType.STRUCT, b'foobar')
        assert exc.value.kind == ErrorKind.MESSAGE
        assert "NUL" in str(exc.value)

    def test_empty_name(self):
        assert decode(RecordType.STRUCT, b'\x00') == Struct(name='', content=b'\x00')


class TestSysctl:
    """Test KTR_SYSCTL bodies."""

    def test_name(self):
        assert decode(RecordType.SYSCTL, b'kern.ostype') == Sysctl(name='kern.ostype')

    def test_empty(self):
        with pytest.raises(BadValueError) as exc:
            decode(RecordType.SYSCTL, b'')
        assert exc.value.expected == "sysctl MIB"


class TestProcessCreation:
    """Test KTR_PROCCTOR bodies."""

    def test_procctor_native_order(self):
        """
        CRITICAL TEST: flags use native order whatever the session order.
        """
        body = struct.pack('=I', 0x01020304)
        assert decode(RecordType.PROCESS_CREATION, body, LE) == ProcessCreation(flags=0x01020304)
        assert decode(RecordType.PROCESS_CREATION, body, BE) == ProcessCreation(flags=0x01020304)

    @pytest.mark.parametrize("size", [0, 3, 5, 8])
    def test_wrong_size(self, size):
        with pytest.raises(BadValueError, match="u32"):
            decode(RecordType.PROCESS_CREATION, b'\x00' * size)


class TestProcessDestruction:
    """Test KTR_PROCDTOR bodies."""

    def test_empty(self):
        assert decode(RecordType.PROCESS_DESTRUCTION, b'') == ProcessDestruction()

    def test_stray_byte(self):
        with pytest.raises(BadValueError):
            decode(RecordType.PROCESS_DESTRUCTION, b'\x00')


class TestCapabilityFailure:
    """Test KTR_CAPFAIL bodies (rights parsing is covered in test_capability)."""

    def test_not_capable(self):
        body = struct.pack('<I4x', 0) + b'\x01' * 8 + b'\x02' * 8
        rec = decode(RecordType.CAPABILITY_FAILURE, body)
        assert isinstance(rec, CapabilityFailure)
        assert isinstance(rec.failure, NotCapable)

    def test_bad_kind(self):
        body = struct.pack('<I', 4) + b'\x00' * 20
        with pytest.raises(BadValueError, match="0-3"):
            decode(RecordType.CAPABILITY_FAILURE, body)


class TestPageFault:
    """Test KTR_FAULT and KTR_FAULTEND bodies."""

    def test_fault(self):
        body = struct.pack('<QI', 0x7FFFFFFFE000, 2)
        assert decode(RecordType.PAGE_FAULT, body) == PageFault(virtual_address=0x7FFFFFFFE000, fault_type=2)

    def test_fault_trailing_padding(self):
        """Trailing alignment bytes after the fault type are allowed."""
        body = struct.pack('<QI4x', 0x1000, 1)
        assert decode(RecordType.PAGE_FAULT, body).fault_type == 1

    def test_fault_too_short(self):
        with pytest.raises(BadValueError, match="vm_offset_t"):
            decode(RecordType.PAGE_FAULT, b'\x00' * 11)

    def test_fault_end(self):
        assert decode(RecordType.PAGE_FAULT_END, struct.pack('<I', 0)) == PageFaultEnd(result=0)

    def test_fault_end_wrong_size(self):
        with pytest.raises(BadValueError, match="int"):
            decode(RecordType.PAGE_FAULT_END, b'\x00' * 8)


class TestErrorPreview:
    """Test that error text stays bounded."""

    def test_large_body_preview(self):
        with pytest.raises(BadValueError) as exc:
            decode(RecordType.SYSTEM_CALL_RETURN, b'\x00' * 4096)
        assert exc.value.got.startswith("4096 B: [")
        assert len(exc.value.got) < 100
