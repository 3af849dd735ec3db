"""
Unit tests for ksbind/engine/models.py, ksbind/engine/reporting.py and
ksbind/exceptions.py.
"""

import dataclasses
import typing

import pytest

from ksbind.engine.models import EncodedResult, SymbolSlot, VersionInfo
from ksbind.engine.reporting import build_error, error_to_string
from ksbind.exceptions import (
    AssemblyError,
    InitializationError,
    KeystoneError,
    KsBindError,
    OptionError,
    RegistrationError,
)
from ksbind.native.constants import ErrorCode


# ── EncodedResult ─────────────────────────────────────────────────────────────

class TestEncodedResult:
    """EncodedResult — immutable bytes + address + statement count."""

    def test_fields(self):
        r = EncodedResult(data=b"\x90", address=0x400000, statement_count=1)
        assert r.data == b"\x90"
        assert r.address == 0x400000
        assert r.statement_count == 1
        assert r.size == 1

    def test_is_frozen(self):
        r = EncodedResult(data=b"\x90")
        with pytest.raises(dataclasses.FrozenInstanceError):
            r.data = b""

    def test_empty_result_is_falsy(self):
        assert not EncodedResult(data=b"")
        assert EncodedResult(data=b"\x00")

    def test_bytes_and_len(self):
        r = EncodedResult(data=b"\x01\xc0")
        assert bytes(r) == b"\x01\xc0"
        assert len(r) == 2

    def test_hex_dump(self):
        assert EncodedResult(data=b"\x01\xc0").hex() == "01 C0"
        assert EncodedResult(data=b"").hex() == ""

    def test_str_contains_address_and_bytes(self):
        s = str(EncodedResult(data=b"\x90", address=0x1000, statement_count=1))
        assert "0x1000" in s
        assert "90" in s


class TestVersionInfo:

    def test_str(self):
        assert str(VersionInfo(major=0, minor=9, combined=9)) == "0.9"


class TestSymbolSlot:

    def test_defaults_to_zero(self):
        assert SymbolSlot().value == 0

    def test_set_masks_to_u64(self):
        slot = SymbolSlot()
        slot.set(-1)
        assert slot.value == (1 << 64) - 1


# ── Exceptions ────────────────────────────────────────────────────────────────

class TestExceptions:
    """KeystoneError family — message + native code + description."""

    @pytest.mark.parametrize("cls", [
        InitializationError, OptionError, AssemblyError, RegistrationError,
    ])
    def test_hierarchy(self, cls):
        assert issubclass(cls, KeystoneError)
        assert issubclass(cls, KsBindError)

    def test_str_concatenates_message_and_description(self):
        err = AssemblyError("Error while assembling instructions",
                            ErrorCode.ASM_MNEMONICFAIL, "Invalid mnemonic")
        assert str(err) == "Error while assembling instructions: Invalid mnemonic"
        assert err.code == ErrorCode.ASM_MNEMONICFAIL

    def test_str_without_description(self):
        err = OptionError("Error while setting option", ErrorCode.OPT_INVALID)
        assert str(err) == "Error while setting option"

    def test_repr_names_code(self):
        err = OptionError("x", ErrorCode.OPT_INVALID)
        assert "OPT_INVALID" in repr(err)

    def test_code_annotation_resolves_to_error_code(self):
        hints = typing.get_type_hints(KeystoneError.__init__, localns={"ErrorCode": ErrorCode})
        assert hints["code"] == typing.Union[int, ErrorCode]


# ── Reporting ─────────────────────────────────────────────────────────────────

class TestErrorReporting:
    """error_to_string / build_error against the fake binding."""

    def test_known_code(self, fake_ks):
        assert error_to_string(ErrorCode.ARCH, fake_ks) == "Invalid architecture (KS_ERR_ARCH)"

    def test_null_becomes_empty_string(self, fake_ks):
        assert error_to_string(ErrorCode.NOMEM, fake_ks) == ""

    def test_undecodable_text_is_replaced(self, fake_ks):
        fake_ks.strerror = lambda code: b"bad \xff byte"
        assert error_to_string(1, fake_ks) == "bad � byte"

    def test_build_error_looks_up_description(self, fake_ks):
        err = build_error(AssemblyError, "Error while assembling instructions",
                          ErrorCode.ASM_SYMBOL_MISSING, fake_ks)
        assert isinstance(err, AssemblyError)
        assert err.code is ErrorCode.ASM_SYMBOL_MISSING
        assert err.description == "Symbol is missing (KS_ERR_ASM_SYMBOL_MISSING)"

    def test_build_error_keeps_unknown_codes_as_int(self, fake_ks):
        err = build_error(AssemblyError, "Error while assembling instructions", 9999, fake_ks)
        assert err.code == 9999
        assert not isinstance(err.code, ErrorCode)
        assert str(err) == "Error while assembling instructions"
