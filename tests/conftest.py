"""
Shared fixtures.

FakeKeystone stands in for NativeBinding: same method surface, pure Python
state, so Engine can be tested without libkeystone. Symbol lookups go through
the real ctypes trampoline the Engine installs via ks_option(SYM_RESOLVER).
"""

import ctypes
import re

import pytest

from ksbind.native.constants import Architecture, ErrorCode, OptionType, OptionValue

# Statement → encoding table (x86-32 encodings)
_ENCODINGS = {
    "nop":          b"\x90",
    "add eax, eax": b"\x01\xc0",
    "inc eax":      b"\x40",
    "push ebp":     b"\x55",
    "ret":          b"\xc3",
    "mul r1, r0, r0": b"\x90\x00\x01\xe0",
}

# "mov eax, <symbol>" needs the resolver; encoded as B8 imm32
_SYMBOL_STMT = re.compile(r"^mov eax, (?P<sym>[A-Za-z_]\w*)$")

_MESSAGES = {
    ErrorCode.OK:                 b"OK (KS_ERR_OK)",
    ErrorCode.ARCH:               b"Invalid architecture (KS_ERR_ARCH)",
    ErrorCode.MODE:               b"Invalid mode (KS_ERR_MODE)",
    ErrorCode.OPT_INVALID:        b"Invalid option (KS_ERR_OPT_INVALID)",
    ErrorCode.ASM_SYMBOL_MISSING: b"Symbol is missing (KS_ERR_ASM_SYMBOL_MISSING)",
    ErrorCode.ASM_MNEMONICFAIL:   b"Invalid mnemonic (KS_ERR_ASM_MNEMONICFAIL)",
}


class FakeKeystone:
    """In-process libkeystone double implementing the NativeBinding methods."""

    def __init__(self) -> None:
        self.supported = {Architecture.X86, Architecture.ARM}
        self.open_error = ErrorCode.OK
        self.open_returns_null = False
        self.option_errors: dict[int, int] = {}   # option type → error code
        self.option_calls: list[tuple] = []
        self.resolver_callbacks: dict[int, object] = {}
        self.open_handles: set[int] = set()
        self.close_calls: list[int] = []
        self.freed: list[int] = []
        self.asm_calls: list[tuple] = []
        self._buffers: dict[int, bytes] = {}
        self._errno: dict[int, int] = {}
        self._next_id = 0x1000

    def _new_id(self) -> int:
        self._next_id += 0x10
        return self._next_id

    # ── NativeBinding surface ─────────────────────────────────────────────

    def version(self):
        return (0 << 8) + 9, 0, 9

    def open(self, arch, mode):
        if self.open_error != ErrorCode.OK:
            return self.open_error, None
        if arch not in self.supported:
            return ErrorCode.ARCH, None
        if self.open_returns_null:
            return ErrorCode.OK, None
        handle = self._new_id()
        self.open_handles.add(handle)
        return ErrorCode.OK, handle

    def close(self, handle):
        self.close_calls.append(handle)
        self.open_handles.discard(handle)
        return ErrorCode.OK

    def free(self, buffer):
        self.freed.append(buffer)

    def strerror(self, code):
        return _MESSAGES.get(code)

    def errno(self, handle):
        return self._errno.get(handle, ErrorCode.OK)

    def arch_supported(self, arch):
        return arch in self.supported

    def option(self, handle, option_type, value):
        self.option_calls.append((handle, int(option_type), value))
        err = self.option_errors.get(int(option_type), ErrorCode.OK)
        if err != ErrorCode.OK:
            return err
        if option_type == OptionType.SYM_RESOLVER:
            if value is None:
                self.resolver_callbacks.pop(handle, None)
            else:
                self.resolver_callbacks[handle] = value
            return ErrorCode.OK
        if option_type == OptionType.SYNTAX:
            if value not in set(int(v) for v in OptionValue):
                return ErrorCode.OPT_INVALID
            return ErrorCode.OK
        return ErrorCode.OPT_INVALID

    def asm(self, handle, text, address):
        self.asm_calls.append((handle, text, address))
        out = b""
        count = 0
        for stmt in re.split(r"[;\n]", text.decode("utf-8")):
            stmt = stmt.strip()
            if not stmt:
                continue
            if stmt in _ENCODINGS:
                out += _ENCODINGS[stmt]
            else:
                m = _SYMBOL_STMT.match(stmt)
                if not m:
                    return self._fail(handle, ErrorCode.ASM_MNEMONICFAIL)
                value = self._resolve(handle, m.group("sym"))
                if value is None:
                    return self._fail(handle, ErrorCode.ASM_SYMBOL_MISSING)
                out += b"\xb8" + (value & 0xFFFFFFFF).to_bytes(4, "little")
            count += 1
        buf = self._new_id()
        self._buffers[buf] = out
        return 0, buf, len(out), count

    def read_buffer(self, buffer, size):
        return self._buffers[buffer][:size]

    # ── Helpers ───────────────────────────────────────────────────────────

    def _fail(self, handle, code):
        self._errno[handle] = code
        return -1, None, 0, 0

    def _resolve(self, handle, symbol):
        callback = self.resolver_callbacks.get(handle)
        if callback is None:
            return None
        value = ctypes.c_uint64(0)
        if callback(symbol.encode("utf-8"), ctypes.byref(value)):
            return value.value
        return None

    @property
    def live_buffers(self) -> set:
        return set(self._buffers) - set(self.freed)


@pytest.fixture
def fake_ks() -> FakeKeystone:
    return FakeKeystone()


@pytest.fixture
def engine(fake_ks):
    from ksbind.engine.session import Engine
    from ksbind.native.constants import Mode
    eng = Engine(Architecture.X86, Mode.MODE_32, _binding=fake_ks)
    yield eng
    eng.dispose()


@pytest.fixture
def strict_engine(fake_ks):
    from ksbind.engine.session import Engine
    from ksbind.native.constants import Mode
    eng = Engine(Architecture.X86, Mode.MODE_32, strict=True, _binding=fake_ks)
    yield eng
    eng.dispose()
