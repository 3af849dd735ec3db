"""
NativeBinding — ctypes declarations for the libkeystone C ABI.

Design
──────
• Every ks_* entry point gets explicit argtypes/restype so ctypes never
  guesses (handles stay pointer-sized, size_t outputs stay size_t).
• NativeBinding methods are marshalling only: bytes/ints in, plain tuples out.
  Policy (strict/lenient, error mapping, ownership) lives in engine/session.py.
• Engine takes the binding as an injectable dependency, so tests can pass a
  fake object exposing the same methods instead of a real CDLL.

Native surface
──────────────
ks_version, ks_open, ks_close, ks_free, ks_strerror, ks_errno,
ks_arch_supported, ks_option, ks_asm
"""

import ctypes
import logging
import threading
from typing import Any, Optional, Union

from .constants import API_MAJOR, API_MINOR
from .library import NativeConfig, find_library, load_library

__all__ = ["NativeBinding", "SymbolResolverCallback", "get_binding"]

logger = logging.getLogger(__name__)

# bool (*ks_sym_resolver)(const char *symbol, uint64_t *value)
SymbolResolverCallback = ctypes.CFUNCTYPE(
    ctypes.c_bool,
    ctypes.c_char_p,
    ctypes.POINTER(ctypes.c_uint64),
)

_ks_engine_p = ctypes.c_void_p
_u8_p = ctypes.POINTER(ctypes.c_ubyte)

# name → (restype, argtypes)
_PROTOTYPES = {
    "ks_version":        (ctypes.c_uint, [ctypes.POINTER(ctypes.c_uint), ctypes.POINTER(ctypes.c_uint)]),
    "ks_open":           (ctypes.c_int,  [ctypes.c_int, ctypes.c_int, ctypes.POINTER(_ks_engine_p)]),
    "ks_close":          (ctypes.c_int,  [_ks_engine_p]),
    "ks_free":           (None,          [_u8_p]),
    "ks_strerror":       (ctypes.c_char_p, [ctypes.c_int]),
    "ks_errno":          (ctypes.c_int,  [_ks_engine_p]),
    "ks_arch_supported": (ctypes.c_bool, [ctypes.c_int]),
    "ks_option":         (ctypes.c_int,  [_ks_engine_p, ctypes.c_int, ctypes.c_size_t]),
    "ks_asm":            (ctypes.c_int,  [
        _ks_engine_p,
        ctypes.c_char_p,
        ctypes.c_uint64,
        ctypes.POINTER(_u8_p),
        ctypes.POINTER(ctypes.c_size_t),
        ctypes.POINTER(ctypes.c_size_t),
    ]),
}


def _declare(lib: Any) -> None:
    for name, (restype, argtypes) in _PROTOTYPES.items():
        fn = getattr(lib, name)
        fn.restype = restype
        fn.argtypes = argtypes


class NativeBinding:
    """
    Typed view over a loaded libkeystone.

    Usage::

        binding = get_binding()
        err, handle = binding.open(Architecture.X86, Mode.MODE_32)
        rc, buf, size, count = binding.asm(handle, b"nop", 0)
        data = binding.read_buffer(buf, size)
        binding.free(buf)
        binding.close(handle)
    """

    def __init__(self, lib: Any, path: str = "") -> None:
        _declare(lib)
        self._lib = lib
        self.path = path

    def version(self) -> tuple[int, int, int]:
        """Return (combined, major, minor); combined is (major << 8) + minor."""
        major = ctypes.c_uint()
        minor = ctypes.c_uint()
        combined = self._lib.ks_version(ctypes.byref(major), ctypes.byref(minor))
        return combined, major.value, minor.value

    def open(self, arch: int, mode: int) -> tuple[int, Optional[ctypes.c_void_p]]:
        """Return (error code, handle); handle is None unless the call succeeded."""
        handle = _ks_engine_p()
        err = self._lib.ks_open(int(arch), int(mode), ctypes.byref(handle))
        return err, (handle if handle.value else None)

    def close(self, handle: ctypes.c_void_p) -> int:
        return self._lib.ks_close(handle)

    def free(self, buffer: Any) -> None:
        self._lib.ks_free(buffer)

    def strerror(self, code: int) -> Optional[bytes]:
        return self._lib.ks_strerror(int(code))

    def errno(self, handle: ctypes.c_void_p) -> int:
        return self._lib.ks_errno(handle)

    def arch_supported(self, arch: int) -> bool:
        return bool(self._lib.ks_arch_supported(int(arch)))

    def option(
        self,
        handle: ctypes.c_void_p,
        option_type: int,
        value: Union[int, "SymbolResolverCallback", None],
    ) -> int:
        """ks_option; *value* may be a SymbolResolverCallback (passed as its address) or None (0)."""
        return self._lib.ks_option(handle, int(option_type), _option_value(value))

    def asm(self, handle: ctypes.c_void_p, text: bytes, address: int) -> tuple[int, Any, int, int]:
        """
        Run ks_asm.

        Returns:
            (result, encoding pointer, encoding size, statement count).
            The pointer is native-owned: read it with read_buffer() and
            release it with free(). result != 0 means failure; query errno().
        """
        encoding = _u8_p()
        size = ctypes.c_size_t()
        count = ctypes.c_size_t()
        rc = self._lib.ks_asm(
            handle,
            text,
            address,
            ctypes.byref(encoding),
            ctypes.byref(size),
            ctypes.byref(count),
        )
        return rc, encoding, size.value, count.value

    def read_buffer(self, buffer: Any, size: int) -> bytes:
        """Copy *size* bytes out of a native buffer."""
        if not size:
            return b""
        return ctypes.string_at(buffer, size)

    def __repr__(self) -> str:
        return f"NativeBinding({self.path!r})"


def _option_value(value: Union[int, "SymbolResolverCallback", None]) -> int:
    if value is None:
        return 0
    if isinstance(value, SymbolResolverCallback):
        return ctypes.cast(value, ctypes.c_void_p).value or 0
    return int(value)


# ── Shared default binding ────────────────────────────────────────────────────

_bindings: dict[str, NativeBinding] = {}
_bindings_lock = threading.Lock()


def get_binding(config: Optional[NativeConfig] = None) -> NativeBinding:
    """
    Return the process-wide NativeBinding for the library *config* resolves to.

    The library is loaded once per path; later calls reuse it.

    Raises:
        LibraryNotFoundError: libkeystone could not be located or loaded.
    """
    config = config or NativeConfig()
    path = find_library(config)
    with _bindings_lock:
        binding = _bindings.get(path)
        if binding is None:
            binding = NativeBinding(load_library(path), path)
            if config.check_version:
                _check_version(binding)
            _bindings[path] = binding
    return binding


def _check_version(binding: NativeBinding) -> None:
    _, major, minor = binding.version()
    if (major, minor) != (API_MAJOR, API_MINOR):
        logger.warning(
            "libkeystone %d.%d at %s does not match binding API %d.%d",
            major, minor, binding.path, API_MAJOR, API_MINOR,
        )
    else:
        logger.debug("libkeystone %d.%d", major, minor)
