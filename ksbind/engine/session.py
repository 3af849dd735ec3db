"""
Engine — one libkeystone session (ks_engine handle) with a Python-safe surface.

Design
──────
• The handle is owned exclusively by the Engine. dispose() swaps it for None
  under a lock and closes the swapped-out value, so ks_close runs exactly once
  no matter how many threads call dispose(). An Engine that is garbage
  collected without dispose() is closed by a weakref.finalize callback.
• The binding is injectable (``_binding``) so the whole class is testable
  without libkeystone; production code leaves it as None and gets the shared
  binding from get_binding().
• Failures fall into two groups:
    always raised   — ArgumentError / RangeError, InitializationError,
                      RegistrationError, EngineDisposedError
    policy-driven   — OptionError, AssemblyError: raised when ``strict`` is
                      True, otherwise the call returns an empty sentinel
                      (EncodedResult(b""), (b"", 0, 0), 0 or False) and logs
                      a warning.

Threading
─────────
Except for dispose(), an Engine must not be used from two threads at once.
Resolvers run synchronously on the thread that called assemble*().

Usage::

    with Engine(Architecture.X86, Mode.MODE_32, strict=True) as ks:
        ks.assemble("nop").data                   # b"\\x90"
        ks.add_resolver(lambda name, slot: ...)
"""

import logging
import threading
import weakref
from typing import Any, Optional

from ksbind.exceptions import (
    ArgumentError,
    AssemblyError,
    EngineDisposedError,
    InitializationError,
    OptionError,
    RangeError,
)
from ksbind.native.binding import NativeBinding, get_binding
from ksbind.native.constants import Architecture, ErrorCode, Mode, OptionType
from ksbind.native.library import NativeConfig

from .models import EncodedResult, VersionInfo
from .reporting import build_error, error_to_string
from .resolver_bridge import Resolver, SymbolResolverBridge

__all__ = ["Engine"]

logger = logging.getLogger(__name__)

_U64_MAX = (1 << 64) - 1


class Engine:
    """
    A Keystone assembler session for one architecture/mode pair.

    Args:
        architecture: Target instruction set.
        mode:         Mode flags valid for *architecture*.
        strict:       Raise OptionError / AssemblyError instead of returning
                      empty results. Can be changed later via ``engine.strict``.
        config:       Where to load libkeystone from (ignored with _binding).
        _binding:     Injected NativeBinding (tests).

    Raises:
        InitializationError: ks_open failed (always, regardless of strict).
        LibraryNotFoundError: libkeystone could not be loaded.
    """

    def __init__(
        self,
        architecture: Architecture,
        mode: Mode,
        strict: bool = False,
        config: Optional[NativeConfig] = None,
        _binding: Optional[NativeBinding] = None,
    ) -> None:
        self._binding = _binding or get_binding(config)
        self.architecture = architecture
        self.mode = mode
        self.strict = strict
        self._handle_lock = threading.Lock()

        err, handle = self._binding.open(architecture, mode)
        if err != ErrorCode.OK or handle is None:
            raise build_error(
                InitializationError,
                "Error while initializing keystone",
                err if err != ErrorCode.OK else ErrorCode.HANDLE,
                self._binding,
            )
        self._handle = handle
        # Fallback release when the Engine is collected without dispose()
        self._finalizer = weakref.finalize(self, _release, self._binding, handle)
        self._bridge = SymbolResolverBridge(self._set_resolver_option, self._binding)
        logger.debug("Engine: opened %s / %s", _name(architecture), _name(mode))

    @classmethod
    def open(
        cls,
        architecture: Architecture,
        mode: Mode,
        strict: bool = False,
        config: Optional[NativeConfig] = None,
        _binding: Optional[NativeBinding] = None,
    ) -> "Engine":
        """Alias for the constructor."""
        return cls(architecture, mode, strict=strict, config=config, _binding=_binding)

    # ── Lifetime ──────────────────────────────────────────────────────────

    @property
    def closed(self) -> bool:
        return self._handle is None

    def dispose(self) -> None:
        """Release the native handle. Idempotent and safe to call from any thread."""
        with self._handle_lock:
            handle, self._handle = self._handle, None
        if handle is None:
            return
        self._finalizer.detach()
        _release(self._binding, handle)
        logger.debug("Engine: closed %s / %s", _name(self.architecture), _name(self.mode))

    def __enter__(self) -> "Engine":
        return self

    def __exit__(self, *args: Any) -> None:
        self.dispose()

    def _require_handle(self) -> Any:
        handle = self._handle
        if handle is None:
            raise EngineDisposedError("Engine has been disposed.")
        return handle

    # ── Options ───────────────────────────────────────────────────────────

    def set_option(self, option_type: OptionType, value: int) -> bool:
        """
        Set a ks_option, e.g. ``set_option(OptionType.SYNTAX, OptionValue.SYNTAX_ATT)``.

        Returns:
            True on success; False on failure in lenient mode.

        Raises:
            OptionError: strict mode and ks_option failed.
            ArgumentError: option_type is SYM_RESOLVER (managed by add_resolver).
        """
        if option_type == OptionType.SYM_RESOLVER:
            raise ArgumentError(
                "SYM_RESOLVER is managed by add_resolver()/remove_resolver()."
            )
        try:
            value = int(value)
        except (TypeError, ValueError) as exc:
            raise ArgumentError(f"option value must be an integer, got {value!r}") from exc
        handle = self._require_handle()
        err = self._binding.option(handle, option_type, value)
        if err == ErrorCode.OK:
            logger.debug("Engine: option %s = %s", _name(option_type), value)
            return True
        if self.strict:
            raise build_error(OptionError, "Error while setting option", err, self._binding)
        logger.warning(
            "Engine: setting option %s failed — %s",
            _name(option_type), self._describe(err),
        )
        return False

    # ── Symbol resolvers ──────────────────────────────────────────────────

    def _set_resolver_option(self, callback: Optional[Any]) -> int:
        return self._binding.option(self._require_handle(), OptionType.SYM_RESOLVER, callback)

    def add_resolver(self, resolver: Resolver) -> None:
        """
        Attach *resolver* (``fn(symbol, slot) -> bool``) to the end of the chain.

        Raises:
            RegistrationError: the native trampoline could not be installed.
                               The resolver is attached anyway.
        """
        if resolver is None or not callable(resolver):
            raise ArgumentError("resolver must be callable")
        self._require_handle()
        self._bridge.add(resolver)

    def remove_resolver(self, resolver: Resolver) -> bool:
        """
        Detach the first occurrence of *resolver*.

        Returns:
            True if it was attached.

        Raises:
            RegistrationError: it was the last resolver and uninstalling failed.
        """
        self._require_handle()
        return self._bridge.remove(resolver)

    def clear_resolvers(self) -> None:
        """Detach every resolver and uninstall the native trampoline."""
        self._require_handle()
        self._bridge.clear()

    @property
    def resolvers(self) -> tuple:
        return self._bridge.resolvers

    @property
    def resolver_registered(self) -> bool:
        return self._bridge.registered

    # ── Assembly ──────────────────────────────────────────────────────────

    def _assemble(self, text: str, address: int) -> Optional[tuple[bytes, int]]:
        """
        Shared core of the assemble* family.

        Returns:
            (data, statement_count) on success; None on lenient failure.
        """
        if text is None:
            raise ArgumentError("text must not be None")
        if not isinstance(text, str):
            raise ArgumentError(f"text must be str, not {type(text).__name__}")
        if "\x00" in text:
            raise ArgumentError("text must not contain NUL characters")
        if not isinstance(address, int) or not 0 <= address <= _U64_MAX:
            raise ArgumentError(f"address must be an unsigned 64-bit integer, got {address!r}")
        handle = self._require_handle()

        rc, encoding, size, count = self._binding.asm(handle, text.encode("utf-8"), address)
        if rc != 0:
            code = self._binding.errno(handle)
            if self.strict:
                raise build_error(
                    AssemblyError, "Error while assembling instructions", code, self._binding
                )
            logger.warning(
                "Engine: assembling %r failed — %s", _preview(text), self._describe(code)
            )
            return None

        try:
            data = self._binding.read_buffer(encoding, size)
        finally:
            self._binding.free(encoding)
        logger.debug("Engine: %d statement(s) → %d byte(s) at 0x%x", count, len(data), address)
        return data, count

    def assemble(self, text: str, address: int = 0) -> EncodedResult:
        """
        Assemble *text* at base *address*.

        Returns:
            EncodedResult; on lenient failure its data is b"" and its
            statement_count is 0.

        Raises:
            ArgumentError: text is None / not a str, or address out of range.
            AssemblyError: strict mode and ks_asm failed.
        """
        data, _, count = self.assemble_bytes(text, address)
        return EncodedResult(data=data, address=address, statement_count=count)

    def assemble_bytes(self, text: str, address: int = 0) -> tuple[bytes, int, int]:
        """
        Assemble *text* and return ``(data, size, statement_count)``.

        Lenient failure returns ``(b"", 0, 0)``.
        """
        result = self._assemble(text, address)
        if result is None:
            return b"", 0, 0
        data, count = result
        return data, len(data), count

    def assemble_into(self, text: str, address: int, buffer: Any, offset: int = 0) -> int:
        """
        Assemble *text* and copy the bytes into *buffer* starting at *offset*.

        Args:
            buffer: Writable bytes-like object (bytearray, writable memoryview, ...).
            offset: Start index; must satisfy 0 <= offset < len(buffer).

        Returns:
            Number of bytes written; 0 on lenient failure.

        Raises:
            ArgumentError: text or buffer is None, or buffer is not a writable
                           contiguous bytes-like object.
            RangeError: offset out of bounds, or the output does not fit.
            AssemblyError: strict mode and ks_asm failed.
        """
        written, _ = self.assemble_into_counted(text, address, buffer, offset)
        return written

    def assemble_into_counted(
        self, text: str, address: int, buffer: Any, offset: int = 0
    ) -> tuple[int, int]:
        """Like assemble_into(), returning ``(written, statement_count)``."""
        if text is None:
            raise ArgumentError("text must not be None")
        if buffer is None:
            raise ArgumentError("buffer must not be None")
        try:
            view = memoryview(buffer).cast("B")
        except TypeError as exc:
            raise ArgumentError(
                f"buffer must be a contiguous bytes-like object, not {type(buffer).__name__}"
            ) from exc
        if view.readonly:
            raise ArgumentError("buffer must be writable")
        if not 0 <= offset < len(view):
            raise RangeError(f"offset {offset} outside buffer of length {len(view)}")

        result = self._assemble(text, address)
        if result is None:
            return 0, 0
        data, count = result
        end = offset + len(data)
        if end > len(view):
            raise RangeError(
                f"{len(data)} byte(s) at offset {offset} overflow buffer of length {len(view)}"
            )
        view[offset:end] = data
        return len(data), count

    def assemble_to_stream(self, text: str, address: int, stream: Any) -> bool:
        """
        Assemble *text* and write the bytes to *stream* (anything with write(bytes)).

        Returns:
            False when lenient mode produced the empty result (nothing written),
            True otherwise.

        Raises:
            ArgumentError: text or stream is None.
            AssemblyError: strict mode and ks_asm failed.
        """
        ok, _, _ = self.assemble_to_stream_counted(text, address, stream)
        return ok

    def assemble_to_stream_counted(
        self, text: str, address: int, stream: Any
    ) -> tuple[bool, int, int]:
        """Like assemble_to_stream(), returning ``(ok, size, statement_count)``."""
        if stream is None:
            raise ArgumentError("stream must not be None")
        data, size, count = self.assemble_bytes(text, address)
        if not data and size == 0 and count == 0 and not self.strict:
            return False, 0, 0
        stream.write(data)
        return True, size, count

    # ── Diagnostics ───────────────────────────────────────────────────────

    def get_last_error(self) -> ErrorCode:
        """ks_errno for this session's handle."""
        return ErrorCode.coerce(self._binding.errno(self._require_handle()))

    def _describe(self, code: int) -> str:
        """error_to_string() through this engine's binding."""
        return error_to_string(code, self._binding)

    @staticmethod
    def error_to_string(code: int) -> str:
        """Human-readable text for *code*; "" if libkeystone has none."""
        return error_to_string(code, get_binding())

    @staticmethod
    def is_architecture_supported(architecture: Architecture) -> bool:
        return get_binding().arch_supported(architecture)

    @staticmethod
    def get_version() -> VersionInfo:
        combined, major, minor = get_binding().version()
        return VersionInfo(major=major, minor=minor, combined=combined)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return (
            f"Engine({_name(self.architecture)}, {_name(self.mode)}, "
            f"strict={self.strict}, {state})"
        )


def _release(binding: NativeBinding, handle: Any) -> None:
    err = binding.close(handle)
    if err != ErrorCode.OK:
        logger.warning("Engine: ks_close returned %s", ErrorCode.coerce(err))


def _name(value: Any) -> str:
    return getattr(value, "name", None) or str(value)


def _preview(text: str, limit: int = 40) -> str:
    return text if len(text) <= limit else text[:limit] + "…"
