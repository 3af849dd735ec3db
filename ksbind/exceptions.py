"""
Project-wide custom exception hierarchy.
All modules raise subclasses of KsBindError — never bare Exception.

Errors that carry a native Keystone error code derive from KeystoneError;
whether they reach the caller depends on Engine.strict (see engine/session.py).
"""

from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from ksbind.native.constants import ErrorCode

__all__ = [
    "KsBindError",
    "ArgumentError",
    "RangeError",
    "EngineDisposedError",
    "LibraryNotFoundError",
    "KeystoneError",
    "InitializationError",
    "OptionError",
    "AssemblyError",
    "RegistrationError",
]


class KsBindError(Exception):
    """Root exception for all ksbind errors."""


# ── Caller contract ───────────────────────────────────────────────────────────

class ArgumentError(KsBindError):
    """Raised when a required argument is absent or malformed. Never suppressed."""


class RangeError(ArgumentError):
    """Raised when a buffer offset (or the data written at it) is out of bounds."""


class EngineDisposedError(KsBindError):
    """Raised when a session operation is attempted after dispose()."""


# ── Native library ────────────────────────────────────────────────────────────

class LibraryNotFoundError(KsBindError):
    """Raised when libkeystone cannot be located or loaded."""


# ── Native engine errors ──────────────────────────────────────────────────────

class KeystoneError(KsBindError):
    """
    Base class for failures reported by the native engine.

    message      — human-authored context, e.g. "Error while assembling instructions"
    code         — ErrorCode member (or raw int for codes unknown to this binding)
    description  — text looked up through ks_strerror; may be empty
    """

    def __init__(self, message: str, code: Union[int, "ErrorCode"], description: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.description = description

    def __str__(self) -> str:
        if self.description:
            return f"{self.message}: {self.description}"
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.code!r})"


class InitializationError(KeystoneError):
    """Raised when ks_open fails. Always raised, regardless of strict mode."""


class OptionError(KeystoneError):
    """Raised by set_option() in strict mode when ks_option fails."""


class AssemblyError(KeystoneError):
    """Raised by the assemble* family in strict mode when ks_asm fails."""


class RegistrationError(KeystoneError):
    """Raised when the symbol resolver trampoline cannot be installed or removed."""
