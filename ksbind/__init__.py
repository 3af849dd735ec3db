"""
ksbind — a safe Python session wrapper around the Keystone assembler.

    from ksbind import Architecture, Engine, Mode

    with Engine(Architecture.X86, Mode.MODE_32, strict=True) as ks:
        print(ks.assemble("add eax, eax"))     # bytes=[01 C0]
"""

from ksbind.engine import (
    EncodedResult,
    Engine,
    SymbolResolverBridge,
    SymbolSlot,
    VersionInfo,
    error_to_string,
)
from ksbind.exceptions import (
    ArgumentError,
    AssemblyError,
    EngineDisposedError,
    InitializationError,
    KeystoneError,
    KsBindError,
    LibraryNotFoundError,
    OptionError,
    RangeError,
    RegistrationError,
)
from ksbind.native import (
    Architecture,
    ErrorCode,
    Mode,
    NativeConfig,
    OptionType,
    OptionValue,
)

__version__ = "0.9.2"

__all__ = [
    "Engine",
    "EncodedResult",
    "SymbolResolverBridge",
    "SymbolSlot",
    "VersionInfo",
    "error_to_string",
    "Architecture",
    "ErrorCode",
    "Mode",
    "NativeConfig",
    "OptionType",
    "OptionValue",
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
