"""
native — libkeystone ABI layer.

Public API
──────────
Architecture, Mode, OptionType, OptionValue, ErrorCode — C enumerations
NativeConfig            — where to find libkeystone
NativeBinding           — typed ctypes view over the loaded library
SymbolResolverCallback  — ctypes type of the ks_sym_resolver callback
get_binding             — process-wide default NativeBinding
"""

from ksbind.native.constants import (
    API_MAJOR,
    API_MINOR,
    Architecture,
    ErrorCode,
    Mode,
    OptionType,
    OptionValue,
)
from ksbind.native.library import NativeConfig, find_library, load_library
from ksbind.native.binding import NativeBinding, SymbolResolverCallback, get_binding

__all__ = [
    "API_MAJOR",
    "API_MINOR",
    "Architecture",
    "ErrorCode",
    "Mode",
    "OptionType",
    "OptionValue",
    "NativeConfig",
    "find_library",
    "load_library",
    "NativeBinding",
    "SymbolResolverCallback",
    "get_binding",
]
