"""
Locating and loading libkeystone.

Search order (first hit wins)
─────────────────────────────
1. NativeConfig.library_path, when set
2. $KSBIND_LIBRARY
3. the shared library shipped inside the keystone-engine distribution
   (located via its package directory; the Python module is not imported)
4. ctypes.util.find_library("keystone") — system-wide install

Raises
──────
LibraryNotFoundError — nothing found, or the candidate failed to load
"""

import ctypes
import ctypes.util
import importlib.util
import logging
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ksbind.exceptions import LibraryNotFoundError

__all__ = ["NativeConfig", "find_library", "load_library"]

logger = logging.getLogger(__name__)

_ENV_VAR = "KSBIND_LIBRARY"
_WHEEL_PACKAGE = "keystone"

_LIB_NAMES = {
    "Windows": ("keystone.dll",),
    "Darwin":  ("libkeystone.dylib",),
}
_DEFAULT_LIB_NAMES = ("libkeystone.so", "libkeystone.so.0")


@dataclass
class NativeConfig:
    """Runtime configuration for the native layer."""
    library_path:  str  = ""       # empty = search (see module docstring)
    check_version: bool = True     # warn when ks_version() differs from API_MAJOR.API_MINOR


def _platform_lib_names() -> tuple:
    return _LIB_NAMES.get(platform.system(), _DEFAULT_LIB_NAMES)


def _wheel_candidates() -> list[Path]:
    """Shared-library paths inside the installed keystone-engine package, if any."""
    try:
        spec = importlib.util.find_spec(_WHEEL_PACKAGE)
    except (ImportError, ValueError):
        return []
    if spec is None or not spec.submodule_search_locations:
        return []
    found = []
    for location in spec.submodule_search_locations:
        for name in _platform_lib_names():
            candidate = Path(location) / name
            if candidate.is_file():
                found.append(candidate)
    return found


def find_library(config: Optional[NativeConfig] = None) -> str:
    """
    Return the path (or loader name) of the libkeystone to use.

    Raises:
        LibraryNotFoundError: No candidate was found.
    """
    config = config or NativeConfig()

    if config.library_path:
        return str(Path(config.library_path).expanduser())

    env_path = os.environ.get(_ENV_VAR, "")
    if env_path:
        return str(Path(env_path).expanduser())

    wheel = _wheel_candidates()
    if wheel:
        return str(wheel[0])

    system = ctypes.util.find_library("keystone")
    if system:
        return system

    raise LibraryNotFoundError(
        "libkeystone not found. Install it with: pip install keystone-engine, "
        f"or point ${_ENV_VAR} at the shared library."
    )


def load_library(path: str) -> ctypes.CDLL:
    """
    dlopen *path* with the cdecl calling convention.

    Raises:
        LibraryNotFoundError: The library exists but could not be loaded.
    """
    try:
        lib = ctypes.CDLL(path)
    except OSError as exc:
        raise LibraryNotFoundError(f"Failed to load libkeystone from {path}: {exc}") from exc
    logger.info("Loaded libkeystone from %s", path)
    return lib
