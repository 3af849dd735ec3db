"""
Error reporting — native error code → text, and typed error construction.

error_to_string() never returns None: a NULL from ks_strerror becomes "".
build_error() is what Engine uses to turn a failed native call into one of
the KeystoneError subclasses with its description already looked up.
"""

import logging
from typing import Optional, Type, TypeVar

from ksbind.exceptions import KeystoneError
from ksbind.native.binding import NativeBinding, get_binding
from ksbind.native.constants import ErrorCode

__all__ = ["error_to_string", "build_error"]

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=KeystoneError)


def error_to_string(code: int, binding: Optional[NativeBinding] = None) -> str:
    """
    Return the libkeystone description of *code*.

    Args:
        code:    ErrorCode member or raw ks_err value.
        binding: Binding to query; defaults to get_binding().
    """
    binding = binding or get_binding()
    raw = binding.strerror(int(code))
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")


def build_error(
    error_cls: Type[E],
    message: str,
    code: int,
    binding: Optional[NativeBinding] = None,
) -> E:
    """Instantiate *error_cls* for native *code* with its looked-up description."""
    description = error_to_string(code, binding)
    err = error_cls(message, ErrorCode.coerce(int(code)), description)
    logger.debug("%s: code=%s (%s)", error_cls.__name__, int(code), description)
    return err
