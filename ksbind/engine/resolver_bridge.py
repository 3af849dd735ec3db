"""
SymbolResolverBridge — forwards libkeystone symbol lookups to Python resolvers.

Design
──────
• One ctypes trampoline per bridge, created in __init__ and referenced by the
  bridge until it is garbage collected. The Engine keeps the bridge alive for
  as long as its handle, so the native side never calls a freed thunk.
• The trampoline is installed with ks_option(SYM_RESOLVER) only while at least
  one resolver is attached: install happens when the bridge is not registered
  and a resolver is added, uninstall when the last resolver is removed.
• Resolvers are consulted in insertion order; the first one that returns True
  wins and the address it stored in the SymbolSlot goes back to the engine.

Resolver signature
──────────────────
    def resolver(symbol: str, slot: SymbolSlot) -> bool

Raises
──────
RegistrationError — ks_option failed while installing/removing the trampoline
"""

import logging
from typing import Any, Callable, Optional

from ksbind.exceptions import RegistrationError
from ksbind.native.binding import NativeBinding, SymbolResolverCallback
from ksbind.native.constants import ErrorCode

from .models import SymbolSlot
from .reporting import build_error

__all__ = ["Resolver", "SymbolResolverBridge"]

logger = logging.getLogger(__name__)

Resolver = Callable[[str, SymbolSlot], bool]

_U64_MASK = (1 << 64) - 1


class SymbolResolverBridge:
    """
    Ordered resolver registry plus the native-facing trampoline.

    Args:
        install: Sets the SYM_RESOLVER option on the owning engine; called with
                 the trampoline to install it and with None to remove it.
                 Returns the native error code.
        binding: Used to describe registration errors.
    """

    def __init__(
        self,
        install: Callable[[Optional[Any]], int],
        binding: NativeBinding,
    ) -> None:
        self._install = install
        self._binding = binding
        self._resolvers: list[Resolver] = []
        self._registered = False
        self._callback = SymbolResolverCallback(self._trampoline)

    # ── State ─────────────────────────────────────────────────────────────

    @property
    def registered(self) -> bool:
        """True while the trampoline is installed in the native engine."""
        return self._registered

    @property
    def resolvers(self) -> tuple:
        return tuple(self._resolvers)

    @property
    def callback(self) -> Any:
        """The ctypes trampoline handed to ks_option."""
        return self._callback

    def __len__(self) -> int:
        return len(self._resolvers)

    # ── Mutation ──────────────────────────────────────────────────────────

    def add(self, resolver: Resolver) -> None:
        """
        Append *resolver*, installing the trampoline first if needed.

        The resolver is appended even when installation fails; the
        RegistrationError is raised afterwards.
        """
        err = ErrorCode.OK
        if not self._registered:
            err = self._install(self._callback)
            if err == ErrorCode.OK:
                self._registered = True
                logger.debug("Symbol resolver trampoline installed")

        self._resolvers.append(resolver)

        if err != ErrorCode.OK:
            raise build_error(
                RegistrationError, "Could not add symbol resolver", err, self._binding
            )

    def remove(self, resolver: Resolver) -> bool:
        """
        Remove the first entry equal to *resolver*.

        Returns:
            True if an entry was removed.

        Raises:
            RegistrationError: The list became empty and uninstalling failed;
                               the bridge then stays registered.
        """
        try:
            self._resolvers.remove(resolver)
        except ValueError:
            return False

        if self._registered and not self._resolvers:
            self._uninstall()
        return True

    def clear(self) -> None:
        """Drop every resolver and uninstall the trampoline if it is installed."""
        self._resolvers.clear()
        if self._registered:
            self._uninstall()

    def _uninstall(self) -> None:
        err = self._install(None)
        if err != ErrorCode.OK:
            raise build_error(
                RegistrationError, "Could not remove symbol resolver", err, self._binding
            )
        self._registered = False
        logger.debug("Symbol resolver trampoline removed")

    # ── Resolution ────────────────────────────────────────────────────────

    def resolve(self, symbol: str, slot: SymbolSlot) -> bool:
        """Ask each resolver in turn; stop at the first that returns True."""
        for resolver in tuple(self._resolvers):
            if resolver(symbol, slot):
                return True
        return False

    def _trampoline(self, symbol: Optional[bytes], value: Any) -> bool:
        # Runs inside ks_asm: exceptions must not cross back into C.
        if symbol is None:
            return False
        try:
            name = symbol.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Undecodable symbol name %r", symbol)
            return False

        slot = SymbolSlot(value[0] if value else 0)
        try:
            found = self.resolve(name, slot)
        except Exception:  # noqa: BLE001
            logger.exception("Symbol resolver raised while resolving %r", name)
            return False

        if found and value:
            value[0] = slot.value & _U64_MASK
        logger.debug("Resolve %r → %s", name, hex(slot.value) if found else "unresolved")
        return found
