"""Data models for the engine module."""

from dataclasses import dataclass

__all__ = ["EncodedResult", "VersionInfo", "SymbolSlot"]

_U64_MASK = (1 << 64) - 1


@dataclass(frozen=True)
class EncodedResult:
    """
    Output of a single Engine.assemble() call.

    data             — machine code bytes; never None, empty on lenient failure
    address          — base address the text was assembled at (echoes the input)
    statement_count  — number of ';' / newline separated statements processed
    """
    data:            bytes
    address:         int = 0
    statement_count: int = 0

    @property
    def size(self) -> int:
        return len(self.data)

    def hex(self, sep: str = " ") -> str:
        """Space-separated upper-case hex dump, e.g. "01 C0"."""
        return self.data.hex(sep).upper() if self.data else ""

    def __len__(self) -> int:
        return len(self.data)

    def __bytes__(self) -> bytes:
        return self.data

    def __bool__(self) -> bool:
        return bool(self.data)

    def __str__(self) -> str:
        return (
            f"EncodedResult(address=0x{self.address:x}, "
            f"statements={self.statement_count}, bytes=[{self.hex()}])"
        )


@dataclass(frozen=True)
class VersionInfo:
    """libkeystone version as reported by ks_version()."""
    major:    int
    minor:    int
    combined: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass
class SymbolSlot:
    """
    Mutable address slot handed to resolvers.

    A resolver stores the resolved address in ``slot.value`` and returns True.
    """
    value: int = 0

    def set(self, address: int) -> None:
        self.value = address & _U64_MASK
