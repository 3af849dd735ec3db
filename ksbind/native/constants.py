"""
Keystone enumerations, mirrored from keystone.h / keystone_const.py (API 0.9).

Architecture — one tag per supported instruction-set family
Mode         — bit flags for word width / endianness / sub-variant
OptionType   — ks_option() kinds; SYM_RESOLVER is reserved for the resolver bridge
OptionValue  — values accepted by OptionType.SYNTAX
ErrorCode    — ks_err; OK is distinct from every failure code
"""

from enum import IntEnum, IntFlag

__all__ = [
    "API_MAJOR",
    "API_MINOR",
    "Architecture",
    "Mode",
    "OptionType",
    "OptionValue",
    "ErrorCode",
]

# Binding targets this native API version; ks_version() is compared against it
API_MAJOR = 0
API_MINOR = 9


class Architecture(IntEnum):
    ARM     = 1
    ARM64   = 2
    MIPS    = 3
    X86     = 4
    PPC     = 5
    SPARC   = 6
    SYSTEMZ = 7
    HEXAGON = 8
    EVM     = 9


class Mode(IntFlag):
    """
    Several names share a bit: the meaning depends on the Architecture
    (MODE_32 == MIPS32 == PPC32 == SPARC32, THUMB == MICRO == QPX == V9, ...).
    Combine with ``|``, e.g. ``Mode.MODE_32 | Mode.BIG_ENDIAN``.
    """
    LITTLE_ENDIAN = 0
    BIG_ENDIAN    = 1 << 30
    # X86 (first: canonical names for the shared bits)
    MODE_16       = 1 << 1
    MODE_32       = 1 << 2
    MODE_64       = 1 << 3
    # ARM / ARM64
    ARM           = 1 << 0
    THUMB         = 1 << 4
    V8            = 1 << 6
    # MIPS
    MICRO         = 1 << 4
    MIPS3         = 1 << 5
    MIPS32R6      = 1 << 6
    MIPS32        = 1 << 2
    MIPS64        = 1 << 3
    # PPC
    PPC32         = 1 << 2
    PPC64         = 1 << 3
    QPX           = 1 << 4
    # SPARC
    SPARC32       = 1 << 2
    SPARC64       = 1 << 3
    V9            = 1 << 4


class OptionType(IntEnum):
    SYNTAX       = 1
    SYM_RESOLVER = 2


class OptionValue(IntFlag):
    SYNTAX_INTEL   = 1 << 0
    SYNTAX_ATT     = 1 << 1
    SYNTAX_NASM    = 1 << 2
    SYNTAX_MASM    = 1 << 3
    SYNTAX_GAS     = 1 << 4
    SYNTAX_RADIX16 = 1 << 5


class ErrorCode(IntEnum):
    OK                        = 0
    NOMEM                     = 1
    ARCH                      = 2
    HANDLE                    = 3
    MODE                      = 4
    VERSION                   = 5
    OPT_INVALID               = 6

    # ── Generic assembler-parser errors ───────────────────────────────────
    ASM_EXPR_TOKEN            = 128
    ASM_DIRECTIVE_VALUE_RANGE = 129
    ASM_DIRECTIVE_ID          = 130
    ASM_DIRECTIVE_TOKEN       = 131
    ASM_DIRECTIVE_STR         = 132
    ASM_DIRECTIVE_COMMA       = 133
    ASM_DIRECTIVE_RELOC_NAME  = 134
    ASM_DIRECTIVE_RELOC_TOKEN = 135
    ASM_DIRECTIVE_FPOINT      = 136
    ASM_DIRECTIVE_UNKNOWN     = 137
    ASM_DIRECTIVE_EQU         = 138
    ASM_DIRECTIVE_INVALID     = 139
    ASM_VARIANT_INVALID       = 140
    ASM_EXPR_BRACKET          = 141
    ASM_SYMBOL_MODIFIER       = 142
    ASM_SYMBOL_REDEFINED      = 143
    ASM_SYMBOL_MISSING        = 144
    ASM_RPAREN                = 145
    ASM_STAT_TOKEN            = 146
    ASM_UNSUPPORTED           = 147
    ASM_MACRO_TOKEN           = 148
    ASM_MACRO_PAREN           = 149
    ASM_MACRO_EQU             = 150
    ASM_MACRO_ARGS            = 151
    ASM_MACRO_LEVELS_EXCEED   = 152
    ASM_MACRO_STR             = 153
    ASM_MACRO_INVALID         = 154
    ASM_ESC_BACKSLASH         = 155
    ASM_ESC_OCTAL             = 156
    ASM_ESC_SEQUENCE          = 157
    ASM_ESC_STR               = 158
    ASM_TOKEN_INVALID         = 159
    ASM_INSN_UNSUPPORTED      = 160
    ASM_FIXUP_INVALID         = 161
    ASM_LABEL_INVALID         = 162
    ASM_FRAGMENT_INVALID      = 163

    # ── Target-specific errors ────────────────────────────────────────────
    ASM_INVALIDOPERAND        = 512
    ASM_MISSINGFEATURE        = 513
    ASM_MNEMONICFAIL          = 514

    @property
    def is_assembly_error(self) -> bool:
        """True for errors raised while parsing/encoding input text (>= 128)."""
        return self.value >= ErrorCode.ASM_EXPR_TOKEN

    @classmethod
    def coerce(cls, value: int):
        """Return the matching member, or the raw int for codes this binding doesn't know."""
        try:
            return cls(value)
        except ValueError:
            return value
