"""
engine — the Keystone session layer.

Public API
──────────
Engine                — owns one ks_engine handle; configure, assemble, dispose
EncodedResult         — bytes + base address + statement count
VersionInfo           — libkeystone version
SymbolSlot            — mutable address slot passed to resolvers
SymbolResolverBridge  — resolver chain behind the native ks_sym_resolver callback
error_to_string       — ks_strerror wrapper
"""

from ksbind.engine.models import EncodedResult, SymbolSlot, VersionInfo
from ksbind.engine.reporting import build_error, error_to_string
from ksbind.engine.resolver_bridge import Resolver, SymbolResolverBridge
from ksbind.engine.session import Engine

__all__ = [
    "Engine",
    "EncodedResult",
    "VersionInfo",
    "SymbolSlot",
    "Resolver",
    "SymbolResolverBridge",
    "build_error",
    "error_to_string",
]
