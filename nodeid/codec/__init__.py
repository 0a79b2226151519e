"""
Node identifier codecs.

This module provides the pluggable codec interface used to turn node
tuples into opaque identifiers and back:
- base64JSON (default, the only codec table handlers use)

Invariants:
    - Codecs are looked up by name; names are never reused
    - decode() failures are always NodeIdDecodeError

How to change safely:
    - New codecs must implement NodeIdCodec and be registered by name
    - Never alter the output of a shipped codec
"""

from .base import (
    NodeIdCodec,
    NodeIdDecodeError,
    UnknownCodecError,
    get_codec,
    register_codec,
)
from .base64_json import BASE64_JSON, Base64JsonCodec

register_codec(Base64JsonCodec())

__all__ = [
    # Protocol and errors
    "NodeIdCodec",
    "NodeIdDecodeError",
    "UnknownCodecError",
    # Lookup
    "get_codec",
    "register_codec",
    # Implementations
    "BASE64_JSON",
    "Base64JsonCodec",
]
