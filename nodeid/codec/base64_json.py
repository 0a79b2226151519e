"""
Base64-encoded JSON array codec.

The JSON is compact, so for tuples of ASCII strings and integers the
identifier equals JavaScript ``btoa(JSON.stringify(tuple))``. Floats and
non-ASCII text still round-trip here but are not guaranteed to match
identifiers issued elsewhere (``1.0`` is written as ``1.0``, and text is
encoded as UTF-8).

Example:
    >>> codec = Base64JsonCodec()
    >>> codec.encode(["User", 1])
    'WyJVc2VyIiwxXQ=='
    >>> codec.decode('WyJVc2VyIiwxXQ==')
    ['User', 1]
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from .base import NodeIdCodec, NodeIdDecodeError

BASE64_JSON = "base64JSON"


class Base64JsonCodec(NodeIdCodec):
    """Node ID codec: base64 of the compact JSON array."""

    name = BASE64_JSON

    def encode(self, value: list[Any]) -> str:
        # Compact separators match JSON.stringify output
        text = json.dumps(list(value), separators=(",", ":"), ensure_ascii=False)
        return base64.b64encode(text.encode("utf-8")).decode("ascii")

    def decode(self, value: str) -> list[Any]:
        if not isinstance(value, str):
            raise NodeIdDecodeError(f"Node ID must be a string, got {type(value).__name__}")
        try:
            raw = base64.b64decode(value, validate=True)
            decoded = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise NodeIdDecodeError(f"Malformed node ID: {e}") from e
        except RecursionError as e:
            raise NodeIdDecodeError("Malformed node ID: JSON nested too deeply") from e

        if not isinstance(decoded, list) or not decoded:
            raise NodeIdDecodeError("Node ID does not decode to a non-empty list")
        return decoded
