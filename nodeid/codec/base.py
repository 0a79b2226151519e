"""
Base class and lookup for node identifier codecs.

A codec is a pure, lossless transform between a node tuple
``[identifier, *key_values]`` and the opaque string handed to API clients.
Handlers name the codec they use; the resolver looks codecs up by that name.

Invariants:
    - decode(encode(value)) == value for every JSON-representable list
    - Codecs are stateless and safe to share between threads
    - decode() raises NodeIdDecodeError for any malformed input, never
      another exception type

How to change safely:
    - New codecs must subclass NodeIdCodec and use a new, unique name
    - Never change the output of an existing codec: every issued identifier
      would stop resolving
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class NodeIdDecodeError(Exception):
    """An opaque identifier could not be decoded."""
    pass


class UnknownCodecError(KeyError):
    """No codec is registered under the requested name."""
    pass


class NodeIdCodec(ABC):
    """Bidirectional transform between node tuples and opaque strings.

    Attributes:
        name: Registry name referenced by handlers (e.g. "base64JSON")
    """

    name: str = ""

    @abstractmethod
    def encode(self, value: list[Any]) -> str:
        """Encode a node tuple into an opaque identifier."""

    @abstractmethod
    def decode(self, value: str) -> list[Any]:
        """Decode an opaque identifier back into a node tuple.

        Raises:
            NodeIdDecodeError: If the value is not valid output of this codec
        """


_codecs: dict[str, NodeIdCodec] = {}
_codecs_lock = threading.Lock()


def register_codec(codec: NodeIdCodec) -> None:
    """Make a codec available by name.

    Args:
        codec: Codec instance to register

    Raises:
        ValueError: If the codec has no name or the name is taken by
            a different codec
    """
    if not codec.name:
        raise ValueError(f"Codec {type(codec).__name__} has no name")
    with _codecs_lock:
        existing = _codecs.get(codec.name)
        if existing is not None and existing is not codec:
            raise ValueError(f"Codec name '{codec.name}' already registered")
        _codecs[codec.name] = codec
    logger.debug(f"Registered node ID codec: {codec.name}")


def get_codec(name: str) -> NodeIdCodec:
    """Look up a registered codec.

    Raises:
        UnknownCodecError: If no codec has that name
    """
    try:
        return _codecs[name]
    except KeyError:
        raise UnknownCodecError(f"Unknown node ID codec '{name}'") from None
