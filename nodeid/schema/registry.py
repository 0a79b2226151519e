"""
Node ID handler registry.

The NodeIdHandlerRegistry is the central authority mapping output type
names to the handler that encodes, decodes, matches and fetches their
node identifiers. It provides:
- Registration of handlers, one per output type
- Lookup by type name and iteration in registration order
- Schema fingerprinting from static handler metadata
- Freeze mechanism to prevent modification once a build completes
- A process-wide "current" registry replaced wholesale on rebuild

Invariants:
    - Registry is mutable during a schema build, frozen before serving
    - Once frozen, no new handlers can be registered
    - Type names are unique; registering one twice is rejected
    - Handler iteration order is registration order (dispatch depends on it)
    - Rebuilds install a new registry; an installed registry is never mutated

How to change safely:
    - Register all handlers before calling freeze()
    - Install a rebuilt registry with install_registry(), never patch the
      current one in place

Example:
    >>> registry = NodeIdHandlerRegistry()
    >>> registry.register_handler("User", handler)
    >>> registry.freeze()
    'sha256:...'
    >>> registry.get_handler("User").identifier
    'User'
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, Callable, Iterator, Optional

from ..codec import get_codec

logger = logging.getLogger(__name__)

# Current registry for the running schema build
_current_registry: Optional[NodeIdHandlerRegistry] = None
_registry_lock = threading.Lock()


class RegistryFrozenError(Exception):
    """Raised when attempting to modify a frozen registry."""
    pass


class DuplicateRegistrationError(Exception):
    """Raised when attempting to register a handler for a type name twice."""
    pass


@dataclass(frozen=True)
class NodeIdHandler:
    """Encode/decode/match/get bundle for one output type.

    Attributes:
        type_name: Output type name the handler is registered under
        codec_name: Name of the codec producing the opaque string
        identifier: Token stored as the first element of every node tuple
        key_columns: Primary key columns, in tuple order
        encode: row -> [identifier, *key_values]
        decode_to_spec: key_values -> {column: value}
        match: node tuple -> whether this handler owns it
        get: key spec -> row (may return an awaitable)
        deprecation_reason: Documentation-only deprecation note
        fast_path: Whether the specialized encode/decode plans were selected
    """

    type_name: str
    codec_name: str
    identifier: str
    key_columns: tuple[str, ...]
    encode: Callable[[Any], list[Any]] = dataclass_field(compare=False, repr=False)
    decode_to_spec: Callable[[list[Any]], dict[str, Any]] = dataclass_field(
        compare=False, repr=False
    )
    match: Callable[[list[Any]], bool] = dataclass_field(compare=False, repr=False)
    get: Callable[[dict[str, Any]], Any] = dataclass_field(compare=False, repr=False)
    deprecation_reason: str | None = None
    fast_path: bool = False

    def node_id(self, row: Any) -> str:
        """Encode a row into its opaque node identifier."""
        return get_codec(self.codec_name).encode(self.encode(row))

    def spec_from_tuple(self, node_tuple: list[Any]) -> dict[str, Any]:
        """Turn a decoded node tuple into the key spec for get()."""
        return self.decode_to_spec(node_tuple[1:])

    def to_dict(self) -> dict[str, Any]:
        """Static metadata describing how this handler encodes identifiers."""
        result: dict[str, Any] = {
            "type_name": self.type_name,
            "codec_name": self.codec_name,
            "identifier": self.identifier,
            "key_columns": list(self.key_columns),
        }
        if self.deprecation_reason:
            result["deprecation_reason"] = self.deprecation_reason
        if self.fast_path:
            result["fast_path"] = True
        return result


class NodeIdHandlerRegistry:
    """Registry of node ID handlers for one schema build.

    Thread-safety:
        - Registration is thread-safe (uses internal lock)
        - Lookups after freeze are lock-free
        - Freeze is atomic and irreversible

    Attributes:
        frozen: Whether the registry is frozen (immutable)
        fingerprint: SHA-256 hash of handler metadata (computed on freeze)
    """

    def __init__(self) -> None:
        """Initialize an empty, mutable registry."""
        self._handlers: dict[str, NodeIdHandler] = {}
        self._frozen = False
        self._fingerprint: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        """Whether the registry is frozen."""
        return self._frozen

    @property
    def fingerprint(self) -> Optional[str]:
        """Handler fingerprint (available after freeze)."""
        return self._fingerprint

    def register_handler(self, type_name: str, handler: NodeIdHandler) -> None:
        """Register the node ID handler for an output type.

        Args:
            type_name: Output type name
            handler: Handler for that type

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If type_name is already registered
            ValueError: If handler.type_name differs from type_name
        """
        if handler.type_name != type_name:
            raise ValueError(
                f"Handler for '{handler.type_name}' cannot be registered as '{type_name}'"
            )

        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(
                    f"Cannot register node ID handler '{type_name}': registry is frozen"
                )

            if type_name in self._handlers:
                existing = self._handlers[type_name]
                raise DuplicateRegistrationError(
                    f"Node ID handler '{type_name}' already registered "
                    f"with identifier '{existing.identifier}'"
                )

            self._handlers[type_name] = handler
            logger.debug(
                f"Registered node ID handler: {type_name} "
                f"(identifier={handler.identifier}, codec={handler.codec_name})"
            )

    def get_handler(self, type_name: str) -> Optional[NodeIdHandler]:
        """Get the handler registered for a type name, if any."""
        return self._handlers.get(type_name)

    def handlers(self) -> Iterator[NodeIdHandler]:
        """Iterate over handlers in registration order."""
        yield from self._handlers.values()

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._handlers

    def freeze(self) -> str:
        """Freeze the registry and compute fingerprint.

        Returns:
            Fingerprint string

        Raises:
            RegistryFrozenError: If already frozen
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is already frozen")

            self._fingerprint = self._compute_fingerprint()
            self._frozen = True
            logger.info(
                f"Node ID registry frozen with {len(self._handlers)} handlers, "
                f"fingerprint={self._fingerprint}"
            )
            return self._fingerprint

    def _compute_fingerprint(self) -> str:
        """Compute SHA-256 fingerprint of the handler metadata.

        Identifiers issued under registries with equal fingerprints are
        interchangeable.

        Returns:
            Fingerprint string in format 'sha256:<hash>'
        """
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        hash_bytes = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
        return f"sha256:{hash_bytes}"

    def to_dict(self) -> dict:
        """Convert registry to dictionary representation.

        Handlers are listed in registration order, which is part of the
        dispatch contract.
        """
        return {"handlers": [h.to_dict() for h in self._handlers.values()]}

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Convert registry to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)


def get_registry() -> NodeIdHandlerRegistry:
    """Get the currently installed registry.

    Creates an empty registry if none has been installed.
    """
    global _current_registry
    with _registry_lock:
        if _current_registry is None:
            _current_registry = NodeIdHandlerRegistry()
        return _current_registry


def install_registry(registry: NodeIdHandlerRegistry) -> Optional[NodeIdHandlerRegistry]:
    """Make a freshly built registry the current one.

    The previous registry is returned untouched so in-flight requests holding
    a reference to it keep resolving against the build they started with.

    Args:
        registry: Registry from a completed schema build (frozen if not yet)

    Returns:
        The previously installed registry, or None
    """
    global _current_registry
    if not registry.frozen:
        registry.freeze()
    with _registry_lock:
        previous = _current_registry
        _current_registry = registry
    logger.info(f"Installed node ID registry {registry.fingerprint}")
    return previous


def reset_registry() -> None:
    """Reset the current registry (for testing only).

    Warning: This is intended for test cleanup only.
    Never use in production code.
    """
    global _current_registry
    with _registry_lock:
        _current_registry = None
