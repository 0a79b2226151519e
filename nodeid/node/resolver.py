"""
Resolution of opaque node identifiers to rows.

The resolver decodes an identifier, scans the registry's handlers in
registration order for the first whose match predicate accepts the tuple,
and asks that handler to fetch the row.

Invariants:
    - Malformed identifiers and identifiers naming no registered type give
      the same outcome (None), so callers cannot probe which types exist
    - Decode failures never propagate past resolve_by_id()
    - The resolver holds one registry for its lifetime; a rebuild means a
      new resolver over the new registry

How to change safely:
    - Keep the scan in registration order; handler tokens are not reserved
      globally, so order decides ties
    - Errors raised by row getters belong to the data layer and propagate
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Optional

from ..codec import BASE64_JSON, NodeIdDecodeError, get_codec
from ..schema.registry import NodeIdHandler, NodeIdHandlerRegistry, get_registry

logger = logging.getLogger(__name__)


class NodeResolver:
    """Dispatches node identifiers to the handler that owns them.

    Example:
        >>> resolver = NodeResolver(registry)
        >>> node_id = resolver.node_id_for("User", {"id": 1})
        >>> resolver.resolve_by_id(node_id)
        {'id': 1, 'email': 'alice@example.com'}
        >>> resolver.resolve_by_id("garbage") is None
        True
    """

    def __init__(self, registry: NodeIdHandlerRegistry) -> None:
        self.registry = registry

    def decode(self, node_id: Any, codec_name: str = BASE64_JSON) -> Optional[list[Any]]:
        """Decode an identifier with one codec; None when malformed."""
        try:
            return get_codec(codec_name).decode(node_id)
        except NodeIdDecodeError as e:
            logger.debug(f"Could not decode node ID with {codec_name}: {e}")
            return None

    def find_handler(self, node_id: Any) -> Optional[tuple[NodeIdHandler, list[Any]]]:
        """Find the first handler accepting the identifier.

        Each codec used by the registry decodes the identifier at most once.

        Returns:
            (handler, decoded tuple), or None if nothing matches
        """
        decoded: dict[str, Optional[list[Any]]] = {}
        for handler in self.registry.handlers():
            if handler.codec_name not in decoded:
                decoded[handler.codec_name] = self.decode(node_id, handler.codec_name)
            node_tuple = decoded[handler.codec_name]
            if node_tuple is not None and handler.match(node_tuple):
                return handler, node_tuple
        return None

    def _lookup(self, node_id: Any) -> Optional[tuple[NodeIdHandler, dict[str, Any]]]:
        found = self.find_handler(node_id)
        if found is None:
            logger.debug("Node ID not resolvable: no matching handler")
            return None
        handler, node_tuple = found
        try:
            spec = handler.spec_from_tuple(node_tuple)
        except NodeIdDecodeError as e:
            logger.debug(f"Node ID not resolvable for {handler.type_name}: {e}")
            return None
        return handler, spec

    def resolve_by_id(self, node_id: Any) -> Any:
        """Resolve an identifier to its row.

        Returns:
            The row, or None when the identifier is not resolvable or the
            row does not exist
        """
        found = self._lookup(node_id)
        if found is None:
            return None
        handler, spec = found
        return handler.get(spec)

    async def resolve_by_id_async(self, node_id: Any) -> Any:
        """Like resolve_by_id(), awaiting getters that return awaitables."""
        found = self._lookup(node_id)
        if found is None:
            return None
        handler, spec = found
        row = handler.get(spec)
        if inspect.isawaitable(row):
            row = await row
        return row

    def node_id_for(self, type_name: str, row: Any) -> str:
        """Encode a row of a registered type into its identifier.

        Raises:
            KeyError: If no handler is registered for type_name
        """
        handler = self.registry.get_handler(type_name)
        if handler is None:
            raise KeyError(f"No node ID handler registered for '{type_name}'")
        return handler.node_id(row)


def resolve_by_id(node_id: Any) -> Any:
    """Resolve an identifier against the currently installed registry."""
    return NodeResolver(get_registry()).resolve_by_id(node_id)
