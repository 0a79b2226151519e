"""
Registration of node ID handlers for table-like entity sources.

A single synchronous pass over every entity source known to a schema
build decides which output types get a node ID handler and how their
identifiers are encoded.

Invariants:
    - Only sources that are storable, keyed, parameterless and declare
      both the select and node capabilities are considered
    - At most one handler per shape; shapes exposed by several sources are
      skipped with a warning
    - At most one handler per type name; a later shape inflecting to a
      taken name is skipped with a warning
    - Shapes without a primary key never get a handler
    - The identifier token is fixed when the handler is registered

How to change safely:
    - Any change to identifier selection invalidates issued node IDs;
      gate it behind a build option like the legacy naming switch
"""

from __future__ import annotations

import logging
from typing import Iterable

from ..codec import BASE64_JSON
from ..config import Settings
from ..inflection import Inflector
from ..schema.registry import NodeIdHandler, NodeIdHandlerRegistry
from ..schema.types import NODE_ID_CAPABILITIES, EntityShape, EntitySource
from .plans import is_safe_identifier, make_decode_plan, make_encode_plan, make_match

logger = logging.getLogger(__name__)


def is_node_eligible(source: EntitySource) -> bool:
    """Whether a source can back node identification at all."""
    if source.shape.is_anonymous:
        return False
    if not source.shape.columns:
        return False
    if source.parameters is not None:
        return False
    if not source.uniques:
        return False
    return source.has_capabilities(NODE_ID_CAPABILITIES)


def group_by_shape(sources: Iterable[EntitySource]) -> dict[EntityShape, list[EntitySource]]:
    """Group sources by the shape they produce, in first-seen order."""
    groups: dict[EntityShape, list[EntitySource]] = {}
    for source in sources:
        groups.setdefault(source.shape, []).append(source)
    return groups


def node_identifier(
    source: EntitySource,
    type_name: str,
    settings: Settings,
    inflector: Inflector,
) -> str:
    """Token stored first in every node tuple for this source."""
    if settings.v4_use_table_name_for_node_identifier and source.original_name:
        return inflector.pluralize(source.original_name)
    return type_name


def build_handler(
    source: EntitySource,
    type_name: str,
    identifier: str,
) -> NodeIdHandler | None:
    """Build the handler for a source, or None when it has no primary key."""
    primary_key = source.primary_key
    if primary_key is None:
        return None
    pk = primary_key.columns

    fast = is_safe_identifier(identifier) and all(is_safe_identifier(c) for c in pk)

    def get(spec: dict):
        if source.getter is None:
            raise LookupError(f"Entity source '{source.name}' has no row getter")
        return source.getter(spec)

    return NodeIdHandler(
        type_name=type_name,
        codec_name=BASE64_JSON,
        identifier=identifier,
        key_columns=pk,
        encode=make_encode_plan(identifier, pk, fast=fast),
        decode_to_spec=make_decode_plan(pk, fast=fast),
        match=make_match(identifier),
        get=get,
        deprecation_reason=source.shape.deprecation or source.deprecated,
        fast_path=fast,
    )


def register_table_node_handlers(
    registry: NodeIdHandlerRegistry,
    sources: Iterable[EntitySource],
    *,
    settings: Settings | None = None,
    inflector: Inflector | None = None,
) -> list[NodeIdHandler]:
    """Register a node ID handler for every eligible entity shape.

    Args:
        registry: Registry of the schema build being assembled
        sources: Every entity source known to the build
        settings: Build options (defaults loaded from the environment)
        inflector: Naming rules (defaults to Inflector())

    Returns:
        Handlers registered, in registration order
    """
    settings = settings or Settings()
    inflector = inflector or Inflector()

    eligible = [s for s in sources if is_node_eligible(s)]
    registered: list[NodeIdHandler] = []
    owners: dict[str, EntityShape] = {}

    for shape, group in group_by_shape(eligible).items():
        type_name = inflector.table_type(shape)
        if len(group) != 1:
            logger.warning(
                f"Found multiple table sources for shape '{shape.qualified_name}' "
                f"({', '.join(s.name for s in group)}); node identification is "
                f"not supported for shapes exposed by more than one source"
            )
            continue

        source = group[0]
        identifier = node_identifier(source, type_name, settings, inflector)
        handler = build_handler(source, type_name, identifier)
        if handler is None:
            logger.debug(f"Skipping node ID for '{source.name}': no primary key")
            continue

        if type_name in registry:
            owner = owners.get(type_name)
            taken_by = f"shape '{owner.qualified_name}'" if owner else "an earlier registration"
            logger.warning(
                f"Skipping node ID for shape '{shape.qualified_name}': type name "
                f"'{type_name}' is already used by {taken_by}"
            )
            continue

        registry.register_handler(type_name, handler)
        owners[type_name] = shape
        registered.append(handler)

    return registered


def build_registry(
    sources: Iterable[EntitySource],
    settings: Settings | None = None,
    inflector: Inflector | None = None,
) -> NodeIdHandlerRegistry:
    """Run one schema build's registration pass and freeze the result.

    Example:
        >>> registry = build_registry(sources)
        >>> install_registry(registry)
    """
    registry = NodeIdHandlerRegistry()
    register_table_node_handlers(registry, sources, settings=settings, inflector=inflector)
    registry.freeze()
    return registry
