"""
Node identification for table-backed entity sources.

This module provides:
- Registration of node ID handlers from entity source descriptors
- Encode/decode plans mapping rows to node tuples and back
- Resolution of opaque identifiers to rows

Invariants:
    - Registration is a pure function of the sources and build options
    - decode_to_spec(encode(row)[1:]) reproduces the row's primary key
    - Unresolvable identifiers resolve to None, never raise

How to change safely:
    - Keep encode/decode plans exact inverses
    - Treat identifier selection as a wire format
"""

from .plans import is_safe_identifier, make_decode_plan, make_encode_plan, make_match
from .resolver import NodeResolver, resolve_by_id
from .table_node import (
    build_handler,
    build_registry,
    group_by_shape,
    is_node_eligible,
    register_table_node_handlers,
)

__all__ = [
    # Registration
    "register_table_node_handlers",
    "build_registry",
    "build_handler",
    "group_by_shape",
    "is_node_eligible",
    # Plans
    "is_safe_identifier",
    "make_encode_plan",
    "make_decode_plan",
    "make_match",
    # Resolution
    "NodeResolver",
    "resolve_by_id",
]
