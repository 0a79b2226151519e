"""
nodeid - Global object identification for table-backed graph schemas.

This package assigns every queryable row a stable, opaque, globally unique
identifier and resolves such identifiers back to rows:
- Entity source descriptors are handed in by schema introspection
- One node ID handler is registered per eligible output type
- Identifiers are base64 JSON tuples: [identifier, *primary_key]
- A resolver dispatches identifiers to the handler that owns them
- Claims records are signed into JSON Web Tokens

Invariants:
    - Handler registries are built once per schema build and never mutated
      after being installed
    - Identifier tokens are fixed per build; changing them invalidates all
      previously issued node IDs
    - Unresolvable identifiers resolve to None, whatever the reason

How to change safely:
    - Treat the identifier encoding as a wire format
    - Gate identifier changes behind build options
"""

from ._version import __version__

__all__ = ["__version__"]
