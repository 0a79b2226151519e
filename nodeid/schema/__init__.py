"""
Schema module for node identification.

This module provides:
- Entity source descriptors (EntitySource, EntityShape, UniqueConstraint)
- Capability tags used for eligibility checks
- Node ID handler registry

Invariants:
    - Descriptors are static metadata; they never change during a build
    - One handler per output type name
    - Registries are frozen before serving and replaced, never patched

How to change safely:
    - Add new descriptor attributes with defaults
    - Keep handler metadata (to_dict) stable; it feeds the fingerprint
"""

from .registry import (
    DuplicateRegistrationError,
    NodeIdHandler,
    NodeIdHandlerRegistry,
    RegistryFrozenError,
    get_registry,
    install_registry,
    reset_registry,
)
from .types import (
    NODE_ID_CAPABILITIES,
    Capability,
    EntityShape,
    EntitySource,
    UniqueConstraint,
)

__all__ = [
    # Types
    "Capability",
    "NODE_ID_CAPABILITIES",
    "EntityShape",
    "EntitySource",
    "UniqueConstraint",
    # Registry
    "NodeIdHandler",
    "NodeIdHandlerRegistry",
    "get_registry",
    "install_registry",
    "reset_registry",
    "RegistryFrozenError",
    "DuplicateRegistrationError",
]
