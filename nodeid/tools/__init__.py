"""
CLI tools for node identification.

This module provides command-line tools for:
- nodeid: Inspect handlers, encode and decode node IDs

Invariants:
    - Tools work offline from entity source files
"""

from .nodeid_cli import NodeIdCLI

__all__ = ["NodeIdCLI"]
