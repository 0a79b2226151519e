"""
Naming rules used when registering node ID handlers.

Only two rules matter to node identification: the canonical output type
name for a shape, and the pluralization used by the legacy identifier
scheme. Callers may pass any object providing both methods.
"""

from __future__ import annotations

import inflection

from .schema.types import EntityShape


class Inflector:
    """Default naming rules backed by the ``inflection`` library.

    Example:
        >>> inflector = Inflector()
        >>> inflector.table_type(EntityShape(name="user_accounts"))
        'UserAccount'
        >>> inflector.pluralize("person")
        'people'
    """

    def table_type(self, shape: EntityShape) -> str:
        """Output type name for a shape (explicit type_name wins)."""
        if shape.type_name:
            return shape.type_name
        return inflection.camelize(inflection.singularize(shape.name))

    def pluralize(self, name: str) -> str:
        return inflection.pluralize(name)
