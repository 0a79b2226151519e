"""
Entity source descriptors consumed by the node identification layer.

This module defines the static metadata that schema introspection hands to
the registration pass:
- Capability: Behavior tags a source may declare
- UniqueConstraint: A unique key over one or more columns
- EntityShape: The row shape (output type) an entity source produces
- EntitySource: One queryable source of rows of a given shape

Invariants:
    - Descriptors are read-only; the registration pass never mutates them
    - Shapes are compared by value, so two sources built from equal shapes
      share a shape group
    - Unique constraint columns must be columns of the source's shape

How to change safely:
    - Add new capabilities at the end of the enum, never rename values
    - Keep to_dict()/from_dict() symmetric (getters are never serialized)

Example:
    >>> from nodeid.schema.types import EntityShape, EntitySource, UniqueConstraint
    >>> users = EntityShape(name="users", columns=("id", "email"))
    >>> source = EntitySource(
    ...     name="users",
    ...     shape=users,
    ...     uniques=(UniqueConstraint(columns=("id",), is_primary=True),),
    ...     capabilities=frozenset({Capability.SELECT, Capability.NODE}),
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any, Callable


class Capability(Enum):
    """Behavior tags an entity source or shape can declare."""

    SELECT = "select"
    NODE = "node"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    JWT = "jwt"  # Shape is serialized as a signed claims token

    @classmethod
    def from_str(cls, value: str) -> Capability:
        """Convert string representation to Capability.

        Args:
            value: Tag name (e.g. "select")

        Returns:
            Corresponding Capability enum value

        Raises:
            ValueError: If value is not a known capability
        """
        for capability in cls:
            if capability.value == value:
                return capability
        valid = [c.value for c in cls]
        raise ValueError(f"Invalid capability '{value}'. Valid capabilities: {valid}")


# Both tags are needed before a source can be identified by node ID
NODE_ID_CAPABILITIES = frozenset({Capability.SELECT, Capability.NODE})


def _capabilities_from(values: Any) -> frozenset[Capability]:
    return frozenset(
        v if isinstance(v, Capability) else Capability.from_str(v) for v in values or ()
    )


@dataclass(frozen=True)
class UniqueConstraint:
    """A unique key of an entity source.

    Attributes:
        columns: Ordered column names forming the key
        is_primary: Whether this is the primary key
    """

    columns: tuple[str, ...]
    is_primary: bool = False

    def __post_init__(self) -> None:
        if not self.columns:
            raise ValueError("Unique constraint must have at least one column")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {"columns": list(self.columns)}
        if self.is_primary:
            result["is_primary"] = True
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UniqueConstraint:
        """Create from dictionary representation."""
        return cls(
            columns=tuple(data["columns"]),
            is_primary=data.get("is_primary", False),
        )


@dataclass(frozen=True)
class EntityShape:
    """The structural output type of an entity source.

    Several sources (a table and a view over it, say) may produce the same
    shape; the shape is what maps to one output object type.

    Attributes:
        name: Name of the underlying type (usually the table name)
        columns: Ordered column names
        namespace: Schema the type lives in
        is_anonymous: True for ad-hoc record types with no storable identity
        type_name: Explicit output type name (overrides inflection)
        deprecation: Deprecation reason declared on the type
        capabilities: Behavior tags declared on the type itself
    """

    name: str
    columns: tuple[str, ...] = dataclass_field(default_factory=tuple)
    namespace: str = "public"
    is_anonymous: bool = False
    type_name: str | None = None
    deprecation: str | None = None
    capabilities: frozenset[Capability] = dataclass_field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Entity shape name cannot be empty")
        if len(self.columns) != len(set(self.columns)):
            raise ValueError(f"Duplicate column name in shape '{self.name}'")

    @property
    def qualified_name(self) -> str:
        """Namespace-qualified name, e.g. 'public.users'."""
        return f"{self.namespace}.{self.name}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "name": self.name,
            "namespace": self.namespace,
            "columns": list(self.columns),
        }
        if self.is_anonymous:
            result["is_anonymous"] = True
        if self.type_name:
            result["type_name"] = self.type_name
        if self.deprecation:
            result["deprecation"] = self.deprecation
        if self.capabilities:
            result["capabilities"] = sorted(c.value for c in self.capabilities)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EntityShape:
        """Create from dictionary representation."""
        return cls(
            name=data["name"],
            columns=tuple(data.get("columns", ())),
            namespace=data.get("namespace", "public"),
            is_anonymous=data.get("is_anonymous", False),
            type_name=data.get("type_name"),
            deprecation=data.get("deprecation"),
            capabilities=_capabilities_from(data.get("capabilities")),
        )


RowGetter = Callable[[dict[str, Any]], Any]


@dataclass(frozen=True)
class EntitySource:
    """A queryable source of rows of one shape.

    Attributes:
        name: Source name (unique within the schema build)
        shape: The shape of rows this source yields
        uniques: Unique constraints, primary key among them
        parameters: Parameter names for function-like sources (None for tables)
        capabilities: Declared behavior tags
        original_name: Name before any smart-tag renaming
        deprecated: Deprecation reason declared on the source
        getter: Fetches one row by key spec; may return an awaitable

    Example:
        >>> source.getter({"id": 1})
        {'id': 1, 'email': 'alice@example.com'}
    """

    name: str
    shape: EntityShape
    uniques: tuple[UniqueConstraint, ...] = dataclass_field(default_factory=tuple)
    parameters: tuple[str, ...] | None = None
    capabilities: frozenset[Capability] = dataclass_field(default_factory=frozenset)
    original_name: str | None = None
    deprecated: str | None = None
    getter: RowGetter | None = dataclass_field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Entity source name cannot be empty")
        known = set(self.shape.columns)
        for unique in self.uniques:
            missing = [c for c in unique.columns if c not in known]
            if missing:
                raise ValueError(
                    f"Unique constraint on source '{self.name}' references "
                    f"unknown columns {missing}"
                )

    @property
    def primary_key(self) -> UniqueConstraint | None:
        """The unique constraint marked primary, if any."""
        for unique in self.uniques:
            if unique.is_primary:
                return unique
        return None

    def has_capabilities(self, required: frozenset[Capability]) -> bool:
        """Whether the source declares every required tag."""
        return required <= self.capabilities

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation (the getter is omitted)."""
        result: dict[str, Any] = {
            "name": self.name,
            "shape": self.shape.to_dict(),
            "uniques": [u.to_dict() for u in self.uniques],
            "capabilities": sorted(c.value for c in self.capabilities),
        }
        if self.parameters is not None:
            result["parameters"] = list(self.parameters)
        if self.original_name:
            result["original_name"] = self.original_name
        if self.deprecated:
            result["deprecated"] = self.deprecated
        return result

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        getter: RowGetter | None = None,
    ) -> EntitySource:
        """Create from dictionary representation.

        Args:
            data: Dictionary as produced by to_dict()
            getter: Optional row getter to attach

        Returns:
            EntitySource instance
        """
        parameters = data.get("parameters")
        return cls(
            name=data["name"],
            shape=EntityShape.from_dict(data["shape"]),
            uniques=tuple(UniqueConstraint.from_dict(u) for u in data.get("uniques", [])),
            parameters=tuple(parameters) if parameters is not None else None,
            capabilities=_capabilities_from(data.get("capabilities")),
            original_name=data.get("original_name"),
            deprecated=data.get("deprecated"),
            getter=getter,
        )
