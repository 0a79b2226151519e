"""
Unit tests for entity source descriptors.

Tests cover:
- Capability parsing
- UniqueConstraint, EntityShape and EntitySource validation
- Primary key lookup and capability checks
- Descriptor serialization/deserialization
"""

import pytest

from nodeid.schema.types import (
    NODE_ID_CAPABILITIES,
    Capability,
    EntityShape,
    EntitySource,
    UniqueConstraint,
)


class TestCapability:
    """Tests for Capability."""

    def test_from_str(self):
        """Known tags parse to their enum value."""
        assert Capability.from_str("select") is Capability.SELECT
        assert Capability.from_str("node") is Capability.NODE

    def test_from_str_unknown_raises(self):
        """Unknown tags raise ValueError listing valid tags."""
        with pytest.raises(ValueError, match="Invalid capability 'nodes'"):
            Capability.from_str("nodes")

    def test_node_id_capabilities(self):
        """Node identification needs select and node."""
        assert NODE_ID_CAPABILITIES == {Capability.SELECT, Capability.NODE}


class TestUniqueConstraint:
    """Tests for UniqueConstraint."""

    def test_empty_columns_raises(self):
        """A unique constraint needs at least one column."""
        with pytest.raises(ValueError, match="at least one column"):
            UniqueConstraint(columns=())

    def test_to_dict_omits_defaults(self):
        """Non-primary constraints omit is_primary."""
        assert UniqueConstraint(columns=("email",)).to_dict() == {"columns": ["email"]}
        assert UniqueConstraint(columns=("id",), is_primary=True).to_dict() == {
            "columns": ["id"],
            "is_primary": True,
        }


class TestEntityShape:
    """Tests for EntityShape."""

    def test_empty_name_raises(self):
        """Shape name cannot be empty."""
        with pytest.raises(ValueError, match="name cannot be empty"):
            EntityShape(name="")

    def test_duplicate_columns_raises(self):
        """Column names must be unique."""
        with pytest.raises(ValueError, match="Duplicate column"):
            EntityShape(name="users", columns=("id", "id"))

    def test_qualified_name(self):
        """Qualified name includes the namespace."""
        assert EntityShape(name="users", namespace="app").qualified_name == "app.users"

    def test_equal_shapes_compare_equal(self):
        """Shapes built from the same metadata are the same shape."""
        a = EntityShape(name="users", columns=("id",))
        b = EntityShape(name="users", columns=("id",))
        assert a == b
        assert hash(a) == hash(b)


class TestEntitySource:
    """Tests for EntitySource."""

    @pytest.fixture
    def users(self):
        return EntityShape(name="users", columns=("id", "email"))

    def test_primary_key(self, users):
        """primary_key returns the unique marked primary."""
        pk = UniqueConstraint(columns=("id",), is_primary=True)
        source = EntitySource(
            name="users",
            shape=users,
            uniques=(UniqueConstraint(columns=("email",)), pk),
        )
        assert source.primary_key == pk

    def test_no_primary_key(self, users):
        """primary_key is None without a primary unique."""
        source = EntitySource(
            name="users", shape=users, uniques=(UniqueConstraint(columns=("email",)),)
        )
        assert source.primary_key is None

    def test_unique_on_unknown_column_raises(self, users):
        """Unique columns must exist on the shape."""
        with pytest.raises(ValueError, match="unknown columns"):
            EntitySource(
                name="users",
                shape=users,
                uniques=(UniqueConstraint(columns=("uuid",), is_primary=True),),
            )

    def test_has_capabilities(self, users):
        """Both required tags must be declared on the source."""
        only_select = EntitySource(
            name="users", shape=users, capabilities=frozenset({Capability.SELECT})
        )
        both = EntitySource(name="users", shape=users, capabilities=NODE_ID_CAPABILITIES)

        assert not only_select.has_capabilities(NODE_ID_CAPABILITIES)
        assert both.has_capabilities(NODE_ID_CAPABILITIES)

    def test_from_dict(self):
        """Source can be loaded from its dictionary form."""
        data = {
            "name": "users",
            "shape": {"name": "users", "columns": ["id", "email"], "deprecation": "Use accounts"},
            "uniques": [{"columns": ["id"], "is_primary": True}],
            "capabilities": ["select", "node"],
            "original_name": "user",
        }

        source = EntitySource.from_dict(data)

        assert source.shape.columns == ("id", "email")
        assert source.shape.deprecation == "Use accounts"
        assert source.primary_key.columns == ("id",)
        assert source.capabilities == NODE_ID_CAPABILITIES
        assert source.original_name == "user"
        assert source.parameters is None
        assert source.getter is None

    def test_to_dict_excludes_getter(self, users):
        """Getters are not part of the serialized form."""
        source = EntitySource(
            name="users",
            shape=users,
            uniques=(UniqueConstraint(columns=("id",), is_primary=True),),
            capabilities=NODE_ID_CAPABILITIES,
            getter=lambda spec: None,
        )

        d = source.to_dict()

        assert "getter" not in d
        assert d["capabilities"] == ["node", "select"]
        assert EntitySource.from_dict(d) == source
