"""
Shared fixtures for nodeid unit tests.
"""

import pytest

from nodeid.config import Settings
from nodeid.schema.registry import reset_registry


@pytest.fixture(autouse=True)
def clean_registry():
    """Start and end every test without an installed registry."""
    reset_registry()
    yield
    reset_registry()


@pytest.fixture
def settings():
    """Default build settings, independent of the environment."""
    return Settings(_env_file=None, v4_use_table_name_for_node_identifier=False)


@pytest.fixture
def legacy_settings():
    """Build settings with legacy table-name identifiers enabled."""
    return Settings(_env_file=None, v4_use_table_name_for_node_identifier=True)
