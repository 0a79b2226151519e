"""
Unit tests for the node ID CLI.

Tests cover:
- Loading entity sources from YAML and JSON
- handlers, encode and decode commands
- Logging setup
"""

import json
import logging

import json_log_formatter
import pytest

from nodeid.config import Settings
from nodeid.tools.nodeid_cli import (
    NodeIdCLI,
    load_sources,
    main,
    parse_key_value,
    setup_logging,
)

SOURCES_YAML = """
sources:
  - name: users
    original_name: user
    shape:
      name: users
      columns: [id, email]
    uniques:
      - columns: [id]
        is_primary: true
    capabilities: [select, node]
  - name: memberships
    shape:
      name: memberships
      columns: [org_id, user_id]
    uniques:
      - columns: [org_id, user_id]
        is_primary: true
    capabilities: [select, node]
  - name: audit_log
    shape:
      name: audit_log
      columns: [ts, message]
    uniques:
      - columns: [ts]
    capabilities: [select]
"""


@pytest.fixture
def sources_file(tmp_path):
    path = tmp_path / "sources.yaml"
    path.write_text(SOURCES_YAML)
    return str(path)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging replaces root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestLoadSources:
    """Tests for load_sources."""

    def test_load_yaml(self, sources_file):
        """YAML source files load into descriptors."""
        sources = load_sources(sources_file)

        assert [s.name for s in sources] == ["users", "memberships", "audit_log"]
        assert sources[0].original_name == "user"
        assert sources[1].primary_key.columns == ("org_id", "user_id")

    def test_load_json(self, tmp_path):
        """JSON files are accepted too."""
        path = tmp_path / "sources.json"
        path.write_text(json.dumps({"sources": [{"name": "t", "shape": {"name": "t", "columns": ["id"]}}]}))

        sources = load_sources(str(path))

        assert sources[0].shape.columns == ("id",)

    def test_missing_sources_key(self, tmp_path):
        """Files without a sources list are rejected."""
        path = tmp_path / "empty.yaml"
        path.write_text("tables: []\n")

        with pytest.raises(ValueError, match="'sources' list"):
            load_sources(str(path))


class TestNodeIdCLI:
    """Tests for NodeIdCLI."""

    @pytest.fixture
    def cli(self, settings):
        return NodeIdCLI(settings)

    def test_handlers(self, cli, sources_file):
        """Only eligible sources with primary keys are listed."""
        output = cli.handlers(cli.build(load_sources(sources_file)))

        assert output["fingerprint"].startswith("sha256:")
        assert [h["type_name"] for h in output["handlers"]] == ["User", "Membership"]

    def test_encode_decode(self, cli, sources_file):
        """encode and decode are inverses."""
        registry = cli.build(load_sources(sources_file))

        node_id = cli.encode(registry, "Membership", [1, "u-2"])

        assert cli.decode(node_id) == ["Membership", 1, "u-2"]

    def test_encode_wrong_key_count(self, cli, sources_file):
        """The number of key values must match the key columns."""
        registry = cli.build(load_sources(sources_file))
        with pytest.raises(ValueError, match="got 1 value"):
            cli.encode(registry, "Membership", [1])

    def test_encode_unknown_type(self, cli, sources_file):
        """Unknown types raise KeyError."""
        registry = cli.build(load_sources(sources_file))
        with pytest.raises(KeyError):
            cli.encode(registry, "AuditLog", [1])


class TestMain:
    """Tests for the command-line entry point."""

    def test_handlers_json(self, sources_file, capsys):
        """handlers --format json prints registry metadata."""
        assert main(["handlers", "--sources", sources_file, "--format", "json"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["handlers"][0]["identifier"] == "User"

    def test_handlers_legacy_names(self, sources_file, capsys):
        """--legacy-names switches to pluralized original names."""
        assert main(["handlers", "-s", sources_file, "--legacy-names", "--format", "json"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["handlers"][0]["identifier"] == "users"

    def test_handlers_text(self, sources_file, capsys):
        """Text output lists each handler."""
        assert main(["handlers", "-s", sources_file]) == 0

        out = capsys.readouterr().out
        assert "Fingerprint: sha256:" in out
        assert "User: identifier=User keys=(id)" in out

    def test_encode(self, sources_file, capsys):
        """encode prints the node ID."""
        assert main(["encode", "-s", sources_file, "--type", "User", "1"]) == 0
        assert capsys.readouterr().out.strip() == "WyJVc2VyIiwxXQ=="

    def test_encode_unknown_type(self, sources_file, capsys):
        """Unknown types exit non-zero."""
        assert main(["encode", "-s", sources_file, "--type", "Nope", "1"]) == 1
        assert "No node ID handler" in capsys.readouterr().err

    def test_decode(self, capsys):
        """decode prints the tuple as JSON."""
        assert main(["decode", "WyJVc2VyIiwxXQ=="]) == 0
        assert json.loads(capsys.readouterr().out) == ["User", 1]

    def test_decode_malformed(self, capsys):
        """Malformed ids exit non-zero."""
        assert main(["decode", "not-an-id"]) == 1
        assert "Error" in capsys.readouterr().err


class TestHelpers:
    """Tests for helper functions."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("1", 1), ("1.5", 1.5), ('"1"', "1"), ("abc", "abc"), ("true", True)],
    )
    def test_parse_key_value(self, raw, expected):
        """Key values are parsed as JSON when possible."""
        assert parse_key_value(raw) == expected

    def test_setup_logging_json(self):
        """json log format installs the JSON formatter."""
        setup_logging(Settings(_env_file=None, log_format="json", log_level="DEBUG"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)

    def test_setup_logging_text(self):
        """text log format installs a plain formatter."""
        setup_logging(Settings(_env_file=None, log_format="text", log_level="WARNING"))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)
