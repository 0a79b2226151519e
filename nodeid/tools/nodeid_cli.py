"""
Node ID CLI tool.

This tool inspects node identification for a set of entity sources:
- handlers: Show the handlers a schema build would register
- encode: Produce the node ID for a row's primary key
- decode: Show the tuple inside a node ID

Usage:
    nodeid handlers --sources sources.yaml
    nodeid encode --sources sources.yaml --type User 42
    nodeid decode WyJVc2VyIiw0Ml0=

Source files are YAML (or JSON) with a top-level ``sources`` list of
entity source descriptors in EntitySource.to_dict() form.

Invariants:
    - Output of handlers --format json is deterministic (sorted keys)
    - Malformed ids and unknown types exit non-zero
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

import json_log_formatter
import yaml

from ..codec import BASE64_JSON, NodeIdDecodeError, get_codec
from ..config import Settings
from ..node import NodeResolver, build_registry
from ..schema import EntitySource, NodeIdHandlerRegistry

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure logging based on configuration.

    Args:
        settings: Node ID settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


def load_sources(path: str) -> list[EntitySource]:
    """Load entity source descriptors from a YAML or JSON file.

    Raises:
        ValueError: If the file has no 'sources' list
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    sources = data.get("sources") if isinstance(data, dict) else None
    if not isinstance(sources, list):
        raise ValueError(f"{path}: expected a top-level 'sources' list")
    return [EntitySource.from_dict(s) for s in sources]


def parse_key_value(raw: str) -> Any:
    """Interpret a command-line key value as JSON, falling back to the raw string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class NodeIdCLI:
    """CLI commands for node identification.

    Example:
        >>> cli = NodeIdCLI(settings)
        >>> registry = cli.build(sources)
        >>> cli.encode(registry, "User", [42])
        'WyJVc2VyIiw0Ml0='
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def build(self, sources: list[EntitySource]) -> NodeIdHandlerRegistry:
        return build_registry(sources, settings=self.settings)

    def handlers(self, registry: NodeIdHandlerRegistry) -> dict[str, Any]:
        """Registry metadata plus fingerprint."""
        return {"fingerprint": registry.fingerprint, **registry.to_dict()}

    def encode(self, registry: NodeIdHandlerRegistry, type_name: str, key_values: list[Any]) -> str:
        """Node ID for the given primary key values.

        Raises:
            KeyError: If type_name has no handler
            ValueError: If the number of key values is wrong
        """
        handler = registry.get_handler(type_name)
        if handler is None:
            raise KeyError(f"No node ID handler registered for '{type_name}'")
        if len(key_values) != len(handler.key_columns):
            raise ValueError(
                f"{type_name} has key columns {list(handler.key_columns)}, "
                f"got {len(key_values)} value(s)"
            )
        row = dict(zip(handler.key_columns, key_values))
        return NodeResolver(registry).node_id_for(type_name, row)

    def decode(self, node_id: str) -> list[Any]:
        """Decoded node tuple.

        Raises:
            NodeIdDecodeError: If node_id is malformed
        """
        return get_codec(BASE64_JSON).decode(node_id)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the node ID tool."""
    parser = argparse.ArgumentParser(prog="nodeid", description="Node ID inspection tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # handlers command
    handlers_parser = subparsers.add_parser("handlers", help="Show registered node ID handlers")
    handlers_parser.add_argument("--sources", "-s", required=True, help="Entity sources file")
    handlers_parser.add_argument(
        "--legacy-names",
        action="store_true",
        help="Use pluralized original table names as identifiers",
    )
    handlers_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )

    # encode command
    encode_parser = subparsers.add_parser("encode", help="Encode a primary key as a node ID")
    encode_parser.add_argument("--sources", "-s", required=True, help="Entity sources file")
    encode_parser.add_argument("--type", "-t", required=True, dest="type_name", help="Type name")
    encode_parser.add_argument("--legacy-names", action="store_true")
    encode_parser.add_argument("keys", nargs="+", help="Primary key values in key order")

    # decode command
    decode_parser = subparsers.add_parser("decode", help="Decode a node ID")
    decode_parser.add_argument("node_id", help="Opaque node ID")

    args = parser.parse_args(argv)

    settings = Settings()
    if getattr(args, "legacy_names", False):
        settings = settings.model_copy(update={"v4_use_table_name_for_node_identifier": True})
    setup_logging(settings)
    cli = NodeIdCLI(settings)

    if args.command == "handlers":
        registry = cli.build(load_sources(args.sources))
        output = cli.handlers(registry)

        if args.format == "json":
            print(json.dumps(output, indent=2, sort_keys=True))
        else:
            print(f"Fingerprint: {output['fingerprint']}")
            if not output["handlers"]:
                print("No node ID handlers registered")
            for h in output["handlers"]:
                keys = ", ".join(h["key_columns"])
                print(f"  {h['type_name']}: identifier={h['identifier']} keys=({keys})")
        return 0

    if args.command == "encode":
        registry = cli.build(load_sources(args.sources))
        try:
            node_id = cli.encode(registry, args.type_name, [parse_key_value(k) for k in args.keys])
        except (KeyError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(node_id)
        return 0

    if args.command == "decode":
        try:
            decoded = cli.decode(args.node_id)
        except NodeIdDecodeError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(json.dumps(decoded))
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
