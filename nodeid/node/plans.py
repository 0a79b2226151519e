"""
Encode and decode plans for table node identifiers.

A node tuple is ``[identifier, key_0, ..., key_n]`` where the key values are
read from a row in primary key column order. The decode plan maps the key
values (tuple positions 1..n) back onto the same column names.

Two implementations exist for each plan. The generic one loops over the key
columns on every call. The fast one binds an ``operator.itemgetter`` (or a
zip) once at registration and is only selected when the identifier and
every key column are plain identifiers. Callers cannot tell them apart.
"""

from __future__ import annotations

import re
from operator import itemgetter
from typing import Any, Callable, Sequence

from ..codec import NodeIdDecodeError

_SAFE_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

EncodePlan = Callable[[Any], list[Any]]
DecodePlan = Callable[[Sequence[Any]], dict[str, Any]]


def is_safe_identifier(name: str) -> bool:
    """Whether a name needs no quoting or escaping (``[A-Za-z_][A-Za-z0-9_]*``)."""
    return bool(_SAFE_IDENTIFIER.match(name))


def make_encode_plan(
    identifier: str,
    key_columns: Sequence[str],
    fast: bool = False,
) -> EncodePlan:
    """Build row -> node tuple.

    Args:
        identifier: Token placed first in every tuple
        key_columns: Primary key columns in declaration order
        fast: Use the specialized itemgetter plan

    Returns:
        Function mapping a row mapping to ``[identifier, *key_values]``
    """
    columns = tuple(key_columns)

    if fast:
        getter = itemgetter(*columns)
        if len(columns) == 1:
            return lambda row: [identifier, getter(row)]
        return lambda row: [identifier, *getter(row)]

    def encode(row: Any) -> list[Any]:
        values = [identifier]
        for column in columns:
            values.append(row[column])
        return values

    return encode


def make_decode_plan(key_columns: Sequence[str], fast: bool = False) -> DecodePlan:
    """Build key values -> key spec.

    Args:
        key_columns: Primary key columns in declaration order
        fast: Use the specialized zip plan

    Returns:
        Function mapping ``tuple[1:]`` to ``{column: value}``. Raises
        NodeIdDecodeError when fewer values than key columns are given.
    """
    columns = tuple(key_columns)
    count = len(columns)

    if fast:
        def decode_fast(values: Sequence[Any]) -> dict[str, Any]:
            if len(values) < count:
                raise NodeIdDecodeError(f"Expected {count} key values, got {len(values)}")
            return dict(zip(columns, values))

        return decode_fast

    def decode(values: Sequence[Any]) -> dict[str, Any]:
        if len(values) < count:
            raise NodeIdDecodeError(f"Expected {count} key values, got {len(values)}")
        spec: dict[str, Any] = {}
        for index, column in enumerate(columns):
            spec[column] = values[index]
        return spec

    return decode


def make_match(identifier: str) -> Callable[[Sequence[Any]], bool]:
    """Build the predicate accepting tuples whose first element is identifier."""

    def match(node_tuple: Sequence[Any]) -> bool:
        return len(node_tuple) > 0 and node_tuple[0] == identifier

    return match
