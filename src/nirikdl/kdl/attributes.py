"""Attribute classifier: picks the encoding for a ``(name, value)`` pair.

Rules, dispatched on the runtime type of the value:

- scalar → ``name <literal>``
- mapping → a node, composed by :mod:`nirikdl.kdl.nodes`
- flat sequence (no mapping/sequence elements) → ``name v1 v2 ... vn``
- any other sequence → one sibling block per element, each classified again
  under the same name
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from nirikdl.kdl.errors import (
    CyclicStructureError,
    UnsupportedAttributeTypeError,
    UnsupportedLiteralTypeError,
)
from nirikdl.kdl.literals import encode_literal, is_scalar

AttrPath = tuple[str, ...]


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_flat(items: list | tuple) -> bool:
    """A sequence is flat when none of its elements is a mapping or a sequence."""
    return not any(isinstance(item, Mapping) or is_sequence(item) for item in items)


def dotted(path: AttrPath) -> str:
    return ".".join(path)


def literal_at(value: Any, path: AttrPath) -> str:
    """``encode_literal`` that records where a bad value was found."""
    try:
        return encode_literal(value)
    except UnsupportedLiteralTypeError as exc:
        exc.path = dotted(path)
        raise


def attribute_lines(
    name: str,
    value: Any,
    *,
    path: AttrPath,
    ancestors: frozenset[int] = frozenset(),
) -> list[str]:
    """Render one attribute as a list of output lines.

    ``path`` locates ``value`` in the input for error messages.
    ``ancestors`` holds the ids of the containers enclosing ``value``.
    """
    if is_scalar(value):
        return [f"{name} {literal_at(value, path)}"]

    if isinstance(value, Mapping) or is_sequence(value):
        if id(value) in ancestors:
            raise CyclicStructureError(name, path=dotted(path))
        ancestors = ancestors | {id(value)}

    if isinstance(value, Mapping):
        from nirikdl.kdl.nodes import node_lines

        return node_lines(name, value, path=path, ancestors=ancestors)

    if is_sequence(value):
        if is_flat(value):
            return [" ".join([name, *(literal_at(item, path) for item in value)])]
        lines: list[str] = []
        for i, item in enumerate(value):
            item_path = (*path[:-1], f"{path[-1]}[{i}]")
            lines.extend(attribute_lines(name, item, path=item_path, ancestors=ancestors))
        return lines

    raise UnsupportedAttributeTypeError(name, value, path=dotted(path))


def convert_attribute(name: str, value: Any) -> str:
    """Render a single attribute (possibly several sibling nodes) as text."""
    return "\n".join(attribute_lines(name, value, path=(name,)))
