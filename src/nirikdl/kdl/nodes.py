"""Node composer: turns a mapping into a KDL node with args, props and children."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from nirikdl.kdl.attributes import (
    AttrPath,
    attribute_lines,
    dotted,
    is_sequence,
    literal_at,
)
from nirikdl.kdl.errors import InvalidReservedKeyError
from nirikdl.kdl.literals import is_scalar

ARGS_KEY = "_args"
PROPS_KEY = "_props"
CHILDREN_KEY = "_children"
RESERVED_KEYS = frozenset({ARGS_KEY, PROPS_KEY, CHILDREN_KEY})

INDENT = "\t"


class NodeBody(BaseModel):
    """A node body with the reserved keys split out into typed fields.

    ``ordered_children`` keeps the author's explicit order; ``extra`` holds
    the remaining keys, rendered after the ordered children.
    """

    model_config = ConfigDict(frozen=True)

    args: list[Any] = Field(default_factory=list)
    props: dict[str, Any] = Field(default_factory=dict)
    ordered_children: list[tuple[str, Any]] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, body: Mapping[str, Any], *, path: AttrPath = ()) -> "NodeBody":
        """Split reserved keys out of ``body``, checking their shapes."""
        where = dotted(path) or None
        args: list[Any] = []
        props: dict[str, Any] = {}
        ordered: list[tuple[str, Any]] = []

        if ARGS_KEY in body:
            raw_args = body[ARGS_KEY]
            if not is_sequence(raw_args):
                raise InvalidReservedKeyError(
                    ARGS_KEY, f"expected a list of literals, got {type(raw_args).__name__}", path=where
                )
            for i, arg in enumerate(raw_args):
                if not is_scalar(arg):
                    raise InvalidReservedKeyError(
                        ARGS_KEY, f"element {i} is a {type(arg).__name__}, not a literal", path=where
                    )
            args = list(raw_args)

        if PROPS_KEY in body:
            raw_props = body[PROPS_KEY]
            if not isinstance(raw_props, Mapping):
                raise InvalidReservedKeyError(
                    PROPS_KEY, f"expected a mapping of literals, got {type(raw_props).__name__}", path=where
                )
            for key, value in raw_props.items():
                if not is_scalar(value):
                    raise InvalidReservedKeyError(
                        PROPS_KEY, f"property `{key}` is a {type(value).__name__}, not a literal", path=where
                    )
                props[str(key)] = value

        if CHILDREN_KEY in body:
            raw_children = body[CHILDREN_KEY]
            if not is_sequence(raw_children):
                raise InvalidReservedKeyError(
                    CHILDREN_KEY, f"expected a list of single-entry mappings, got {type(raw_children).__name__}",
                    path=where,
                )
            for i, child in enumerate(raw_children):
                if not isinstance(child, Mapping):
                    raise InvalidReservedKeyError(
                        CHILDREN_KEY, f"element {i} is a {type(child).__name__}, not a mapping", path=where
                    )
                if len(child) != 1:
                    raise InvalidReservedKeyError(
                        CHILDREN_KEY, f"element {i} has {len(child)} keys, expected exactly one", path=where
                    )
                ((child_name, child_value),) = child.items()
                ordered.append((str(child_name), child_value))

        extra = {str(key): value for key, value in body.items() if key not in RESERVED_KEYS}
        return cls(args=args, props=props, ordered_children=ordered, extra=extra)

    @property
    def children(self) -> list[tuple[str, Any]]:
        """Ordered children first, then the remaining keys in mapping order."""
        return [*self.ordered_children, *self.extra.items()]


def node_lines(
    name: str,
    body: Mapping[str, Any],
    *,
    path: AttrPath,
    ancestors: frozenset[int] = frozenset(),
) -> list[str]:
    """Render ``body`` as the node ``name``, one list entry per output line."""
    node = NodeBody.from_mapping(body, path=path)

    header = [name]
    header.extend(literal_at(arg, path) for arg in node.args)
    header.extend(f"{key}={literal_at(value, (*path, key))}" for key, value in node.props.items())

    children: list[str] = []
    for child_name, child_value in node.children:
        children.extend(
            attribute_lines(child_name, child_value, path=(*path, child_name), ancestors=ancestors)
        )

    if not children:
        return [" ".join(header)]
    return [
        " ".join([*header, "{"]),
        *(INDENT + line for line in children),
        "}",
    ]


def compose_node(name: str, body: Mapping[str, Any]) -> str:
    """Render a mapping as a single KDL node (with nested block if it has children)."""
    return "\n".join(node_lines(name, body, path=(name,), ancestors=frozenset({id(body)})))
