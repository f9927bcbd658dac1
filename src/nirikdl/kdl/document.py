"""Document assembler: renders a whole settings mapping as a KDL document."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from nirikdl.kdl.attributes import attribute_lines
from nirikdl.kdl.errors import UnsupportedAttributeTypeError
from nirikdl.kdl.nodes import INDENT


def document_lines(root: Mapping[str, Any]) -> list[str]:
    if not isinstance(root, Mapping):
        raise UnsupportedAttributeTypeError("<root>", root)
    ancestors = frozenset({id(root)})
    lines: list[str] = []
    for key, value in root.items():
        lines.extend(attribute_lines(str(key), value, path=(str(key),), ancestors=ancestors))
    return lines


def render(root: Mapping[str, Any]) -> str:
    """Render ``root`` as KDL text. Every entry becomes a top-level node.

    The result always ends with a newline; an empty mapping renders as ``"\\n"``.
    """
    return "\n".join(document_lines(root)) + "\n"


def append_extra_config(document: str, extra_config: str = "") -> str:
    """Append hand-written KDL verbatim after a blank separator line."""
    if extra_config:
        return document + "\n" + extra_config
    return document


def render_config(settings: Mapping[str, Any], extra_config: str = "") -> str:
    return append_extra_config(render(settings), extra_config)


def count_top_level_nodes(document: str) -> int:
    """Nodes opened at column zero of a rendered document.

    A non-flat list at the root contributes one node per element.
    """
    return sum(
        1 for line in document.splitlines()
        if line and not line.startswith(INDENT) and line != "}"
    )
