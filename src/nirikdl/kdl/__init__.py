"""Settings → KDL serializer."""

from nirikdl.kdl.attributes import convert_attribute, is_flat
from nirikdl.kdl.document import (
    append_extra_config,
    count_top_level_nodes,
    render,
    render_config,
)
from nirikdl.kdl.errors import (
    CyclicStructureError,
    InvalidReservedKeyError,
    KdlConversionError,
    UnsupportedAttributeTypeError,
    UnsupportedLiteralTypeError,
)
from nirikdl.kdl.literals import encode_literal, is_scalar
from nirikdl.kdl.nodes import NodeBody, compose_node

__all__ = [
    "CyclicStructureError",
    "InvalidReservedKeyError",
    "KdlConversionError",
    "NodeBody",
    "UnsupportedAttributeTypeError",
    "UnsupportedLiteralTypeError",
    "append_extra_config",
    "compose_node",
    "convert_attribute",
    "count_top_level_nodes",
    "encode_literal",
    "is_flat",
    "is_scalar",
    "render",
    "render_config",
]
