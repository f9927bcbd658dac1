"""Render structured settings as a niri KDL configuration file."""

from nirikdl.kdl import (
    CyclicStructureError,
    InvalidReservedKeyError,
    KdlConversionError,
    UnsupportedAttributeTypeError,
    UnsupportedLiteralTypeError,
    encode_literal,
    render,
    render_config,
)

__version__ = "0.1.0"

__all__ = [
    "CyclicStructureError",
    "InvalidReservedKeyError",
    "KdlConversionError",
    "UnsupportedAttributeTypeError",
    "UnsupportedLiteralTypeError",
    "__version__",
    "encode_literal",
    "render",
    "render_config",
]
