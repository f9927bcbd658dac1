"""Literal encoder: scalars to KDL literal tokens."""

from __future__ import annotations

import math
from typing import Any

from nirikdl.kdl.errors import UnsupportedLiteralTypeError

SCALAR_TYPES = (bool, int, float, str)


def is_scalar(value: Any) -> bool:
    """True for the five literal kinds: None, bool, int, float, str."""
    return value is None or isinstance(value, SCALAR_TYPES)


def sanitize_string(value: str) -> str:
    """Escape newlines and double quotes. Nothing else needs escaping."""
    return value.replace("\n", "\\n").replace('"', '\\"')


def encode_literal(value: Any) -> str:
    """Render a scalar as a KDL literal token.

    ``None`` becomes ``null``, booleans ``true``/``false``, numbers their
    canonical Python text and strings are double-quoted and escaped.
    ``nan`` and the infinities have no KDL token and raise
    ``UnsupportedLiteralTypeError``, so the encoder covers finite scalars only.
    """
    if value is None:
        return "null"
    # bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{sanitize_string(value)}"'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedLiteralTypeError(value)
        return repr(value)
    raise UnsupportedLiteralTypeError(value)
