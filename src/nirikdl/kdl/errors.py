"""Conversion errors raised while turning settings into KDL text."""

from __future__ import annotations

from typing import Any


class KdlConversionError(ValueError):
    """Base class for every failure of a render call.

    ``code`` is the machine-readable error code used in response envelopes.
    ``path`` is the dotted attribute path of the offending value, when known.
    """

    code = "ERR_KDL_CONVERSION"

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (at {self.path})"
        return self.message

    def details(self) -> dict[str, Any]:
        return {"path": self.path}


class UnsupportedLiteralTypeError(KdlConversionError):
    """A scalar-position value has no literal encoding."""

    code = "ERR_UNSUPPORTED_LITERAL_TYPE"

    def __init__(self, value: Any, *, path: str | None = None) -> None:
        self.value = value
        self.type_name = type(value).__name__
        super().__init__(
            f"Cannot convert value of type {self.type_name} to KDL literal: {value!r}",
            path=path,
        )

    def details(self) -> dict[str, Any]:
        return {"path": self.path, "type": self.type_name, "value": repr(self.value)}


class UnsupportedAttributeTypeError(KdlConversionError):
    """An attribute value has no classification rule."""

    code = "ERR_UNSUPPORTED_ATTRIBUTE_TYPE"

    def __init__(self, name: str, value: Any, *, path: str | None = None) -> None:
        self.name = name
        self.value = value
        self.type_name = type(value).__name__
        super().__init__(
            f"Cannot convert type `{self.type_name}` to KDL: {name} = {value!r}",
            path=path,
        )

    def details(self) -> dict[str, Any]:
        return {"path": self.path, "name": self.name, "type": self.type_name}


class InvalidReservedKeyError(KdlConversionError):
    """``_args``, ``_props`` or ``_children`` holds a value of the wrong shape."""

    code = "ERR_INVALID_RESERVED_KEY"

    def __init__(self, key: str, reason: str, *, path: str | None = None) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid `{key}`: {reason}", path=path)

    def details(self) -> dict[str, Any]:
        return {"path": self.path, "key": self.key, "reason": self.reason}


class CyclicStructureError(KdlConversionError):
    """The input contains a container that (transitively) includes itself."""

    code = "ERR_CYCLIC_STRUCTURE"

    def __init__(self, name: str, *, path: str | None = None) -> None:
        self.name = name
        super().__init__(f"Settings are not a tree: `{name}` refers back to one of its ancestors", path=path)
