"""Response envelopes for CLI commands and their exit codes."""

from __future__ import annotations

import sys
from typing import Any

import orjson

from nirikdl.contracts.common import (
    ErrorDetail,
    Metrics,
    ResponseEnvelope,
    Target,
)
from nirikdl.kdl.errors import KdlConversionError

EXIT_OK = 0
EXIT_VALIDATION = 10
EXIT_CONFLICT = 40
EXIT_IO = 50
EXIT_UNSUPPORTED = 70
EXIT_INTERNAL = 90

# Every error code a command can put first in its envelope
EXIT_CODES: dict[str, int] = {
    "ERR_USAGE": EXIT_VALIDATION,
    "ERR_SETTINGS_INVALID": EXIT_VALIDATION,
    "ERR_MODULE_INVALID": EXIT_VALIDATION,
    "ERR_INVALID_RESERVED_KEY": EXIT_VALIDATION,
    "ERR_CYCLIC_STRUCTURE": EXIT_VALIDATION,
    "ERR_LOCK_HELD": EXIT_CONFLICT,
    "ERR_SETTINGS_NOT_FOUND": EXIT_IO,
    "ERR_EXTRA_CONFIG_NOT_FOUND": EXIT_IO,
    "ERR_MODULE_NOT_FOUND": EXIT_IO,
    "ERR_IO_WRITE": EXIT_IO,
    "ERR_UNSUPPORTED_LITERAL_TYPE": EXIT_UNSUPPORTED,
    "ERR_UNSUPPORTED_ATTRIBUTE_TYPE": EXIT_UNSUPPORTED,
    "ERR_INTERNAL": EXIT_INTERNAL,
}


def success_envelope(
    command: str,
    result: Any,
    *,
    target: Target | None = None,
    changes: list | None = None,
    warnings: list | None = None,
    duration_ms: int = 0,
) -> ResponseEnvelope:
    return ResponseEnvelope(
        command=command,
        target=target or Target(),
        result=result,
        changes=changes or [],
        warnings=warnings or [],
        metrics=Metrics(duration_ms=duration_ms),
    )


def error_envelope(
    command: str,
    code: str,
    message: str,
    *,
    target: Target | None = None,
    details: dict | None = None,
    duration_ms: int = 0,
) -> ResponseEnvelope:
    return ResponseEnvelope(
        ok=False,
        command=command,
        target=target or Target(),
        errors=[ErrorDetail(code=code, message=message, details=details)],
        metrics=Metrics(duration_ms=duration_ms),
    )


def conversion_error_envelope(
    command: str,
    exc: KdlConversionError,
    *,
    target: Target | None = None,
    duration_ms: int = 0,
) -> ResponseEnvelope:
    """Envelope for a failed render, carrying the error's code and location."""
    return error_envelope(
        command, exc.code, str(exc), target=target, details=exc.details(), duration_ms=duration_ms
    )


def print_response(envelope: ResponseEnvelope) -> None:
    """Write the envelope to stdout as indented JSON."""
    payload = orjson.dumps(envelope.model_dump(mode="json"), option=orjson.OPT_INDENT_2)
    sys.stdout.write(payload.decode() + "\n")


def exit_code_for(envelope: ResponseEnvelope) -> int:
    """Exit status for an envelope, keyed on its first error code."""
    if envelope.ok:
        return EXIT_OK
    if not envelope.errors:
        return EXIT_INTERNAL
    return EXIT_CODES.get(envelope.errors[0].code, EXIT_INTERNAL)
