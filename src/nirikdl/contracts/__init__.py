"""Pydantic models for responses, module specs, and command results."""

from nirikdl.contracts.common import (
    ConfigChange,
    ErrorDetail,
    Metrics,
    ResponseEnvelope,
    Target,
    WarningDetail,
)
from nirikdl.contracts.module import ModuleSpec
from nirikdl.contracts.responses import (
    RenderResult,
    ValidationResult,
    WriteResult,
)

__all__ = [
    "ConfigChange",
    "ErrorDetail",
    "Metrics",
    "ModuleSpec",
    "RenderResult",
    "ResponseEnvelope",
    "Target",
    "ValidationResult",
    "WarningDetail",
    "WriteResult",
]
