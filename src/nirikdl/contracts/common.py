"""Envelope models shared by every command."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class Target(BaseModel):
    """Input settings or module file and the config file a command writes."""

    settings: str | None = None
    module: str | None = None
    output: str | None = None


class Issue(BaseModel):
    code: str
    message: str


class WarningDetail(Issue):
    """Non-fatal finding; the command still succeeded."""


class ErrorDetail(Issue):
    """Failure reason. KDL conversion errors put the offending path in ``details``."""

    details: dict[str, Any] | None = None


class Metrics(BaseModel):
    duration_ms: int = 0


class ConfigChange(BaseModel):
    """A config file created or rewritten, or that a dry run would be."""

    type: Literal["config.create", "config.update"]
    path: str
    fingerprint_before: str | None = None
    fingerprint_after: str
    bytes: int


class ResponseEnvelope(BaseModel):
    """JSON document printed by every command.

    ``ok`` is false exactly when ``errors`` is non-empty; the first error
    code decides the process exit status.
    """

    ok: bool = True
    command: str = ""
    target: Target = Field(default_factory=Target)
    result: Any = None
    changes: list[ConfigChange] = Field(default_factory=list)
    warnings: list[WarningDetail] = Field(default_factory=list)
    errors: list[ErrorDetail] = Field(default_factory=list)
    metrics: Metrics = Field(default_factory=Metrics)
