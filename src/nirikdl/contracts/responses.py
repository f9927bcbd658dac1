"""Command-specific result models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RenderResult(BaseModel):
    """Result of ``render``."""

    text: str
    fingerprint: str
    top_level_nodes: int = 0
    line_count: int = 0
    has_extra_config: bool = False


class ValidationResult(BaseModel):
    """Result of a validation command."""

    valid: bool = True
    checks: list[dict[str, Any]] = Field(default_factory=list)


class WriteResult(BaseModel):
    """Result of ``write`` and ``build``."""

    path: str
    written: bool = False
    unchanged: bool = False
    dry_run: bool = False
    fingerprint_before: str | None = None
    fingerprint_after: str = ""
