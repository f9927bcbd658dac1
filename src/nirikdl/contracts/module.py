"""Module spec model for ``nirikdl build``."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class ModuleSpec(BaseModel):
    """Settings, verbatim trailer and destination for one generated config file."""

    schema_version: str = "1.0"
    enable: bool = True
    settings: dict[str, Any] = Field(default_factory=dict)
    extra_config: str = ""
    output: str | None = None

    @field_validator("schema_version")
    @classmethod
    def validate_schema_version(cls, v: str) -> str:
        if v.split(".", 1)[0] != "1":
            raise ValueError(f"Unsupported schema_version '{v}'. Supported: 1.x")
        return v
