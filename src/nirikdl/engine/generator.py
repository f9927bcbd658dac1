"""Config generation: load settings, render KDL, write the config file."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from nirikdl.contracts.common import ConfigChange
from nirikdl.contracts.module import ModuleSpec
from nirikdl.contracts.responses import RenderResult, ValidationResult, WriteResult
from nirikdl.io.fileops import (
    config_lock,
    default_config_path,
    fingerprint,
    fingerprint_bytes,
    read_text_safe,
    replace_file,
)
from nirikdl.kdl import (
    KdlConversionError,
    append_extra_config,
    count_top_level_nodes,
    render,
)
from nirikdl.kdl.nodes import RESERVED_KEYS
from nirikdl.observe.events import get_emitter

MODULE_KEYS = frozenset({"schema_version", "enable", "settings", "extra_config", "output"})
YAML_STR_TAG = "tag:yaml.org,2002:str"


class SettingsLoader(yaml.SafeLoader):
    """SafeLoader that keeps scalar mapping keys as the text written.

    YAML 1.1 resolves ``off``/``on``/``yes``/``no`` to booleans and ``~`` to
    null. As node names those must stay strings: ``focus-ring { off; }``.
    Values are resolved as usual.
    """

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            # Resolve `<<` merges first so merged-in keys are covered too
            self.flatten_mapping(node)
            for key_node, _ in node.value:
                if isinstance(key_node, yaml.ScalarNode):
                    key_node.tag = YAML_STR_TAG
        return super().construct_mapping(node, deep=deep)


class SettingsLoadError(ValueError):
    """A settings or module file cannot be parsed into the expected shape."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "ERR_SETTINGS_INVALID",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details


def _parse_yaml(path: str | Path, *, code: str) -> Any:
    text = read_text_safe(path)
    try:
        return yaml.load(text, Loader=SettingsLoader)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"Cannot parse {path}: {e}", code=code) from e


def load_settings(path: str | Path) -> dict[str, Any]:
    """Load a settings mapping from a YAML or JSON file. Empty files give ``{}``."""
    data = _parse_yaml(path, code="ERR_SETTINGS_INVALID")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SettingsLoadError(
            f"Settings file must contain a mapping/object, got {type(data).__name__}."
        )
    get_emitter().emit("settings.loaded", {"path": str(path), "keys": len(data)})
    return data


def load_module(path: str | Path) -> ModuleSpec:
    """Load a module spec from a YAML file."""
    data = _parse_yaml(path, code="ERR_MODULE_INVALID")
    if not isinstance(data, dict):
        raise SettingsLoadError("Module YAML must be a mapping/object.", code="ERR_MODULE_INVALID")

    unknown_keys = sorted(set(data) - MODULE_KEYS)
    if unknown_keys:
        raise SettingsLoadError(
            f"Unknown module keys: {', '.join(unknown_keys)}", code="ERR_MODULE_INVALID"
        )

    # An unquoted `schema_version: 1.0` arrives as a float
    if isinstance(data.get("schema_version"), (int, float)):
        data["schema_version"] = str(data["schema_version"])

    try:
        return ModuleSpec(**data)
    except ValidationError as e:
        issues = [{"loc": [str(p) for p in err["loc"]], "msg": err["msg"]} for err in e.errors()]
        raise SettingsLoadError(
            f"Invalid module spec: {e.error_count()} issue(s)",
            code="ERR_MODULE_INVALID",
            details={"issues": issues},
        ) from e


def read_extra_config(path: str | Path | None) -> str:
    if path is None:
        return ""
    return read_text_safe(path)


def render_settings(settings: Mapping[str, Any], extra_config: str = "") -> RenderResult:
    """Render settings (plus optional verbatim trailer) and describe the output."""
    emitter = get_emitter()
    try:
        document = render(settings)
    except KdlConversionError as e:
        emitter.emit("render.failed", {"code": e.code, **e.details()})
        raise
    text = append_extra_config(document, extra_config)
    result = RenderResult(
        text=text,
        fingerprint=fingerprint_bytes(text.encode("utf-8")),
        top_level_nodes=count_top_level_nodes(document),
        line_count=text.count("\n"),
        has_extra_config=bool(extra_config),
    )
    emitter.emit("render.completed", {"fingerprint": result.fingerprint, "lines": result.line_count})
    return result


def validate_settings(settings: Mapping[str, Any]) -> ValidationResult:
    """Check that settings convert cleanly. Never raises for bad settings."""
    checks: list[dict[str, Any]] = []

    try:
        render(settings)
        checks.append({"type": "render", "passed": True, "message": "Settings convert to KDL"})
    except KdlConversionError as e:
        checks.append({
            "type": "render",
            "passed": False,
            "severity": "error",
            "code": e.code,
            "message": str(e),
            "details": e.details(),
        })

    root_reserved = sorted(k for k in settings if k in RESERVED_KEYS)
    checks.append({
        "type": "root_reserved_keys",
        "passed": not root_reserved,
        "severity": "warning",
        "message": (
            f"Reserved keys at document root are emitted as plain nodes: {', '.join(root_reserved)}"
            if root_reserved
            else "No reserved keys at document root"
        ),
    })

    valid = all(c["passed"] for c in checks if c.get("severity", "error") == "error")
    return ValidationResult(valid=valid, checks=checks)


def _compare(path: Path, data: bytes, *, dry_run: bool) -> tuple[WriteResult, list[ConfigChange]]:
    before = fingerprint(path)
    after = fingerprint_bytes(data)
    result = WriteResult(
        path=str(path),
        dry_run=dry_run,
        unchanged=before == after,
        fingerprint_before=before,
        fingerprint_after=after,
    )
    if result.unchanged:
        return result, []
    change = ConfigChange(
        type="config.create" if before is None else "config.update",
        path=str(path),
        fingerprint_before=before,
        fingerprint_after=after,
        bytes=len(data),
    )
    return result, [change]


def write_config(
    text: str,
    path: str | Path,
    *,
    dry_run: bool = False,
    lock_timeout: float = 0,
) -> tuple[WriteResult, list[ConfigChange]]:
    """Replace the config at ``path`` with ``text``, leaving identical content alone.

    A dry run only compares: it takes no lock and creates nothing. A real
    write holds the config lock across compare and replace, so two writers
    cannot interleave; a held lock raises ``portalocker.LockException``.
    """
    path = Path(path)
    data = text.encode("utf-8")
    if dry_run:
        return _compare(path, data, dry_run=True)

    emitter = get_emitter()
    with config_lock(path, timeout=lock_timeout):
        result, changes = _compare(path, data, dry_run=False)
        if not result.unchanged:
            replace_file(path, data)
            result.written = True

    if result.written:
        emitter.emit("config.written", {"path": str(path), "fingerprint": result.fingerprint_after})
    else:
        emitter.emit("config.unchanged", {"path": str(path)})
    return result, changes


def build_module(
    spec: ModuleSpec,
    *,
    output: str | Path | None = None,
    dry_run: bool = False,
    lock_timeout: float = 0,
) -> tuple[dict[str, Any], list[ConfigChange]]:
    """Render a module spec and write it to its output (or the default location)."""
    if not spec.enable:
        return {"enabled": False, "write": None}, []

    rendered = render_settings(spec.settings, spec.extra_config)
    target = Path(output or spec.output or default_config_path())
    result, changes = write_config(
        rendered.text, target, dry_run=dry_run, lock_timeout=lock_timeout
    )
    return {
        "enabled": True,
        "line_count": rendered.line_count,
        "write": result.model_dump(),
    }, changes
