"""Typer CLI application — render, validate and write niri KDL configs."""

from __future__ import annotations

from typing import Annotated, Any, Optional

import portalocker
import typer

from nirikdl.usage import patch_typer_errors

patch_typer_errors()

import nirikdl
from nirikdl.contracts.common import ErrorDetail, Target, WarningDetail
from nirikdl.engine.dispatcher import (
    conversion_error_envelope,
    error_envelope,
    exit_code_for,
    print_response,
    success_envelope,
)
from nirikdl.engine.generator import (
    SettingsLoadError,
    build_module,
    load_module,
    load_settings,
    read_extra_config,
    render_settings,
    validate_settings,
    write_config,
)
from nirikdl.io.fileops import default_config_path
from nirikdl.kdl import KdlConversionError
from nirikdl.observe.events import Timer, get_emitter

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

_MAIN_HELP = """\
Render structured settings (YAML/JSON) as a niri KDL configuration file.

**Workflow:**  validate → render → write

1. `nirikdl validate -i settings.yaml`  — check that the settings convert
2. `nirikdl render -i settings.yaml --raw`  — print the KDL document
3. `nirikdl write -i settings.yaml`  — write `~/.config/niri/config.kdl`

**Settings conventions:**
- scalar → `name value`; mapping → node with a `{ }` block
- list of scalars → `name v1 v2 ...`; list containing mappings/lists → repeated `name` nodes
- reserved keys: `_args` (positional arguments), `_props` (key=value properties),
  `_children` (list of one-entry mappings, emitted first and in order)

**Every command** returns a JSON `ResponseEnvelope`:
`{"ok": bool, "command": "...", "result": {...}, "errors": [...], "warnings": [...], "metrics": {"duration_ms": N}}`

**Exit codes:** 0=success, 10=validation, 40=locked by another writer, 50=io, 70=unsupported, 90=internal
"""


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(nirikdl.__version__)
        raise typer.Exit()


app = typer.Typer(
    name="nirikdl",
    help=_MAIN_HELP,
    no_args_is_help=True,
    rich_markup_mode="markdown",
)


@app.callback(invoke_without_command=True)
def main_callback(
    version: Annotated[
        bool, typer.Option("--version", "-V", help="Print version and exit.", is_eager=True)
    ] = False,
    events: Annotated[
        bool, typer.Option("--events", help="Emit NDJSON lifecycle events to stderr.")
    ] = False,
) -> None:
    if version:
        _version_callback(True)
    get_emitter().enabled = events


# Type aliases for common options
SettingsPath = Annotated[str, typer.Option("--settings", "-i", help="Path to YAML/JSON settings file")]
ExtraConfigOpt = Annotated[
    Optional[str],
    typer.Option("--extra-config", "-x", help="File whose contents are appended verbatim after the rendered KDL"),
]
OutOpt = Annotated[
    Optional[str],
    typer.Option("--out", "-o", help="Config file to write (default: $XDG_CONFIG_HOME/niri/config.kdl)"),
]
DryRunFlag = Annotated[bool, typer.Option("--dry-run", help="Report the projected change without writing")]
LockTimeoutOpt = Annotated[
    float, typer.Option("--lock-timeout", help="Seconds to wait for the config lock (0 = fail immediately)")
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _emit(envelope, code=None):
    print_response(envelope)
    raise typer.Exit(code if code is not None else exit_code_for(envelope))


def _load_settings_or_emit(settings: str, cmd: str, target: Target) -> dict[str, Any]:
    """Load a settings file, or emit an error envelope."""
    try:
        return load_settings(settings)
    except FileNotFoundError:
        _emit(error_envelope(cmd, "ERR_SETTINGS_NOT_FOUND", f"File not found: {settings}", target=target))
    except SettingsLoadError as e:
        _emit(error_envelope(cmd, e.code, str(e), target=target, details=e.details))


def _read_extra_or_emit(extra_config: str | None, cmd: str, target: Target) -> str:
    try:
        return read_extra_config(extra_config)
    except FileNotFoundError:
        _emit(error_envelope(cmd, "ERR_EXTRA_CONFIG_NOT_FOUND", f"File not found: {extra_config}", target=target))


def _write_or_emit(cmd: str, target: Target, write, *args, **kwargs):
    """Run a writing call, mapping a held lock or an OS error to an envelope."""
    try:
        return write(*args, **kwargs)
    except portalocker.LockException:
        _emit(error_envelope(cmd, "ERR_LOCK_HELD", f"Config file is locked by another process: {target.output}", target=target))
    except OSError as e:
        _emit(error_envelope(cmd, "ERR_IO_WRITE", f"Cannot write {target.output}: {e}", target=target))


# ---------------------------------------------------------------------------
# nirikdl version
# ---------------------------------------------------------------------------
@app.command()
def version():
    """Print the nirikdl version.

    Example: `nirikdl version`
    """
    env = success_envelope("version", {"version": nirikdl.__version__})
    _emit(env)


# ---------------------------------------------------------------------------
# nirikdl render
# ---------------------------------------------------------------------------
@app.command("render")
def render_cmd(
    settings: SettingsPath,
    extra_config: ExtraConfigOpt = None,
    raw: Annotated[bool, typer.Option("--raw", help="Print the KDL text itself instead of a JSON envelope")] = False,
):
    """Render a settings file as KDL.

    The result carries the KDL `text`, its `fingerprint`, and line counts.
    Use `--raw` to print only the document (errors are still JSON).

    Example: `nirikdl render -i settings.yaml`

    Example: `nirikdl render -i settings.yaml -x extra.kdl --raw > config.kdl`
    """
    target = Target(settings=settings)
    with Timer() as t:
        data = _load_settings_or_emit(settings, "render", target)
        extra = _read_extra_or_emit(extra_config, "render", target)
        try:
            result = render_settings(data, extra)
        except KdlConversionError as e:
            _emit(conversion_error_envelope("render", e, target=target))
            return

    if raw:
        typer.echo(result.text, nl=False)
        raise typer.Exit(0)

    env = success_envelope("render", result.model_dump(), target=target, duration_ms=t.elapsed_ms)
    _emit(env)


# ---------------------------------------------------------------------------
# nirikdl validate
# ---------------------------------------------------------------------------
@app.command("validate")
def validate_cmd(
    settings: SettingsPath,
):
    """Check that a settings file converts to KDL. Nothing is written.

    Returns pass/fail checks in a ValidationResult. Reserved keys at the
    document root are reported as warnings.

    Example: `nirikdl validate -i settings.yaml`
    """
    target = Target(settings=settings)
    with Timer() as t:
        data = _load_settings_or_emit(settings, "validate", target)
        result = validate_settings(data)

    env = success_envelope("validate", result.model_dump(), target=target, duration_ms=t.elapsed_ms)
    env.warnings = [
        WarningDetail(code="WARN_ROOT_RESERVED_KEY", message=c["message"])
        for c in result.checks
        if not c["passed"] and c.get("severity") == "warning"
    ]
    if not result.valid:
        env.ok = False
        failed = [c for c in result.checks if not c["passed"] and c.get("severity", "error") == "error"]
        env.errors = [
            ErrorDetail(code=c["code"], message=c["message"], details=c.get("details"))
            for c in failed
        ]
    _emit(env)


# ---------------------------------------------------------------------------
# nirikdl write
# ---------------------------------------------------------------------------
@app.command("write")
def write_cmd(
    settings: SettingsPath,
    out: OutOpt = None,
    extra_config: ExtraConfigOpt = None,
    dry_run: DryRunFlag = False,
    lock_timeout: LockTimeoutOpt = 0,
):
    """Render a settings file and write it to the niri config location.

    The write is atomic and happens under an exclusive `<file>.lock`
    sidecar lock. Identical content is left untouched (`unchanged: true`).

    Example: `nirikdl write -i settings.yaml --dry-run`

    Example: `nirikdl write -i settings.yaml -o ./config.kdl`
    """
    output = out or str(default_config_path())
    target = Target(settings=settings, output=output)
    with Timer() as t:
        data = _load_settings_or_emit(settings, "write", target)
        extra = _read_extra_or_emit(extra_config, "write", target)
        try:
            rendered = render_settings(data, extra)
        except KdlConversionError as e:
            _emit(conversion_error_envelope("write", e, target=target))
            return
        result, changes = _write_or_emit(
            "write", target, write_config, rendered.text, output,
            dry_run=dry_run, lock_timeout=lock_timeout,
        )

    env = success_envelope(
        "write", result.model_dump(), target=target, changes=changes, duration_ms=t.elapsed_ms,
    )
    _emit(env)


# ---------------------------------------------------------------------------
# nirikdl build
# ---------------------------------------------------------------------------
@app.command("build")
def build_cmd(
    module: Annotated[str, typer.Option("--module", "-m", help="Path to YAML module spec (settings, extra_config, output)")],
    out: OutOpt = None,
    dry_run: DryRunFlag = False,
    lock_timeout: LockTimeoutOpt = 0,
):
    """Apply a module spec: render its settings and write its config file.

    Example module spec::

        schema_version: "1.0"
        enable: true
        settings:
          input: { keyboard: { xkb: { layout: us } } }
        extra_config: |
          // hand-written tail
        output: ./config.kdl

    `enable: false` skips the module without writing.

    Example: `nirikdl build -m niri.yaml --dry-run`
    """
    target = Target(module=module, output=out)
    with Timer() as t:
        try:
            spec = load_module(module)
        except FileNotFoundError:
            _emit(error_envelope("build", "ERR_MODULE_NOT_FOUND", f"File not found: {module}", target=target))
            return
        except SettingsLoadError as e:
            _emit(error_envelope("build", e.code, str(e), target=target, details=e.details))
            return

        target.output = out or spec.output or str(default_config_path())
        try:
            result, changes = _write_or_emit(
                "build", target, build_module, spec,
                output=out, dry_run=dry_run, lock_timeout=lock_timeout,
            )
        except KdlConversionError as e:
            _emit(conversion_error_envelope("build", e, target=target))
            return

    env = success_envelope("build", result, target=target, changes=changes, duration_ms=t.elapsed_ms)
    if not result["enabled"]:
        env.warnings = [WarningDetail(code="WARN_MODULE_DISABLED", message="Module has enable: false; nothing written")]
    _emit(env)


# ---------------------------------------------------------------------------
# nirikdl serve --stdio
# ---------------------------------------------------------------------------
@app.command("serve")
def serve_cmd(
    stdio: Annotated[bool, typer.Option("--stdio", help="Use stdin/stdout for JSON request/response")] = True,
):
    """Start a stdio server for tool integration.

    Reads JSON commands from stdin and writes JSON responses to stdout.
    Each line is a JSON object: `{"id": "1", "command": "render", "args": {"settings": {...}}}`

    Commands: `render`, `validate`, `write`.

    Example: `nirikdl serve --stdio`
    """
    from nirikdl.server.stdio import StdioServer
    server = StdioServer()
    server.run()


# ---------------------------------------------------------------------------
# Entrypoint (for `python -m nirikdl`)
# ---------------------------------------------------------------------------
def main() -> None:
    try:
        app()
    except SystemExit:
        raise
    except Exception as exc:
        # Unhandled exceptions still produce a JSON envelope, never a raw traceback.
        env = error_envelope(
            "unknown",
            "ERR_INTERNAL",
            str(exc),
        )
        print_response(env)
        raise SystemExit(90) from exc


if __name__ == "__main__":
    main()
