"""Report CLI usage errors (bad options, unknown commands) as JSON envelopes."""

from __future__ import annotations

import functools

import click
import typer.core


def _command_name(error: click.exceptions.UsageError) -> str:
    ctx = error.ctx
    # A root context means no subcommand was resolved
    if ctx is None or ctx.parent is None:
        return "nirikdl"
    return ctx.info_name or "nirikdl"


def patch_typer_errors() -> None:
    """Wrap ``TyperGroup.invoke`` so usage errors print an ``ERR_USAGE`` envelope."""
    invoke = typer.core.TyperGroup.invoke
    if getattr(invoke, "_nirikdl_usage", False):
        return

    @functools.wraps(invoke)
    def invoke_with_envelope(self, ctx):
        try:
            return invoke(self, ctx)
        except click.exceptions.UsageError as e:
            from nirikdl.engine.dispatcher import error_envelope, exit_code_for, print_response

            env = error_envelope(_command_name(e), "ERR_USAGE", e.format_message())
            print_response(env)
            raise SystemExit(exit_code_for(env)) from e

    invoke_with_envelope._nirikdl_usage = True
    typer.core.TyperGroup.invoke = invoke_with_envelope
