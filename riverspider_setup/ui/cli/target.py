"""
CLI commands for the riverSpider project directory.

Thin wrappers over ``riverspider_setup.core.services.bootstrap``.
None of these download anything; they work on an existing install.
"""

from __future__ import annotations

import json

import click

from riverspider_setup.core.errors import SetupError
from riverspider_setup.ui.cli.common import abort, locate_existing_target, make_context


@click.group()
def target() -> None:
    """Target — locate, re-patch, print shell functions."""


@target.command("locate")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def target_locate(ctx: click.Context, as_json: bool) -> None:
    """Print the riverSpider directory found under $HOME."""
    sctx = make_context(ctx)
    try:
        handle = locate_existing_target(sctx)
    except SetupError as e:
        abort(ctx, e)

    if as_json:
        click.echo(json.dumps({"path": str(handle.path), "origin": str(handle.origin)}, indent=2))
        return
    click.echo(str(handle.path))


@target.command("patch")
@click.pass_context
def target_patch(ctx: click.Context) -> None:
    """Re-apply the profile export, script paths and shell functions."""
    from riverspider_setup.core.services.bootstrap import (
        ensure_secret_initialized,
        probe_system,
        project_config,
    )

    sctx = make_context(ctx)
    try:
        probe_system(sctx, check_network=False)
        handle = locate_existing_target(sctx)
        ensure_secret_initialized(sctx, handle.path)
        results = project_config(sctx)
    except SetupError as e:
        abort(ctx, e)

    click.secho(f"📁 {handle.path}", fg="cyan", bold=True)
    for step, status in results.items():
        icon = {"unchanged": "✓", "replaced": "✏️", "appended": "➕"}.get(status, "⚠️")
        click.echo(f"   {icon} {step}: {status}")
    if sctx.warnings:
        click.echo()
        click.secho(f"⚠️  {len(sctx.warnings)} warning(s), see above.", fg="yellow")


@target.command("functions")
@click.pass_context
def target_functions(ctx: click.Context) -> None:
    """Print the shell function block added to the profile."""
    from riverspider_setup.core.services.bootstrap.projection.config_projector import function_block

    click.echo(function_block(make_context(ctx)).block)
