"""
riverSpider setup — CLI entrypoint.

Usage:
    riverspider-setup --help
    riverspider-setup install
    riverspider-setup probe --json
    riverspider-setup target patch
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from riverspider_setup.core.observability.logging_config import default_log_file, setup_logging

from riverspider_setup import __version__


@click.group()
@click.version_option(version=__version__, prog_name="riverspider-setup")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output on the console.")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to setup.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    config_path: str | None,
) -> None:
    """riverSpider setup — install the toolchain and wire up the project."""
    from riverspider_setup.core.config.loader import ConfigError, load_config

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    try:
        config = load_config(Path(config_path) if config_path else None)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    ctx.obj["config"] = config

    # ── Logging setup (once, at process start) ──────────────────
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    else:
        level = os.environ.get("RSP_LOG_LEVEL", "INFO")

    log_file = Path(os.environ.get("RSP_LOG_FILE") or default_log_file(config.log_dir))
    setup_logging(level=level, log_file=log_file)
    ctx.obj["log_file"] = log_file


@cli.command()
@click.option("--skip-webapp", is_flag=True, help="Don't prompt for the Web App URL.")
@click.option("--no-browser", is_flag=True, help="Don't open the Drive folder.")
@click.pass_context
def install(ctx: click.Context, skip_webapp: bool, no_browser: bool) -> None:
    """Validate the system, install dependencies and set up riverSpider."""
    from riverspider_setup.core.errors import SetupError
    from riverspider_setup.core.services.bootstrap import run_setup
    from riverspider_setup.ui.cli.common import abort, make_context
    from riverspider_setup.ui.cli.webapp import prompt_webapp_url

    sctx = make_context(ctx)
    try:
        report = run_setup(sctx)
        _print_summary(report, sctx.config.target.webapp_url_file)
        if not skip_webapp:
            prompt_webapp_url(sctx, open_browser=not no_browser)
    except SetupError as e:
        abort(ctx, e)

    click.secho("🎉 Installation complete.", fg="green", bold=True)


def _print_summary(report, webapp_url_file: str) -> None:
    click.echo()
    if report.warnings:
        click.secho("⚠️  Setup completed with warnings:", fg="yellow", bold=True)
        for warning in report.warnings:
            click.echo(f"   • {warning.strip()}")
    else:
        click.secho("✅ Setup completed successfully.", fg="green", bold=True)

    if report.target:
        click.echo(f"   📁 Project:  {report.target.path} ({report.target.origin})")
        click.echo(f"   🔗 Web App:  {report.target.path / webapp_url_file}")
    if report.facts:
        click.echo(f"   🐚 Profile:  {report.facts.shell_profile_path}")
        click.echo()
        click.echo("   Open a new terminal, or run:")
        click.secho(f"      source {report.facts.shell_profile_path}", bold=True)
    if report.log_file:
        click.echo(f"   📝 Log file: {report.log_file}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--offline", is_flag=True, help="Skip the internet check.")
@click.pass_context
def probe(ctx: click.Context, as_json: bool, offline: bool) -> None:
    """Detect OS, architecture, network and shell profile."""
    from riverspider_setup.core.errors import SetupError
    from riverspider_setup.core.services.bootstrap import probe_system
    from riverspider_setup.ui.cli.common import abort, make_context

    sctx = make_context(ctx)
    try:
        facts = probe_system(sctx, check_network=not offline)
    except SetupError as e:
        abort(ctx, e)

    if as_json:
        click.echo(json.dumps(facts.model_dump(mode="json"), indent=2))
        return

    click.secho(f"🖥️  {facts.os_kind} {facts.os_version} ({facts.chip_label})", fg="cyan", bold=True)
    click.echo(f"   Architecture: {facts.cpu_arch}")
    click.echo(f"   Shell:        {facts.shell_kind}")
    click.echo(f"   Profile:      {facts.shell_profile_path}")
    click.echo(f"   Homebrew:     {facts.package_manager_path}")
    click.echo()


# ── Register command groups ─────────────────────────────────────

from riverspider_setup.ui.cli.target import target  # noqa: E402
from riverspider_setup.ui.cli.webapp import webapp  # noqa: E402

cli.add_command(target)
cli.add_command(webapp)


if __name__ == "__main__":
    cli()
