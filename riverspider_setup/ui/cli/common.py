"""
Shared helpers for the CLI command modules.

Every command builds its own SetupContext from the objects the root
group stored on ``ctx.obj`` and funnels SetupError through ``abort``.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import NoReturn

import click

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.errors import FatalSetupError, SetupError
from riverspider_setup.core.models.facts import TargetDirectoryHandle, TargetOrigin
from riverspider_setup.core.services.bootstrap.execution.subprocess_runner import stderr_is_tty

logger = logging.getLogger(__name__)


def make_context(ctx: click.Context) -> SetupContext:
    """SetupContext for the live machine, built from the root group's state."""
    obj = ctx.find_root().obj
    return SetupContext.create(
        obj["config"],
        log_file=obj.get("log_file"),
        show_progress=not obj.get("quiet", False) and stderr_is_tty(),
    )


def abort(ctx: click.Context, error: SetupError) -> NoReturn:
    """Report a fatal error and exit with status 1."""
    log_file = getattr(error, "log_file", None) or ctx.find_root().obj.get("log_file")
    logger.error("Error: %s", error)
    logger.debug("Script aborted at %s", datetime.now().strftime("%c"))
    if log_file:
        click.secho(f"Script aborted. Check the log file: {log_file}", fg="red", err=True)
    sys.exit(1)


def add_package_manager_to_path(sctx: SetupContext) -> None:
    """Let later commands see Homebrew tools in a shell that never sourced the profile."""
    settings = sctx.config.package_manager
    dirs = [str(Path(p).parent) for p in (settings.arm_path, settings.intel_path)]
    current = sctx.env.get("PATH", "")
    missing = [d for d in dirs if d not in current.split(os.pathsep)]
    if missing:
        sctx.env["PATH"] = os.pathsep.join([current, *missing]) if current else os.pathsep.join(missing)


def locate_existing_target(sctx: SetupContext) -> TargetDirectoryHandle:
    """Search once for an already-installed target directory; never downloads."""
    from riverspider_setup.core.services.bootstrap.resolver.locator import locate_target_directory

    add_package_manager_to_path(sctx)
    path = locate_target_directory(sctx)
    if path is None:
        raise FatalSetupError(
            f"Could not locate the '{sctx.config.target.dir_name}' directory. "
            "Run 'riverspider-setup install' first.",
            log_file=sctx.log_file,
        )
    sctx.target = TargetDirectoryHandle(path=path, origin=TargetOrigin.FOUND_EXISTING)
    return sctx.target
