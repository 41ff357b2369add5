"""
L3 Detection — Command availability.

Read-only lookups against PATH.  Reporting is batched: callers get the
full list of missing commands in one pass, never the first one only.
"""

from __future__ import annotations

import logging
import shutil

from riverspider_setup.core.context import SetupContext

logger = logging.getLogger(__name__)


def which(ctx: SetupContext, command: str) -> str | None:
    """Resolve a command against the context's PATH."""
    return shutil.which(command, path=ctx.path_env)


def find_commands(
    ctx: SetupContext,
    commands: list[str],
) -> dict[str, list]:
    """Resolve every command.

    Returns::

        {"found": [("curl", "/usr/bin/curl"), ...], "missing": ["fd", ...]}
    """
    found: list[tuple[str, str]] = []
    missing: list[str] = []
    for name in commands:
        resolved = which(ctx, name)
        if resolved:
            found.append((name, resolved))
        else:
            missing.append(name)
    return {"found": found, "missing": missing}


def check_required_commands(ctx: SetupContext) -> None:
    """Fatal unless every essential system command is on PATH."""
    logger.info("==> Checking for essential commands...")
    result = find_commands(ctx, ctx.config.toolchain.required_commands)
    for name, path in result["found"]:
        logger.debug("'%s' found: (%s)", name, path)
    if result["missing"]:
        ctx.fatal(f"Required command(s) missing: {' '.join(result['missing'])}")
    ctx.success(f"All {len(result['found'])} essential commands found")
