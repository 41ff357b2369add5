"""
L2 Resolver — The shared "locate or fail" search.

The target directory is the first directory named ``<dir_name>`` that
contains ``<marker_file>`` anywhere under the home directory.  Two
callers need that answer:

    - the installer, through ``locate_target_directory``
    - future shells, through the profile function, whose search pipeline
      is produced by ``shell_locator`` from the same command

Keeping both renderings here means they cannot drift apart.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Iterable

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.services.bootstrap.detection.system_deps import which
from riverspider_setup.core.services.bootstrap.execution.subprocess_runner import run_task

logger = logging.getLogger(__name__)


def search_command(search_tool: str, marker_file: str, root: Path | str) -> list[str]:
    """``fd`` invocation listing every file named ``marker_file`` under ``root``."""
    return [search_tool, "--type", "f", "--glob", marker_file, str(root)]


def shell_locator(search_tool: str, marker_file: str, dir_name: str) -> str:
    """The same search as a shell pipeline printing the first matching directory."""
    parts = [shlex.quote(part) for part in search_command(search_tool, marker_file, "")[:-1]]
    parts.append('"$HOME"')
    return f'{" ".join(parts)} --exec dirname {{}} \\; | grep "/{dir_name}$" | head -n 1'


def select_target(candidates: Iterable[str], dir_name: str) -> Path | None:
    """First candidate file whose parent directory is named ``dir_name``.

    Search output is unordered; the first qualifying hit wins.
    """
    for line in candidates:
        line = line.strip()
        if not line:
            continue
        parent = Path(line).parent
        if parent.name == dir_name and parent.is_dir():
            return parent
    return None


def locate_target_directory(ctx: SetupContext) -> Path | None:
    """Run the search once.  None when nothing qualifies.

    A missing search tool is fatal.
    """
    settings = ctx.config.target
    tool = ctx.config.toolchain.search_tool
    resolved = which(ctx, tool)
    if not resolved:
        ctx.fatal(
            f"'{tool}' command not found. Cannot search for '{settings.dir_name}' "
            f"directory. Ensure '{tool}' is installed."
        )

    logger.info("==> Attempting to locate the %s project directory...", settings.dir_name)
    logger.debug(
        "Searching within '%s' for a directory named '%s' containing '%s'...",
        ctx.home, settings.dir_name, settings.marker_file,
    )
    result = run_task(
        ctx,
        f"Searching for '{settings.dir_name}' directory",
        search_command(resolved, settings.marker_file, ctx.home),
        capture_stdout=True,
        report_success=False,
    )
    # fd exits non-zero on unreadable subdirectories; its output is still usable.
    if not result.ok:
        logger.debug("Search finished with status %s", result.returncode)
    found = select_target(result.stdout.splitlines(), settings.dir_name)
    if found is None:
        logger.info("No '%s' directory found under %s", settings.dir_name, ctx.home)
    else:
        ctx.success(f"Successfully found '{settings.dir_name}' directory")
    return found
