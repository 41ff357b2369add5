"""
L4 Execution — Bundle download, extraction and normalization.

    download_archive   curl the zip to a fixed path in $HOME   (critical)
    extract_archive    unzip into the staging directory        (critical)
    normalize_staging  copy <staging>/<dir_name>/* into the target
                       directory, then remove staging + archive

Copy and cleanup problems are warnings: a partially populated target
from an earlier run may already be good enough, and the resolver's
follow-up search decides.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.services.bootstrap.execution.subprocess_runner import run_task

logger = logging.getLogger(__name__)


def archive_path(ctx: SetupContext) -> Path:
    return ctx.home / ctx.config.target.archive_name


def canonical_target(ctx: SetupContext) -> Path:
    """Where a downloaded bundle ends up: ``~/<dir_name>``."""
    return ctx.home / ctx.config.target.dir_name


def download_archive(ctx: SetupContext) -> Path:
    """Fetch the bundle archive.  Missing or empty result is fatal."""
    target = ctx.config.target
    output = archive_path(ctx)
    logger.info("==> Downloading '%s'...", target.dir_name)
    run_task(
        ctx,
        f"Downloading '{target.archive_name}'",
        ["curl", "-fsSL", "-o", str(output), target.resolved_archive_url()],
        critical=True,
    )
    if not output.is_file() or output.stat().st_size == 0:
        ctx.fatal(
            f"Downloaded archive is missing or empty: {output}. "
            "See Canvas for download instructions."
        )
    logger.debug("Archive saved to %s (%d bytes)", output, output.stat().st_size)
    return output


def extract_archive(ctx: SetupContext, archive: Path, staging: Path) -> Path:
    """Unzip ``archive`` into ``staging``.  Returns the staging directory."""
    staging.mkdir(parents=True, exist_ok=True)
    run_task(
        ctx,
        f"Unzipping '{archive.name}'",
        ["unzip", "-o", str(archive), "-d", str(staging)],
        critical=True,
    )
    return staging


def _copy_entry(src: Path, dest: Path) -> None:
    if src.is_dir():
        shutil.copytree(src, dest, dirs_exist_ok=True)
    else:
        shutil.copy2(src, dest)


def normalize_staging(ctx: SetupContext, staging: Path) -> Path:
    """Move the extracted bundle into the canonical target directory.

    Returns:
        The canonical target directory.
    """
    settings = ctx.config.target
    inner = staging / settings.dir_name
    target = canonical_target(ctx)

    if not inner.is_dir():
        if (target / settings.marker_file).is_file():
            logger.debug("Staging already normalized into %s", target)
            return target
        ctx.fatal(
            f"Failed to download '{settings.dir_name}'. See Canvas for download instructions."
        )

    logger.debug("Moving contents to %s...", target)
    target.mkdir(parents=True, exist_ok=True)
    for entry in sorted(inner.iterdir()):
        try:
            _copy_entry(entry, target / entry.name)
        except (OSError, shutil.Error) as e:
            ctx.warn(f"Could not copy '{entry.name}' into {target}: {e}")

    for leftover in (staging, archive_path(ctx)):
        try:
            if leftover.is_dir():
                shutil.rmtree(leftover)
            elif leftover.exists():
                leftover.unlink()
        except OSError as e:
            logger.warning("Could not remove %s: %s", leftover, e)

    logger.debug("Extraction and cleanup complete. Files are in %s", target)
    return target
