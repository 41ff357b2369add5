"""
L2 Resolver — Target directory state machine.

States:
    SEARCHING    → run the shared locator
    FOUND        → a stable, non-staging match was accepted
    DOWNLOADING  → fetch the bundle archive
    EXTRACTING   → unzip into the per-run staging directory
    NORMALIZING  → copy staging into ~/<dir_name>, clean up
    RESOLVED     → handle created, secret file initialized

Transitions:
    SEARCHING → DOWNLOADING:  nothing found
    SEARCHING → NORMALIZING:  match lies inside staging (not yet normalized)
    SEARCHING → FOUND:        stable match
    DOWNLOADING → EXTRACTING → NORMALIZING → SEARCHING
    FOUND → RESOLVED

Re-entering SEARCHING after normalization proves that the directory is
discoverable by the same search the profile function will use later.
Every entry into SEARCHING spends one attempt; running out is fatal, so
the machine terminates even if the search never sees the new directory.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Callable

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.models.facts import TargetDirectoryHandle, TargetOrigin
from riverspider_setup.core.services.bootstrap.execution import download
from riverspider_setup.core.services.bootstrap.execution.text_mutator import ensure_file_writable
from riverspider_setup.core.services.bootstrap.resolver.locator import locate_target_directory

logger = logging.getLogger(__name__)

Searcher = Callable[[], Path | None]
Fetcher = Callable[[], Path]


class ResolveState(StrEnum):
    """Resolver states."""

    SEARCHING = "searching"
    FOUND = "found"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    NORMALIZING = "normalizing"
    RESOLVED = "resolved"


def ensure_secret_initialized(ctx: SetupContext, target_dir: Path) -> bool:
    """Write the default secret only when the secret file is empty.

    Returns:
        True when the default was written.
    """
    settings = ctx.config.target
    path = target_dir / settings.secret_file
    ensure_file_writable(path, settings.secret_file)
    if path.read_text(encoding="utf-8").rstrip("\n"):
        return False
    path.write_text(settings.default_secret + "\n", encoding="utf-8")
    logger.debug("Initialized %s with the default secret", path)
    return True


@dataclass
class TargetDirectoryResolver:
    """Find the target directory, downloading the bundle if needed.

    Args:
        ctx: Run context.
        searcher: Returns a candidate directory or None.  Defaults to the
            shared locator.
        fetcher: Downloads the archive and returns its path.  Defaults to
            ``download.download_archive``.
        max_attempts: Searches allowed before giving up.  Defaults to
            ``config.max_resolve_attempts``.
    """

    ctx: SetupContext
    searcher: Searcher | None = None
    fetcher: Fetcher | None = None
    max_attempts: int | None = None
    staging: Path | None = None

    # ── Internal state ───────────────────────────────────────────
    state: ResolveState = field(default=ResolveState.SEARCHING, init=False)
    attempts: int = field(default=0, init=False)
    history: list[ResolveState] = field(default_factory=list, init=False)
    downloaded: bool = field(default=False, init=False)
    _archive: Path | None = field(default=None, init=False, repr=False)
    _match: Path | None = field(default=None, init=False, repr=False)
    _owns_staging: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.searcher is None:
            self.searcher = lambda: locate_target_directory(self.ctx)
        if self.fetcher is None:
            self.fetcher = lambda: download.download_archive(self.ctx)
        if self.max_attempts is None:
            self.max_attempts = self.ctx.config.max_resolve_attempts
        self.history.append(self.state)

    def is_staging(self, path: Path) -> bool:
        """True when ``path`` lies inside this run's staging directory."""
        if self.staging is None:
            return False
        return path == self.staging or self.staging in path.parents

    def _staging_dir(self) -> Path:
        """Per-run staging directory, created on first use."""
        if self.staging is None:
            self.staging = Path(tempfile.mkdtemp(prefix="riverspider_"))
            self._owns_staging = True
        return self.staging

    def resolve(self) -> TargetDirectoryHandle:
        """Drive the machine to RESOLVED and store the handle on the context."""
        try:
            while True:
                if self.state == ResolveState.SEARCHING:
                    self._search()
                elif self.state == ResolveState.DOWNLOADING:
                    self._archive = self.fetcher()
                    self.downloaded = True
                    self._transition(ResolveState.EXTRACTING)
                elif self.state == ResolveState.EXTRACTING:
                    download.extract_archive(self.ctx, self._archive, self._staging_dir())
                    self._transition(ResolveState.NORMALIZING)
                elif self.state == ResolveState.NORMALIZING:
                    download.normalize_staging(self.ctx, self._staging_dir())
                    self._transition(ResolveState.SEARCHING)
                elif self.state == ResolveState.FOUND:
                    return self._finish()
        finally:
            self._cleanup_staging()

    def _search(self) -> None:
        self.attempts += 1
        if self.attempts > self.max_attempts:
            self.ctx.fatal(
                f"Could not locate the '{self.ctx.config.target.dir_name}' directory after "
                f"{self.max_attempts} attempts. See Canvas for download instructions."
            )

        match = self.searcher()
        if match is None or not match.is_dir():
            self._transition(ResolveState.DOWNLOADING)
        elif self.is_staging(match):
            logger.debug("Search matched staging path %s, normalizing first", match)
            self._transition(ResolveState.NORMALIZING)
        else:
            self._match = match
            self._transition(ResolveState.FOUND)

    def _finish(self) -> TargetDirectoryHandle:
        path = self._match
        self.ctx.success(f"Found '{self.ctx.config.target.dir_name}' at {path}")
        origin = TargetOrigin.FRESHLY_DOWNLOADED if self.downloaded else TargetOrigin.FOUND_EXISTING
        handle = TargetDirectoryHandle(path=path, origin=origin)
        ensure_secret_initialized(self.ctx, path)
        self._transition(ResolveState.RESOLVED)
        self.ctx.target = handle
        return handle

    def _cleanup_staging(self) -> None:
        """Remove a staging directory this run created; a caller's only when empty."""
        if self.staging is None or not self.staging.is_dir():
            return
        if self._owns_staging:
            shutil.rmtree(self.staging, ignore_errors=True)
        elif not any(self.staging.iterdir()):
            self.staging.rmdir()

    def _transition(self, new_state: ResolveState) -> None:
        logger.debug("Resolver: %s → %s (attempt %d)", self.state, new_state, self.attempts)
        self.state = new_state
        self.history.append(new_state)


def resolve_target_directory(ctx: SetupContext, **kwargs) -> TargetDirectoryHandle:
    """Convenience wrapper: build a resolver and run it."""
    return TargetDirectoryResolver(ctx, **kwargs).resolve()
