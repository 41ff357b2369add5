"""
Error taxonomy for the setup run.

Two tiers:
    - fatal       → raised, aborts the run, exit status 1
    - recoverable → never raised, reported through ``SetupContext.warn()``

Lower layers (text mutator, process runner) return a status and let the
caller decide which tier a failure belongs to.  Only the caller raises.
"""

from __future__ import annotations

from pathlib import Path


class SetupError(Exception):
    """Base class for every error that terminates a setup run."""


class FatalSetupError(SetupError):
    """An unrecoverable condition.  Carries the log file for follow-up."""

    def __init__(self, message: str, log_file: Path | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.log_file = log_file

    def __str__(self) -> str:
        return self.message


class SetupCancelled(FatalSetupError):
    """The user cancelled an interactive prompt."""
