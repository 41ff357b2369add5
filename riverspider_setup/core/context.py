"""
Setup context — everything a run knows, passed explicitly.

Created once by the entry point and threaded through every service
call.  Tests build one around a temporary home directory:

    - CLI:    main.py  → SetupContext.create(config, log_file=...)
    - Tests:  conftest → SetupContext(config=..., home=tmp_path, env={...})

The context owns the warning list.  Recoverable problems go through
``warn()``; fatal ones through ``fatal()``, which raises.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import NoReturn

from riverspider_setup.core.errors import FatalSetupError
from riverspider_setup.core.models.config import SetupConfig
from riverspider_setup.core.models.facts import (
    SystemFacts,
    TargetDirectoryHandle,
    ToolchainState,
)

logger = logging.getLogger(__name__)


@dataclass
class SetupContext:
    """Mutable run state shared by the bootstrap services."""

    config: SetupConfig
    home: Path
    env: dict[str, str] = field(default_factory=dict)
    log_file: Path | None = None
    show_progress: bool = False

    facts: SystemFacts | None = None
    toolchain: ToolchainState | None = None
    target: TargetDirectoryHandle | None = None

    warnings: list[str] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        config: SetupConfig,
        *,
        log_file: Path | None = None,
        show_progress: bool = False,
    ) -> SetupContext:
        """Context for the real machine: live environment and home dir."""
        return cls(
            config=config,
            home=Path.home(),
            env=dict(os.environ),
            log_file=log_file,
            show_progress=show_progress,
        )

    # ── Reporting ───────────────────────────────────────────────

    def success(self, message: str) -> None:
        logger.info("✓ %s", message)

    def warn(self, message: str) -> None:
        """Record a recoverable problem and keep going."""
        logger.warning("Warning: %s", message)
        self.warnings.append(message)

    def fatal(self, message: str) -> NoReturn:
        """Abort the run."""
        raise FatalSetupError(message, log_file=self.log_file)

    # ── Accessors that must not be called too early ─────────────

    def require_facts(self) -> SystemFacts:
        if self.facts is None:
            self.fatal("System facts are not available. Run the environment probe first.")
        return self.facts

    def require_target(self) -> TargetDirectoryHandle:
        if self.target is None:
            self.fatal(
                f"{self.config.target.env_var} is not set. "
                "Ensure the project location was found."
            )
        return self.target

    @property
    def path_env(self) -> str | None:
        return self.env.get("PATH")
