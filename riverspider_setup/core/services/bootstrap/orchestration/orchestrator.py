"""
L5 Orchestration — The setup run, phase by phase.

    Phase 1  system validation    commands, OS/arch, network, shell
    Phase 2  dependencies         Homebrew, packages, mise, Java
    Phase 3  target + projection  locate/download, export, patch, inject

Strictly sequential: each step returns before the next begins, and any
fatal condition raises out of ``run_setup`` untouched.
"""

from __future__ import annotations

import logging

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.models.facts import SetupReport
from riverspider_setup.core.services.bootstrap.detection.environment import probe_system
from riverspider_setup.core.services.bootstrap.detection.network import Pinger
from riverspider_setup.core.services.bootstrap.detection.system_deps import check_required_commands
from riverspider_setup.core.services.bootstrap.execution import installer
from riverspider_setup.core.services.bootstrap.projection.config_projector import project_config
from riverspider_setup.core.services.bootstrap.resolver.target_directory import (
    Fetcher,
    Searcher,
    TargetDirectoryResolver,
)

logger = logging.getLogger(__name__)

_RULE = "─" * 49


def _phase(title: str) -> None:
    logger.info("")
    logger.info("==> === %s ===", title)
    logger.info(_RULE)


def validate_system(ctx: SetupContext, *, pinger: Pinger | None = None) -> None:
    """Phase 1."""
    _phase("PHASE 1: System Validation")
    check_required_commands(ctx)
    probe_system(ctx, pinger=pinger)
    logger.info(_RULE)
    ctx.success("System validation complete.")


def install_dependencies(ctx: SetupContext) -> None:
    """Phase 2."""
    _phase("PHASE 2: Dependency Installation")
    installer.ensure_package_manager(ctx)
    installer.activate_package_manager(ctx)
    installer.update_package_manager(ctx)
    installer.ensure_packages(ctx)
    installer.verify_tools(ctx)
    installer.configure_version_manager(ctx)
    installer.install_runtime_with_version_manager(ctx)
    logger.info(_RULE)
    ctx.success("Dependency installation complete.")


def setup_target(
    ctx: SetupContext,
    *,
    searcher: Searcher | None = None,
    fetcher: Fetcher | None = None,
) -> dict[str, str]:
    """Phase 3.  Returns the per-step projection statuses."""
    _phase(f"PHASE 3: '{ctx.config.target.dir_name}' Setup")
    TargetDirectoryResolver(ctx, searcher=searcher, fetcher=fetcher).resolve()
    results = project_config(ctx)
    logger.info(_RULE)
    ctx.success(f"'{ctx.config.target.dir_name}' configuration complete.")
    return results


def run_setup(
    ctx: SetupContext,
    *,
    pinger: Pinger | None = None,
    searcher: Searcher | None = None,
    fetcher: Fetcher | None = None,
) -> SetupReport:
    """Run all three phases and summarize.

    Raises:
        FatalSetupError: On the first fatal condition.
    """
    validate_system(ctx, pinger=pinger)
    install_dependencies(ctx)
    patch_results = setup_target(ctx, searcher=searcher, fetcher=fetcher)

    return SetupReport(
        facts=ctx.facts,
        target=ctx.target,
        toolchain=ctx.toolchain,
        patch_results=patch_results,
        warnings=list(ctx.warnings),
        log_file=str(ctx.log_file) if ctx.log_file else None,
    )
