"""
L3 Detection — Environment probe.

Builds the SystemFacts sheet the rest of the run reads: OS, CPU
architecture, shell and profile file.  Network reachability is checked
between the architecture and the shell steps, so a machine without
internet aborts before any file is touched.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.models.facts import SystemFacts
from riverspider_setup.core.services.bootstrap.data.profile_maps import (
    SUPPORTED_SHELLS,
    activation_keyword,
    chip_label,
    package_manager_path,
    profile_basename,
    profile_dir_var,
)
from riverspider_setup.core.services.bootstrap.detection.network import Pinger, check_internet
from riverspider_setup.core.services.bootstrap.execution.text_mutator import ensure_file_writable

logger = logging.getLogger(__name__)


def detect_os(ctx: SetupContext) -> tuple[str, str]:
    """Return ``(os_kind, os_version)``.  Fatal on any OS but the expected one."""
    logger.info("==> Checking operating system and architecture...")
    system = platform.system()
    expected = ctx.config.expected_os
    if system != expected:
        ctx.fatal(f"This script is designed for macOS only. Detected OS: {system}")
    logger.debug("Operating system confirmed as %s.", system)

    version = platform.mac_ver()[0] if system == "Darwin" else platform.release()
    return system, version or "Unknown"


def detect_architecture(ctx: SetupContext) -> tuple[str, str, Path]:
    """Return ``(cpu_arch, chip_label, package_manager_path)``.

    Only arm64 and x86_64 are supported; anything else is fatal.
    """
    arch = platform.machine()
    logger.debug("Detected %s architecture.", arch)
    label = chip_label(arch)
    brew = package_manager_path(arch, ctx.config.package_manager)
    if label is None or brew is None:
        ctx.fatal(
            f"Unsupported processor architecture: '{arch}'. This script supports "
            "arm64 (Apple Silicon) and x86_64 (Intel)."
        )
    logger.debug("Architecture is %s (%s). Expecting Homebrew at %s.", arch, label, brew)
    return arch, label, Path(brew)


def detect_shell(ctx: SetupContext) -> tuple[str, Path]:
    """Return ``(shell_kind, profile_path)`` from ``$SHELL``.

    The profile file is created if missing and made writable if it is
    read-only.  Fatal for shells other than bash and zsh.
    """
    logger.info("==> Detecting user shell and profile file...")
    shell = Path(ctx.env.get("SHELL") or "/bin/bash").name
    logger.debug("Detected shell command based on $SHELL: %s", shell)
    if shell not in SUPPORTED_SHELLS:
        ctx.fatal(
            f"Unsupported shell detected: '{shell}'. "
            "This script currently only supports bash and zsh."
        )

    base_dir = ctx.home
    dir_var = profile_dir_var(shell)
    if dir_var and ctx.env.get(dir_var):
        base_dir = Path(ctx.env[dir_var])
    profile = base_dir / profile_basename(shell, ctx.config.profiles)

    ensure_file_writable(profile, f"{shell.upper()} profile file")
    ctx.success(f"Detected shell: {shell}")
    logger.info("==> Using profile: %s", profile)
    return shell, profile


def probe_system(
    ctx: SetupContext,
    *,
    check_network: bool = True,
    pinger: Pinger | None = None,
) -> SystemFacts:
    """Run every probe in order and store the fact sheet on the context."""
    os_kind, os_version = detect_os(ctx)
    arch, label, brew = detect_architecture(ctx)
    ctx.success(f"System validated: macOS Version {os_version} ({label})")

    if check_network:
        check_internet(ctx, pinger=pinger)

    shell, profile = detect_shell(ctx)
    facts = SystemFacts(
        os_kind=os_kind,
        os_version=os_version,
        cpu_arch=arch,
        chip_label=label,
        shell_kind=shell,
        shell_profile_path=profile,
        activation_keyword=activation_keyword(shell),
        package_manager_path=brew,
    )
    logger.debug("Mise shell type for activation set to: %s", facts.activation_keyword)
    ctx.facts = facts
    return facts
