"""
L4 Execution — Dependency installation.

Homebrew, its packages, mise and the JDK.  Every step checks first and
only acts when something is missing, so a second run is all no-ops.

Failure policy per step:
    Homebrew install            critical
    brew analytics off          ignored (debug log only)
    brew update                 warning
    brew install <pkg>          warning (verify_tools catches real gaps)
    verify_tools                fatal, all missing tools listed together
    mise latest                 falls back to a known-good version
    mise install                critical
    mise use --global           fatal
    java -version via mise      warning
"""

from __future__ import annotations

import logging
import os
import shlex
from pathlib import Path

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.models.facts import ToolchainState
from riverspider_setup.core.services.bootstrap.detection.system_deps import find_commands, which
from riverspider_setup.core.services.bootstrap.execution.subprocess_runner import (
    run_command,
    run_task,
)
from riverspider_setup.core.services.bootstrap.execution.text_mutator import ensure_line_present

logger = logging.getLogger(__name__)


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


# ── Homebrew ────────────────────────────────────────────────────


def ensure_package_manager(ctx: SetupContext) -> ToolchainState:
    """Install Homebrew at its fixed location unless it is already there."""
    facts = ctx.require_facts()
    brew = facts.package_manager_path
    logger.info("==> Checking for Homebrew...")
    state = ctx.toolchain or ToolchainState(package_manager_path=brew)
    ctx.toolchain = state

    if _is_executable(brew):
        ctx.success("Homebrew already installed")
        logger.debug("Found Homebrew at %s", brew)
        return state

    logger.info(
        "==> Homebrew not found. Installing (password required)... "
        "Buckle in, this will take a while."
    )
    sudo = run_command(ctx, ["sudo", "-v"], timeout=300)
    if not sudo["ok"]:
        ctx.fatal(
            "Failed to obtain sudo privileges, which are required for Homebrew "
            "installation. Please run the script again and provide the password "
            "when prompted."
        )

    url = ctx.config.package_manager.install_url
    run_task(
        ctx,
        "Installing Homebrew",
        ["/bin/bash", "-c", f'/bin/bash -c "$(curl -fsSL {shlex.quote(url)})"'],
        critical=True,
        env_overrides={"NONINTERACTIVE": "1"},
    )

    logger.info("==> Verifying Homebrew installation...")
    if not _is_executable(brew):
        ctx.fatal("Failed to install Homebrew. Ensure you have sudo privileges and try again.")
    ctx.success(f"Homebrew successfully installed at '{brew}'.")
    return state


def shellenv_line(brew: Path) -> str:
    return f'eval "$("{brew}" shellenv)"'


def activate_package_manager(ctx: SetupContext) -> None:
    """Persist ``brew shellenv`` in the profile and apply it to this process."""
    facts = ctx.require_facts()
    brew = facts.package_manager_path
    logger.info("==> Configuring shell environment for Homebrew...")
    if not _is_executable(brew):
        ctx.fatal(
            f"Homebrew executable not found at '{brew}'. Cannot configure shell "
            "environment. Run installation step first."
        )

    ensure_line_present(facts.shell_profile_path, shellenv_line(brew))

    # What `eval "$(brew shellenv)"` does to PATH, for this process only.
    prefix = brew.parent.parent
    entries = [str(prefix / "bin"), str(prefix / "sbin")]
    current = [p for p in (ctx.env.get("PATH") or "").split(os.pathsep) if p]
    ctx.env["PATH"] = os.pathsep.join(entries + [p for p in current if p not in entries])
    ctx.env["HOMEBREW_PREFIX"] = str(prefix)

    resolved = which(ctx, "brew")
    if not resolved:
        ctx.fatal(
            "Homebrew shell environment was configured in profile, but 'brew' command "
            "is still not found in the current session's PATH. Check "
            f"'{facts.shell_profile_path}' and potentially restart your terminal."
        )
    logger.debug("Verified 'brew' command is now available in PATH: %s", resolved)
    if ctx.toolchain is not None:
        ctx.toolchain.activated = True
    ctx.success(f"Found Homebrew at '{brew}'")


def update_package_manager(ctx: SetupContext) -> None:
    """Opt out of analytics and refresh the formula index.  Never fatal."""
    brew = str(ctx.require_facts().package_manager_path)
    logger.info("==> Updating Homebrew and applying configurations...")

    analytics = run_command(ctx, [brew, "analytics", "off"], timeout=60)
    if analytics["ok"]:
        logger.debug("Successfully disabled Homebrew analytics.")
    else:
        logger.debug(
            "Could not disable Homebrew analytics (%s). This is non-critical. Continuing...",
            analytics.get("error"),
        )

    result = run_task(ctx, "Updating Homebrew", [brew, "update"])
    if not result.ok:
        ctx.warn(result.message)


# ── Packages ────────────────────────────────────────────────────


def installed_packages(ctx: SetupContext) -> set[str]:
    """Names of the formulae Homebrew already has.  Empty on failure."""
    brew = str(ctx.require_facts().package_manager_path)
    r = run_command(ctx, [brew, "list", "--formula", "-1"], timeout=60)
    if not r["ok"]:
        logger.debug("Could not list installed packages: %s", r.get("error"))
        return set()
    return {line.strip() for line in r["stdout"].splitlines() if line.strip()}


def ensure_packages(ctx: SetupContext, packages: list[str] | None = None) -> dict[str, str]:
    """Install each missing package.  Failures are warnings.

    Returns:
        ``{package: "present" | "installed" | "failed"}``
    """
    packages = ctx.config.toolchain.packages if packages is None else packages
    if not packages:
        ctx.fatal("No packages set to install.")
    brew = str(ctx.require_facts().package_manager_path)
    logger.info("==> Installing required packages...")

    present = installed_packages(ctx)
    outcome: dict[str, str] = {}
    for package in packages:
        logger.debug("Checking for package: %s", package)
        if package in present:
            ctx.success(f"{package} is already installed")
            outcome[package] = "present"
            continue
        result = run_task(ctx, f"Installing '{package}'", [brew, "install", package])
        if result.ok:
            outcome[package] = "installed"
        else:
            ctx.warn(result.message)
            outcome[package] = "failed"
    return outcome


def verify_tools(ctx: SetupContext, tools: list[str] | None = None) -> dict[str, str]:
    """Fatal unless every tool resolves; lists all missing ones at once.

    Returns:
        ``{tool: resolved_path}``
    """
    tools = ctx.config.toolchain.tools_to_verify if tools is None else tools
    if not tools:
        ctx.fatal("Missing tools to verify.")
    logger.info("==> Verifying packages installation...")
    result = find_commands(ctx, tools)
    if result["missing"]:
        ctx.fatal(
            f"Critical tool(s) '{' '.join(result['missing'])}' are missing. "
            "Please install them."
        )
    for name, _path in result["found"]:
        ctx.success(f"{name} is available")
    return dict(result["found"])


# ── mise + Java ─────────────────────────────────────────────────


def _version_manager(ctx: SetupContext) -> str:
    name = ctx.config.toolchain.version_manager
    resolved = which(ctx, name)
    if not resolved:
        ctx.fatal(
            f"'{name}' command not found. Cannot continue. "
            f"Ensure {name} setup was successful."
        )
    return resolved


def activation_line(version_manager: str, keyword: str) -> str:
    return f'eval "$({version_manager} activate {keyword})"'


def configure_version_manager(ctx: SetupContext) -> str:
    """Add the mise activation line to the profile and activate once now."""
    facts = ctx.require_facts()
    logger.info("==> Configuring '%s'...", ctx.config.toolchain.version_manager)
    mise = _version_manager(ctx)
    logger.debug("mise executable found at: %s", mise)

    ensure_line_present(facts.shell_profile_path, activation_line(mise, facts.activation_keyword))

    r = run_command(ctx, [mise, "activate", facts.activation_keyword], timeout=60)
    if not r["ok"]:
        ctx.fatal("Failed to activate mise environment.")
    if ctx.toolchain is not None:
        ctx.toolchain.version_manager_path = Path(mise)
    ctx.success("mise environment configured and active for this session.")
    return mise


def latest_runtime_version(ctx: SetupContext, mise: str) -> str:
    """Ask mise for the newest runtime, falling back to a known-good one."""
    runtime = ctx.config.toolchain.runtime
    fallback = ctx.config.toolchain.fallback_runtime_version
    logger.debug("Determining latest recommended Java version using 'mise latest %s'...", runtime)
    r = run_command(ctx, [mise, "latest", runtime], timeout=120)
    version = r["stdout"].strip().splitlines()[0] if r["ok"] and r["stdout"].strip() else ""
    if not version:
        logger.debug("mise latest %s: %s", runtime, r.get("error") or "empty answer")
        ctx.warn(f"Could not determine the latest Java version; using {fallback}.")
        return fallback
    logger.info("==> Latest recommended Java version: %s", version)
    return version


def install_runtime_with_version_manager(ctx: SetupContext) -> str:
    """Install the JDK through mise and make it the global default.

    Returns:
        The installed version string.
    """
    logger.info("==> Downloading Java...")
    mise = _version_manager(ctx)
    version = latest_runtime_version(ctx, mise)
    tool_version = f"java@{version}"

    run_task(ctx, f"Installing Java {version}", [mise, "install", tool_version], critical=True)

    logger.info("==> Setting Java %s as the global default version...", version)
    r = run_command(ctx, [mise, "use", "--global", tool_version], timeout=120)
    if not r["ok"]:
        ctx.fatal(
            f"Failed to set Java {version} as the global default. Check log: {ctx.log_file}"
        )
    ctx.success(f"Successfully set Java {version} as the global default.")

    logger.info("==> Verifying Java installation...")
    check = run_command(ctx, [mise, "exec", "--", "java", "-version"], timeout=60)
    if check["ok"]:
        first = ((check.get("stderr") or "") + (check.get("stdout") or "")).strip().splitlines()
        logger.debug("Java: %s", first[0] if first else "")
        ctx.success(f"Java {version} is ready")
    else:
        ctx.warn(
            f"Java verification failed. Check log: {ctx.log_file}. You can try verifying "
            "manually after restarting your terminal by running: java -version"
        )

    if ctx.toolchain is not None:
        ctx.toolchain.runtime_version = version
    return version
