"""
L4 Projection — Point the profile and the downstream script at the target.

    export_target_dir        one ``export RIVER_SPIDER_DIR="…"`` line in
                             the profile, converged in place
    absolutize_script_paths  the five relative declarations in submit.sh
                             rewritten to absolute paths, independently
    inject_shell_functions   the function block appended once, keyed by
                             the ``riverspider()`` declaration

Nothing here is fatal except an unwritable file: a line that does not
match or a block that cannot be verified is reported and the run goes on.
"""

from __future__ import annotations

import logging

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.models.facts import ProfileInjection
from riverspider_setup.core.services.bootstrap.data.patch_rules import build_patch_rules
from riverspider_setup.core.services.bootstrap.data.shell_functions import render_function_block
from riverspider_setup.core.services.bootstrap.execution.text_mutator import (
    MutationStatus,
    append_block,
    contains_declaration,
    ensure_file_writable,
    replace_exact_line,
    replace_or_append_pattern,
)
from riverspider_setup.core.services.bootstrap.resolver.locator import shell_locator

logger = logging.getLogger(__name__)


def export_line(env_var: str, value: str) -> str:
    return f'export {env_var}="{value}"'


def export_target_dir(ctx: SetupContext) -> MutationStatus:
    """Persist the target directory in the profile and in this process."""
    facts = ctx.require_facts()
    handle = ctx.require_target()
    env_var = ctx.config.target.env_var

    ctx.env[env_var] = str(handle.path)
    logger.debug("Exported %s='%s' for the current session.", env_var, handle.path)

    line = export_line(env_var, str(handle.path))
    try:
        status = replace_or_append_pattern(facts.shell_profile_path, f"export {env_var}=", line)
    except OSError as e:
        logger.debug("Updating %s failed: %s", facts.shell_profile_path, e)
        ctx.warn(f"Could not add {env_var} to {facts.shell_profile_path}. Add manually: {line}")
        return MutationStatus.FAILED
    logger.debug("%s in %s: %s", env_var, facts.shell_profile_path, status)
    return status


def absolutize_script_paths(ctx: SetupContext) -> dict[str, MutationStatus]:
    """Rewrite every relative path declaration in the downstream script.

    Each rule is applied on its own; a missing line only skips that rule.

    Returns:
        ``{rule description: MutationStatus}``
    """
    handle = ctx.require_target()
    settings = ctx.config.target
    script = handle.path / settings.marker_file
    ensure_file_writable(script, settings.marker_file)
    logger.info("==> Updating paths in the %s submit script...", settings.dir_name)

    results: dict[str, MutationStatus] = {}
    for rule in build_patch_rules(handle.path, settings):
        logger.debug("Attempting to update %s", script)
        logger.debug("  Old line expected: '%s'", rule.old_line)
        logger.debug("  New line content: '%s'", rule.new_line)
        status = replace_exact_line(script, rule.old_line, rule.new_line)
        results[rule.description] = status

        if status == MutationStatus.UNCHANGED:
            ctx.success(
                f" - {rule.description} path appears to be already correctly set "
                f"in {settings.marker_file}."
            )
        elif status == MutationStatus.REPLACED:
            ctx.success(f" - Updated path for '{rule.description}' in {settings.marker_file}.")
        elif status == MutationStatus.SKIPPED:
            ctx.warn(f" - Could not find '{rule.description}' in '{settings.marker_file}'")
        else:
            ctx.warn(
                f" - Couldn't update path for '{rule.description}' in {settings.marker_file}."
            )
    return results


def function_block(ctx: SetupContext) -> ProfileInjection:
    """The profile function block rendered for this configuration."""
    settings = ctx.config.target
    locator = shell_locator(ctx.config.toolchain.search_tool, settings.marker_file, settings.dir_name)
    return render_function_block(settings, ctx.config.profiles, locator=locator)


def inject_shell_functions(ctx: SetupContext) -> MutationStatus:
    """Append the function block unless its marker function is declared."""
    facts = ctx.require_facts()
    profile = facts.shell_profile_path
    injection = function_block(ctx)
    logger.info("==> Setting up River Spider helper function...")

    ensure_file_writable(profile)
    if contains_declaration(profile, injection.marker):
        ctx.success(f"'{injection.marker}' helper function already in shell profile")
        return MutationStatus.UNCHANGED

    logger.info("==> Adding River Spider helper function...")
    try:
        append_block(profile, injection.block)
    except OSError as e:
        logger.debug("Appending function block to %s failed: %s", profile, e)

    if contains_declaration(profile, injection.marker):
        ctx.success(f"Added '{injection.marker}' helper function to shell profile")
        return MutationStatus.APPENDED

    ctx.warn(
        f"Failed to add '{injection.marker}' helper function. Add the block printed by "
        f"'riverspider-setup target functions' to {profile} manually."
    )
    return MutationStatus.FAILED


def project_config(ctx: SetupContext) -> dict[str, str]:
    """Run every projection step.  Returns a status per step for the report."""
    results: dict[str, str] = {}
    env_var = ctx.config.target.env_var
    status = export_target_dir(ctx)
    results[env_var] = str(status)
    for description, path_status in absolutize_script_paths(ctx).items():
        results[description] = str(path_status)
    results["shell functions"] = str(inject_shell_functions(ctx))
    return results
