"""
L4 Execution — Core subprocess runner.

The single place where the installer starts external programs.  Two
entry points:

    run_command   short, blocking call; output captured, result dict
    run_task      long-running step (install, download, unzip, search);
                  launched in the background and polled at a fixed
                  interval while a spinner ticks, then classified

Classification is the caller's decision: ``run_task(critical=True)``
raises FatalSetupError on failure, ``critical=False`` hands the failed
TaskResult back so the caller can warn and continue.

Both append the child's stderr (and, unless captured, stdout) to the
run log file.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Callable

import click

from riverspider_setup.core.context import SetupContext

logger = logging.getLogger(__name__)

SPIN_CHARS = "-\\|/"

# Task labels are present-participle phrases; these turn them into the
# past-tense success line and the imperative failure line.
_PAST_TENSE: tuple[tuple[str, str], ...] = (
    ("Downloading ", "downloaded "),
    ("Unzipping ", "unzipped "),
    ("Installing ", "installed "),
    ("Searching for ", "found "),
    ("Updating ", "updated "),
)
_IMPERATIVE: tuple[tuple[str, str], ...] = (
    ("Downloading ", "download "),
    ("Unzipping ", "unzip "),
    ("Installing ", "install "),
    ("Searching for ", "find "),
    ("Updating ", "update "),
)

ProgressCallback = Callable[[str, int], None]


def _rewrite(label: str, table: tuple[tuple[str, str], ...]) -> str:
    for prefix, replacement in table:
        if label.startswith(prefix):
            return replacement + label[len(prefix):]
    return label


def success_message(label: str) -> str:
    """``"Installing 'fd'"`` → ``"Successfully installed 'fd'"``."""
    return f"Successfully {_rewrite(label, _PAST_TENSE)}"


def failure_message(label: str, log_file: Path | None) -> str:
    """``"Installing 'fd'"`` → ``"Failed to install 'fd'. Check the log file: …"``."""
    msg = f"Failed to {_rewrite(label, _IMPERATIVE)}."
    if log_file:
        msg += f" Check the log file: {log_file}"
    return msg


@dataclass
class TaskResult:
    """Outcome of one background task."""

    label: str
    ok: bool
    returncode: int
    stdout: str = ""
    message: str = ""
    elapsed_ms: int = 0


# ── Spinner ─────────────────────────────────────────────────────


def terminal_spinner(label: str, tick: int) -> None:
    """Default progress callback: one spinner frame on stderr."""
    click.echo(f"\r {label} {SPIN_CHARS[tick % len(SPIN_CHARS)]} ", nl=False, err=True)


def _clear_spinner(label: str) -> None:
    click.echo("\r" + " " * (len(label) + 4) + "\r", nl=False, err=True)


# ── Helpers ─────────────────────────────────────────────────────


def _child_env(ctx: SetupContext, overrides: dict[str, str] | None) -> dict[str, str]:
    env = dict(ctx.env) if ctx.env else os.environ.copy()
    if overrides:
        for key, value in overrides.items():
            env[key] = os.path.expandvars(value)
    return env


def _open_log(ctx: SetupContext) -> IO[Any] | int:
    if ctx.log_file is None:
        return subprocess.DEVNULL
    return open(ctx.log_file, "a", encoding="utf-8")


# ── Blocking call ───────────────────────────────────────────────


def run_command(
    ctx: SetupContext,
    cmd: list[str],
    *,
    timeout: int = 120,
    env_overrides: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Run a short command and capture its output.

    Returns:
        ``{"ok": True, "stdout": "...", "stderr": "...", "returncode": 0,
        "elapsed_ms": N}`` or ``{"ok": False, "error": "...", ...}``.
    """
    logger.debug("Running command: %s", " ".join(cmd))
    start = time.monotonic()
    try:
        r = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=_child_env(ctx, env_overrides),
        )
    except FileNotFoundError:
        return {"ok": False, "returncode": 127, "stdout": "", "error": f"Command not found: {cmd[0]}"}
    except subprocess.TimeoutExpired:
        return {"ok": False, "returncode": -1, "stdout": "", "error": f"Timed out after {timeout}s"}
    except OSError as exc:
        return {"ok": False, "returncode": -1, "stdout": "", "error": str(exc)}

    elapsed = int((time.monotonic() - start) * 1000)
    if r.stderr:
        logger.debug("%s stderr: %s", cmd[0], r.stderr.strip()[:2000])

    if r.returncode != 0:
        return {
            "ok": False,
            "returncode": r.returncode,
            "stdout": r.stdout,
            "stderr": r.stderr,
            "error": (r.stderr.strip() or f"exit code {r.returncode}")[:500],
            "elapsed_ms": elapsed,
        }
    return {
        "ok": True,
        "returncode": 0,
        "stdout": r.stdout,
        "stderr": r.stderr,
        "elapsed_ms": elapsed,
    }


# ── Background task with progress ───────────────────────────────


def run_task(
    ctx: SetupContext,
    label: str,
    cmd: list[str],
    *,
    critical: bool = False,
    capture_stdout: bool = False,
    report_success: bool = True,
    env_overrides: dict[str, str] | None = None,
    progress: ProgressCallback | None = None,
) -> TaskResult:
    """Launch ``cmd`` in the background and wait for it, ticking progress.

    Args:
        ctx: Run context (log file, environment, spinner settings).
        label: Present-participle task name, e.g. ``"Installing 'fd'"``.
        cmd: Command list for ``subprocess.Popen``.
        critical: Raise FatalSetupError when the task fails.
        capture_stdout: Return stdout instead of sending it to the log.
        report_success: Log the success line.  Off when only the caller
            can tell whether the output means success.
        env_overrides: Extra environment for the child.
        progress: Called once per poll interval with ``(label, tick)``.
            Defaults to the terminal spinner when ``ctx.show_progress``.

    Returns:
        TaskResult.  Only successful results come back from critical tasks.
    """
    if progress is None and ctx.show_progress:
        progress = terminal_spinner
    interval = ctx.config.spinner_interval

    logger.debug("Starting task '%s': %s", label, " ".join(cmd))
    start = time.monotonic()
    log_handle = _open_log(ctx)
    stdout_sink: IO[Any] | int = (
        tempfile.TemporaryFile(mode="w+", encoding="utf-8") if capture_stdout else log_handle
    )
    stdout = ""
    try:
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=stdout_sink,
                stderr=log_handle,
                env=_child_env(ctx, env_overrides),
            )
        except OSError as exc:
            logger.debug("Task '%s' could not start: %s", label, exc)
            returncode = 127
        else:
            tick = 0
            while proc.poll() is None:
                if progress is not None:
                    progress(label, tick)
                tick += 1
                time.sleep(interval)
            returncode = proc.wait()
            if progress is terminal_spinner:
                _clear_spinner(label)

        if capture_stdout and not isinstance(stdout_sink, int):
            stdout_sink.seek(0)
            stdout = stdout_sink.read()
    finally:
        if capture_stdout and not isinstance(stdout_sink, int):
            stdout_sink.close()
        if not isinstance(log_handle, int):
            log_handle.close()

    elapsed = int((time.monotonic() - start) * 1000)
    logger.debug("Task '%s' finished with exit status %s.", label, returncode)

    if returncode == 0:
        message = success_message(label)
        if report_success:
            ctx.success(message)
        return TaskResult(label, True, 0, stdout, message, elapsed)

    message = failure_message(label, ctx.log_file)
    if critical:
        ctx.fatal(message)
    return TaskResult(label, False, returncode, stdout, message, elapsed)


def stderr_is_tty() -> bool:
    return sys.stderr.isatty()
