"""
Logging configuration — central setup for the CLI entrypoint.

Called once at startup by main.py.  Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Console levels are resolved in precedence order:
    CLI flag  >  RSP_LOG_LEVEL env var  >  INFO (default)

Every run also writes a timestamped log file at DEBUG level.  Child
processes launched by the process runner append to the same file, so
it holds the full story of a run.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

# ── Format strings ──────────────────────────────────────────────

# INFO / WARNING level: what the user reads while the installer runs
_FMT_MINIMAL = "%(message)s"

# DEBUG level: full diagnostic with module context
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d | %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

# File output: always full detail
_FMT_FILE = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

LOG_FILE_PREFIX = "riverspider_setup_"


def default_log_file(log_dir: str | Path, now: datetime | None = None) -> Path:
    """Per-run log file path: ``<log_dir>/riverspider_setup_YYYYmmdd_HHMMSS.log``."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return Path(log_dir) / f"{LOG_FILE_PREFIX}{stamp}.log"


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    log_file_level: str | None = "DEBUG",
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Console log level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path to the run log file.  Truncated and
            stamped with a start banner.
        log_file_level: Level for the log file.  Defaults to DEBUG.
    """
    numeric_level = _parse_level(level)

    # ── Console handler (stderr) ────────────────────────────────
    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_DEBUG
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    # ── Root logger ─────────────────────────────────────────────
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    effective_level = numeric_level

    # ── File handler ────────────────────────────────────────────
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _write_banner(path)

        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    # Don't propagate exceptions from logging itself
    logging.raiseExceptions = False


def _write_banner(path: Path) -> None:
    rule = "─" * 49
    path.write_text(
        f"{rule}\nSetup started at {datetime.now():%c}\n{rule}\n",
        encoding="utf-8",
    )


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.INFO
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.INFO
    return numeric
