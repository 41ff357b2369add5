"""
L4 Execution — Web App URL validation and storage.

The downstream script reads the deployed Apps Script URL from
``<target>/webapp.url``.  Prompting is the CLI's job; this module only
cleans, checks and writes.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.services.bootstrap.execution.text_mutator import ensure_file_writable

logger = logging.getLogger(__name__)

WEBAPP_URL_PATTERN = re.compile(r"^https://script\.google\.com/macros/s/.+/exec$")

CANCEL_ANSWERS = frozenset({"q", "Q"})


def normalize_webapp_url(raw: str) -> str:
    """Trim whitespace and one pair of surrounding double quotes."""
    value = raw.strip()
    if value.endswith('"'):
        value = value[:-1]
    if value.startswith('"'):
        value = value[1:]
    return value


def is_valid_webapp_url(url: str) -> bool:
    return bool(WEBAPP_URL_PATTERN.match(url))


def webapp_url_path(ctx: SetupContext) -> Path:
    return ctx.require_target().path / ctx.config.target.webapp_url_file


def save_webapp_url(ctx: SetupContext, url: str) -> Path:
    """Write a validated URL to the target's web-app URL file.

    Raises:
        ValueError: ``url`` does not look like an Apps Script deployment.
    """
    if not is_valid_webapp_url(url):
        raise ValueError(f"Invalid Web App URL: {url}")
    path = webapp_url_path(ctx)
    ensure_file_writable(path, "Web App url")
    path.write_text(url + "\n", encoding="utf-8")
    logger.info("Web App URL saved to: %s", path)
    return path
