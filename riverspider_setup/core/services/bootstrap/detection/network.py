"""
L3 Detection — Internet reachability.

Pings an ordered list of well-known domains, one attempt each with a
short timeout, and stops at the first answer.
"""

from __future__ import annotations

import logging
import platform
import subprocess
from typing import Callable

from riverspider_setup.core.context import SetupContext

logger = logging.getLogger(__name__)

Pinger = Callable[[str, int], bool]


def ping_once(domain: str, timeout: int) -> bool:
    """Send a single ICMP echo.  True when the host answered in time."""
    # BSD ping takes the overall deadline in seconds via -t; -W is per reply in ms.
    if platform.system() == "Darwin":
        cmd = ["ping", "-c", "1", "-t", str(timeout), domain]
    else:
        cmd = ["ping", "-c", "1", "-W", str(timeout), domain]
    try:
        r = subprocess.run(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout + 2,
        )
        return r.returncode == 0
    except subprocess.TimeoutExpired:
        logger.debug("ping %s timed out", domain)
    except OSError as exc:
        logger.debug("ping %s failed: %s", domain, exc)
    return False


def check_internet(ctx: SetupContext, pinger: Pinger | None = None) -> str:
    """Fatal unless one of the configured domains answers.

    Returns:
        The domain that answered.
    """
    logger.info("==> Checking internet connectivity...")
    pinger = pinger or ping_once
    timeout = ctx.config.ping_timeout
    for domain in ctx.config.check_domains:
        logger.debug("Attempting to ping %s...", domain)
        if pinger(domain, timeout):
            ctx.success("Internet connection 'OK'")
            return domain
    ctx.fatal("No internet connection detected. Please check your network.")
