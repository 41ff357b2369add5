"""
Configuration loader — reads setup.yml into a SetupConfig.

The file is optional.  When none is found every setting keeps its
default, which reproduces the stock installation.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from riverspider_setup.core.errors import FatalSetupError
from riverspider_setup.core.models.config import SetupConfig

logger = logging.getLogger(__name__)

# Default config filename
SETUP_CONFIG_FILE = "setup.yml"

# Env var that points at an explicit config file
CONFIG_ENV_VAR = "RSP_CONFIG"


class ConfigError(FatalSetupError):
    """Raised when setup configuration is invalid or unreadable."""


def find_config_file(
    start_dir: Path | None = None,
    home: Path | None = None,
) -> Path | None:
    """Locate setup.yml.

    Order: ``$RSP_CONFIG``, ``<start_dir>/setup.yml``,
    ``~/.config/riverspider/setup.yml``.

    Returns:
        Path to the first existing candidate, or None.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit).expanduser()

    candidates = [
        (start_dir or Path.cwd()) / SETUP_CONFIG_FILE,
        (home or Path.home()) / ".config" / "riverspider" / SETUP_CONFIG_FILE,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None = None) -> SetupConfig:
    """Load and validate setup configuration.

    Args:
        path: Explicit path to setup.yml.  If None, searches the default
            locations and falls back to built-in defaults.

    Returns:
        Validated SetupConfig.

    Raises:
        ConfigError: If an explicit file is missing or any file is invalid.
    """
    explicit = path is not None
    if path is None:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found, using built-in defaults", SETUP_CONFIG_FILE)
        return SetupConfig()

    if not path.is_file():
        if explicit or os.environ.get(CONFIG_ENV_VAR):
            raise ConfigError(f"Config file not found: {path}")
        return SetupConfig()

    logger.debug("Loading setup config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return SetupConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "setup" key or be flat
    setup_data = data.get("setup", data) if isinstance(data.get("setup"), dict) else data

    try:
        config = SetupConfig.model_validate(setup_data)
    except Exception as e:
        raise ConfigError(f"Invalid setup configuration: {e}") from e

    logger.info("Loaded setup config from %s", path)
    return config
