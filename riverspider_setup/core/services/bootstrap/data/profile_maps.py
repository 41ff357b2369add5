"""
L0 Data — Shell profile and architecture mappings.

Maps the two supported shells to their profile file and the keyword
``mise activate`` expects, and the two supported CPU architectures to
the Homebrew location and a human label.
"""

from __future__ import annotations

from riverspider_setup.core.models.config import PackageManagerSettings, ProfileNames

SUPPORTED_SHELLS: tuple[str, ...] = ("zsh", "bash")

# shell → (env var that relocates the profile dir, mise activation keyword)
_SHELL_MAP: dict[str, dict[str, str | None]] = {
    "zsh": {"profile_dir_var": "ZDOTDIR", "activation": "zsh"},
    "bash": {"profile_dir_var": None, "activation": "bash"},
}

_CHIP_LABELS: dict[str, str] = {
    "arm64": "Apple Silicon",
    "x86_64": "Intel Processor",
}


def profile_basename(shell: str, names: ProfileNames) -> str:
    """Configured profile filename for a supported shell."""
    return getattr(names, shell)


def profile_dir_var(shell: str) -> str | None:
    """Env var that overrides the profile directory, if the shell has one."""
    return _SHELL_MAP[shell]["profile_dir_var"]


def activation_keyword(shell: str) -> str:
    return _SHELL_MAP[shell]["activation"] or shell


def chip_label(arch: str) -> str | None:
    return _CHIP_LABELS.get(arch)


def package_manager_path(arch: str, settings: PackageManagerSettings) -> str | None:
    """Fixed Homebrew location for an architecture, None if unsupported."""
    if arch == "arm64":
        return settings.arm_path
    if arch == "x86_64":
        return settings.intel_path
    return None
