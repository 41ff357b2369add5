"""
Domain models — Pydantic types for the setup run.

All models are re-exported here for convenient access:

    from riverspider_setup.core.models import SetupConfig, SystemFacts
"""

from riverspider_setup.core.models.config import (
    PackageManagerSettings,
    ProfileNames,
    SetupConfig,
    TargetSettings,
    ToolchainSettings,
)
from riverspider_setup.core.models.facts import (
    PatchRule,
    ProfileInjection,
    SetupReport,
    ShellKind,
    SystemFacts,
    TargetDirectoryHandle,
    TargetOrigin,
    ToolchainState,
)

__all__ = [
    # config.py
    "PackageManagerSettings",
    "ProfileNames",
    "SetupConfig",
    "TargetSettings",
    "ToolchainSettings",
    # facts.py
    "PatchRule",
    "ProfileInjection",
    "SetupReport",
    "ShellKind",
    "SystemFacts",
    "TargetDirectoryHandle",
    "TargetOrigin",
    "ToolchainState",
]
