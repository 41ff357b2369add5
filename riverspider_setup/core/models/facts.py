"""
Run-scoped domain models.

None of these are persisted.  They are recomputed every run; the only
durable state is what the run leaves on the filesystem.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


ShellKind = Literal["bash", "zsh"]


class SystemFacts(BaseModel):
    """Fact sheet produced once by the environment probe.  Read-only."""

    model_config = ConfigDict(frozen=True)

    os_kind: str
    os_version: str = "Unknown"
    cpu_arch: str
    chip_label: str
    shell_kind: ShellKind
    shell_profile_path: Path
    activation_keyword: str         # what `mise activate` expects
    package_manager_path: Path      # fixed by cpu_arch, never searched for


class ToolchainState(BaseModel):
    """Package manager location and whether this process can use it yet."""

    package_manager_path: Path
    activated: bool = False
    version_manager_path: Path | None = None
    runtime_version: str | None = None


class TargetOrigin(StrEnum):
    """How the target directory came to exist."""

    FOUND_EXISTING = "found_existing"
    FRESHLY_DOWNLOADED = "freshly_downloaded"


class TargetDirectoryHandle(BaseModel):
    """The resolved target directory.  One live handle per run."""

    model_config = ConfigDict(frozen=True)

    path: Path
    origin: TargetOrigin

    @field_validator("path")
    @classmethod
    def _must_be_directory(cls, value: Path) -> Path:
        if not value.is_dir():
            raise ValueError(f"target directory does not exist: {value}")
        return value


class PatchRule(BaseModel):
    """One relative → absolute line substitution in the downstream script."""

    model_config = ConfigDict(frozen=True)

    old_line: str
    new_line: str
    description: str


class ProfileInjection(BaseModel):
    """A block of shell functions keyed by the function that marks it."""

    model_config = ConfigDict(frozen=True)

    marker: str                     # function name, e.g. "riverspider"
    block: str

    @property
    def declaration(self) -> str:
        return f"{self.marker}()"


class SetupReport(BaseModel):
    """Summary of a completed run, rendered by the CLI."""

    facts: SystemFacts | None = None
    target: TargetDirectoryHandle | None = None
    toolchain: ToolchainState | None = None
    patch_results: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    log_file: str | None = None
