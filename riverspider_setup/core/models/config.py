"""
SetupConfig — every tunable of a setup run.

Loaded from setup.yml (all fields optional).  Defaults reproduce the
stock riverSpider installation on macOS, so an empty file and a missing
file mean the same thing.
"""

from __future__ import annotations

import tempfile

from pydantic import BaseModel, Field


class ProfileNames(BaseModel):
    """Default profile filename per supported shell."""

    zsh: str = ".zprofile"
    bash: str = ".bash_profile"


class PackageManagerSettings(BaseModel):
    """Where Homebrew lives and how to install it."""

    install_url: str = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
    arm_path: str = "/opt/homebrew/bin/brew"
    intel_path: str = "/usr/local/bin/brew"


class ToolchainSettings(BaseModel):
    """Commands, packages and runtime the bundle depends on."""

    required_commands: list[str] = Field(default_factory=lambda: [
        "mkdir", "rm", "dirname", "basename", "realpath", "touch", "cat",
        "echo", "printf", "head", "ping", "curl", "unzip", "git", "uname",
        "sw_vers", "grep", "sed", "tr", "sleep",
    ])
    packages: list[str] = Field(default_factory=lambda: ["coreutils", "wget", "mise", "fd"])
    tools_to_verify: list[str] = Field(default_factory=lambda: ["timeout", "wget", "mise", "fd"])
    version_manager: str = "mise"
    search_tool: str = "fd"
    runtime: str = "java@openjdk"
    fallback_runtime_version: str = "openjdk-21.0.2"


class TargetSettings(BaseModel):
    """The downloadable project bundle and the files inside it."""

    dir_name: str = "riverSpider"
    marker_file: str = "submit.sh"
    env_var: str = "RIVER_SPIDER_DIR"
    archive_name: str = "riverSpiderForMac.zip"
    archive_file_id: str = "1g63nlTRa-Ibgj0ZUf3HX1fbdSrW90JBs"
    archive_url: str = (
        "https://drive.usercontent.google.com/download"
        "?id={file_id}&export=download&confirm=t"
    )
    secret_file: str = "secretString.txt"
    webapp_url_file: str = "webapp.url"
    logisim_jar: str = "logisim310.jar"
    processor_circ: str = "processor0004.circ"
    urlencode_sed: str = "urlencode.sed"
    test_file: str = "test.ttpasm"
    # Classroom tooling only: written when the secret file is empty.
    default_secret: str = "1234!@#$qwerQWER"

    def resolved_archive_url(self) -> str:
        """Archive URL with the file id substituted."""
        return self.archive_url.format(file_id=self.archive_file_id)


class SetupConfig(BaseModel):
    """Root configuration model — loaded from setup.yml."""

    expected_os: str = "Darwin"
    check_domains: list[str] = Field(
        default_factory=lambda: ["www.google.com", "www.apple.com", "github.com"],
    )
    ping_timeout: int = 3

    profiles: ProfileNames = Field(default_factory=ProfileNames)
    package_manager: PackageManagerSettings = Field(default_factory=PackageManagerSettings)
    toolchain: ToolchainSettings = Field(default_factory=ToolchainSettings)
    target: TargetSettings = Field(default_factory=TargetSettings)

    max_resolve_attempts: int = Field(default=3, ge=1)
    spinner_interval: float = Field(default=0.1, gt=0)
    log_dir: str = Field(default_factory=tempfile.gettempdir)
