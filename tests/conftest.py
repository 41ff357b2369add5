"""
Shared test fixtures and configuration.

Every fixture works inside ``tmp_path``: a fake home directory, a bin
directory for stand-in executables, and a SetupContext wired to both.
"""

import logging
import os
import platform
import textwrap
from pathlib import Path

import pytest

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.models import SetupConfig, SystemFacts

SUBMIT_SH = textwrap.dedent("""\
    #!/bin/bash
    # riverSpider submit script
    secretPath=secretString.txt
    webappUrlPath=webapp.url
    logisimPath=logisim310.jar
    processorCircPath=processor0004.circ
    urlencodeSedPath=urlencode.sed
    echo "submitting $1"
""")


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Return a temporary home directory."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    return home_dir


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    """Return a directory for stand-in executables, first on PATH."""
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def make_command(bin_dir: Path):
    """Factory writing a small sh script into ``bin_dir``."""

    def _make(name: str, body: str = "exit 0") -> Path:
        path = bin_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(0o755)
        return path

    return _make


@pytest.fixture
def config(tmp_path: Path) -> SetupConfig:
    return SetupConfig(log_dir=str(tmp_path / "logs"), spinner_interval=0.01)


@pytest.fixture
def ctx(config: SetupConfig, home: Path, bin_dir: Path, tmp_path: Path) -> SetupContext:
    """SetupContext isolated from the real machine."""
    env = {
        "HOME": str(home),
        "SHELL": "/bin/zsh",
        "PATH": os.pathsep.join([str(bin_dir), os.environ.get("PATH", "/usr/bin:/bin")]),
    }
    return SetupContext(config=config, home=home, env=env, log_file=tmp_path / "setup.log")


@pytest.fixture
def facts(ctx: SetupContext, home: Path, bin_dir: Path) -> SystemFacts:
    """Fact sheet for a zsh user on Apple Silicon, stored on ``ctx``."""
    profile = home / ".zprofile"
    profile.touch()
    ctx.facts = SystemFacts(
        os_kind="Darwin",
        os_version="14.5",
        cpu_arch="arm64",
        chip_label="Apple Silicon",
        shell_kind="zsh",
        shell_profile_path=profile,
        activation_keyword="zsh",
        package_manager_path=bin_dir / "brew",
    )
    return ctx.facts


@pytest.fixture
def target_dir(home: Path) -> Path:
    """An unpacked riverSpider bundle somewhere under home."""
    path = home / "Documents" / "courses" / "riverSpider"
    path.mkdir(parents=True)
    (path / "submit.sh").write_text(SUBMIT_SH)
    (path / "secretString.txt").write_text("")
    return path


@pytest.fixture
def submit_sh() -> str:
    """Pristine submit.sh as shipped in the bundle."""
    return SUBMIT_SH


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Drop the handlers setup_logging() installs during a test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def macos_arm(monkeypatch):
    """Pretend to be an Apple Silicon Mac."""
    monkeypatch.setattr(platform, "system", lambda: "Darwin")
    monkeypatch.setattr(platform, "machine", lambda: "arm64")
    monkeypatch.setattr(platform, "mac_ver", lambda: ("14.5", ("", "", ""), "arm64"))
