"""
Tests for the dependency installer — Homebrew, packages, tool
verification, mise and Java.

External programs are replaced by recording fakes of ``run_command``
and ``run_task``.
"""

from pathlib import Path

import pytest

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.errors import FatalSetupError
from riverspider_setup.core.models import SystemFacts, ToolchainState
from riverspider_setup.core.services.bootstrap.execution import installer
from riverspider_setup.core.services.bootstrap.execution.subprocess_runner import (
    TaskResult,
    failure_message,
    success_message,
)


class FakeRunner:
    """Records commands; answers from a table keyed by argv[1:]."""

    def __init__(self, answers: dict | None = None, failing_tasks: set | None = None):
        self.answers = answers or {}
        self.failing_tasks = failing_tasks or set()
        self.commands: list[list[str]] = []
        self.tasks: list[tuple[str, list[str], bool]] = []

    def run_command(self, ctx, cmd, *, timeout=120, env_overrides=None):
        self.commands.append(cmd)
        return self.answers.get(tuple(cmd[1:]), {"ok": True, "returncode": 0, "stdout": ""})

    def run_task(self, ctx, label, cmd, *, critical=False, capture_stdout=False,
                 env_overrides=None, progress=None):
        self.tasks.append((label, cmd, critical))
        if label in self.failing_tasks:
            message = failure_message(label, ctx.log_file)
            if critical:
                ctx.fatal(message)
            return TaskResult(label, False, 1, "", message)
        return TaskResult(label, True, 0, "", success_message(label))


@pytest.fixture
def runner(monkeypatch) -> FakeRunner:
    fake = FakeRunner()
    monkeypatch.setattr(installer, "run_command", fake.run_command)
    monkeypatch.setattr(installer, "run_task", fake.run_task)
    return fake


@pytest.fixture
def brew(make_command) -> Path:
    return make_command("brew")


class TestPackageManager:
    """Tests for Homebrew install and activation."""

    def test_present_brew_is_left_alone(self, ctx: SetupContext, facts: SystemFacts, brew, runner):
        state = installer.ensure_package_manager(ctx)
        assert state.package_manager_path == brew
        assert runner.commands == []
        assert runner.tasks == []

    def test_sudo_refused_is_fatal(self, ctx: SetupContext, facts: SystemFacts, runner):
        runner.answers[("-v",)] = {"ok": False, "returncode": 1, "stdout": "", "error": "no"}
        with pytest.raises(FatalSetupError, match="sudo privileges"):
            installer.ensure_package_manager(ctx)
        assert runner.tasks == []

    def test_install_runs_noninteractive_script(self, ctx: SetupContext, facts: SystemFacts, runner):
        with pytest.raises(FatalSetupError, match="Failed to install Homebrew"):
            installer.ensure_package_manager(ctx)
        label, cmd, critical = runner.tasks[0]
        assert label == "Installing Homebrew"
        assert critical is True
        assert "install.sh" in cmd[-1]

    def test_activation_is_idempotent(self, ctx: SetupContext, facts: SystemFacts, brew, runner):
        ctx.toolchain = ToolchainState(package_manager_path=brew)
        installer.activate_package_manager(ctx)
        installer.activate_package_manager(ctx)

        line = installer.shellenv_line(brew)
        assert facts.shell_profile_path.read_text().splitlines().count(line) == 1
        assert ctx.env["PATH"].split(":")[0] == str(brew.parent)
        assert ctx.toolchain.activated is True

    def test_update_failure_is_a_warning(self, ctx: SetupContext, facts: SystemFacts, brew, monkeypatch):
        fake = FakeRunner(failing_tasks={"Updating Homebrew"})
        fake.answers[("analytics", "off")] = {"ok": False, "returncode": 1, "stdout": "", "error": "x"}
        monkeypatch.setattr(installer, "run_command", fake.run_command)
        monkeypatch.setattr(installer, "run_task", fake.run_task)

        installer.update_package_manager(ctx)
        assert len(ctx.warnings) == 1
        assert ctx.warnings[0].startswith("Failed to update Homebrew.")


class TestPackages:
    """Tests for package installation and verification."""

    def test_installs_only_missing(self, ctx: SetupContext, facts: SystemFacts, brew, runner):
        runner.answers[("list", "--formula", "-1")] = {
            "ok": True, "returncode": 0, "stdout": "coreutils\nwget\n",
        }
        outcome = installer.ensure_packages(ctx)
        assert outcome == {
            "coreutils": "present",
            "wget": "present",
            "mise": "installed",
            "fd": "installed",
        }
        assert [cmd[1:] for _, cmd, _ in runner.tasks] == [["install", "mise"], ["install", "fd"]]

    def test_failed_install_warns_and_continues(self, ctx: SetupContext, facts: SystemFacts, brew, monkeypatch):
        fake = FakeRunner(failing_tasks={"Installing 'mise'"})
        monkeypatch.setattr(installer, "run_command", fake.run_command)
        monkeypatch.setattr(installer, "run_task", fake.run_task)

        outcome = installer.ensure_packages(ctx, ["mise", "fd"])
        assert outcome == {"mise": "failed", "fd": "installed"}
        assert ctx.warnings == [failure_message("Installing 'mise'", ctx.log_file)]

    def test_empty_package_list_is_fatal(self, ctx: SetupContext, facts: SystemFacts, runner):
        ctx.config.toolchain.packages = []
        with pytest.raises(FatalSetupError, match="No packages"):
            installer.ensure_packages(ctx)

    def test_verify_reports_all_missing_at_once(self, ctx: SetupContext, make_command):
        make_command("wget")
        with pytest.raises(FatalSetupError) as exc_info:
            installer.verify_tools(ctx, ["wget", "rsp-gone-a", "rsp-gone-b"])
        assert "'rsp-gone-a rsp-gone-b'" in str(exc_info.value)

    def test_verify_returns_paths(self, ctx: SetupContext, make_command):
        fd = make_command("fd")
        assert installer.verify_tools(ctx, ["fd"]) == {"fd": str(fd)}


class TestRuntime:
    """Tests for mise and the JDK."""

    def test_activation_line_added_once(self, ctx: SetupContext, facts: SystemFacts, make_command, runner):
        mise = make_command("mise")
        installer.configure_version_manager(ctx)
        installer.configure_version_manager(ctx)
        line = installer.activation_line(str(mise), "zsh")
        assert facts.shell_profile_path.read_text().splitlines().count(line) == 1

    def test_missing_mise_is_fatal(self, ctx: SetupContext, facts: SystemFacts, runner):
        ctx.config.toolchain.version_manager = "rsp-no-mise"
        with pytest.raises(FatalSetupError, match="'rsp-no-mise' command not found"):
            installer.configure_version_manager(ctx)

    def test_latest_version_fallback_warns(self, ctx: SetupContext, make_command, runner):
        runner.answers[("latest", "java@openjdk")] = {"ok": False, "returncode": 1, "stdout": ""}
        assert installer.latest_runtime_version(ctx, "mise") == "openjdk-21.0.2"
        assert len(ctx.warnings) == 1

    def test_install_and_set_global(self, ctx: SetupContext, facts: SystemFacts, make_command, runner):
        mise = str(make_command("mise"))
        runner.answers[("latest", "java@openjdk")] = {
            "ok": True, "returncode": 0, "stdout": "openjdk-23.0.1\n",
        }
        ctx.toolchain = ToolchainState(package_manager_path=facts.package_manager_path)

        version = installer.install_runtime_with_version_manager(ctx)
        assert version == "openjdk-23.0.1"
        assert runner.tasks == [("Installing Java openjdk-23.0.1", [mise, "install", "java@openjdk-23.0.1"], True)]
        assert [mise, "use", "--global", "java@openjdk-23.0.1"] in runner.commands
        assert ctx.toolchain.runtime_version == "openjdk-23.0.1"
        assert ctx.warnings == []

    def test_set_global_failure_is_fatal(self, ctx: SetupContext, facts: SystemFacts, make_command, runner):
        make_command("mise")
        runner.answers[("latest", "java@openjdk")] = {"ok": True, "returncode": 0, "stdout": "21\n"}
        runner.answers[("use", "--global", "java@21")] = {"ok": False, "returncode": 1, "stdout": ""}
        with pytest.raises(FatalSetupError, match="global default"):
            installer.install_runtime_with_version_manager(ctx)
