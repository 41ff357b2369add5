"""
Tests for configuration loading — setup.yml discovery, validation,
defaults.
"""

import textwrap
from pathlib import Path

import pytest

from riverspider_setup.core.config.loader import ConfigError, find_config_file, load_config
from riverspider_setup.core.errors import FatalSetupError
from riverspider_setup.core.models import SetupConfig


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path: Path):
    """No RSP_CONFIG, cwd and home inside tmp_path."""
    monkeypatch.delenv("RSP_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    (tmp_path / "home").mkdir()
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    """Tests for built-in defaults."""

    def test_no_file_gives_defaults(self):
        config = load_config()
        assert config == SetupConfig()
        assert config.target.dir_name == "riverSpider"
        assert config.toolchain.packages == ["coreutils", "wget", "mise", "fd"]
        assert config.max_resolve_attempts == 3

    def test_archive_url(self):
        url = SetupConfig().target.resolved_archive_url()
        assert "id=1g63nlTRa-Ibgj0ZUf3HX1fbdSrW90JBs" in url
        assert url.startswith("https://drive.usercontent.google.com/download")

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        path = tmp_path / "setup.yml"
        path.write_text("")
        assert load_config(path) == SetupConfig()


class TestLoading:
    """Tests for reading setup.yml."""

    def test_flat_file(self, tmp_path: Path):
        path = tmp_path / "custom.yml"
        path.write_text(textwrap.dedent("""\
            max_resolve_attempts: 5
            check_domains: [example.com]
            target:
              dir_name: riverSpiderDev
        """))
        config = load_config(path)
        assert config.max_resolve_attempts == 5
        assert config.check_domains == ["example.com"]
        assert config.target.dir_name == "riverSpiderDev"
        assert config.target.marker_file == "submit.sh"

    def test_wrapped_under_setup_key(self, tmp_path: Path):
        path = tmp_path / "setup.yml"
        path.write_text("setup:\n  profiles:\n    zsh: .zshrc\n")
        assert load_config(path).profiles.zsh == ".zshrc"

    def test_discovered_in_cwd(self, tmp_path: Path):
        (tmp_path / "setup.yml").write_text("ping_timeout: 9\n")
        assert find_config_file() == tmp_path / "setup.yml"
        assert load_config().ping_timeout == 9

    def test_discovered_in_home(self, tmp_path: Path):
        cfg_dir = tmp_path / "home" / ".config" / "riverspider"
        cfg_dir.mkdir(parents=True)
        (cfg_dir / "setup.yml").write_text("ping_timeout: 4\n")
        assert load_config().ping_timeout == 4

    def test_env_var_wins(self, tmp_path: Path, monkeypatch):
        (tmp_path / "setup.yml").write_text("ping_timeout: 9\n")
        other = tmp_path / "other.yml"
        other.write_text("ping_timeout: 1\n")
        monkeypatch.setenv("RSP_CONFIG", str(other))
        assert load_config().ping_timeout == 1


class TestErrors:
    """Tests for invalid configuration."""

    def test_explicit_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Config file not found"):
            load_config(tmp_path / "nope.yml")

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("RSP_CONFIG", str(tmp_path / "nope.yml"))
        with pytest.raises(ConfigError):
            load_config()

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "setup.yml"
        path.write_text("target: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "setup.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_config(path)

    def test_zero_attempts_rejected(self, tmp_path: Path):
        path = tmp_path / "setup.yml"
        path.write_text("max_resolve_attempts: 0\n")
        with pytest.raises(ConfigError, match="Invalid setup configuration"):
            load_config(path)

    def test_config_error_is_fatal(self):
        assert issubclass(ConfigError, FatalSetupError)
