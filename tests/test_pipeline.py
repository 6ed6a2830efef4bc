"""Unit tests for the pipeline and CLI entry point (quicktemplates.pipeline).

Tests cover:
- load_and_validate_config wiring (defaults, user, env, validation)
- generate(): uuid attached, project generated, postgen toggle
- main(): subcommand dispatch, --verbose, exit codes on fatal errors
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from quicktemplates.errors import ConfigurationError, ValidationError
from quicktemplates.pipeline import build_parser, generate, load_and_validate_config, main
from quicktemplates.utils import is_verbose

pytestmark = pytest.mark.unit

CONFIG = """
[project]
name = "CliPkg"

[features]
tests = true
ci = false
"""


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch, write_env) -> Path:
    """Run in ``tmp_path`` with the global identity file redirected there."""
    env_path = write_env(".global.env")
    monkeypatch.chdir(tmp_path)
    with patch("quicktemplates.loaders.global_env_path", return_value=env_path):
        yield tmp_path


# ---------------------------------------------------------------------------
# load_and_validate_config
# ---------------------------------------------------------------------------


class TestLoadAndValidate:
    def test_valid(self, write_config, write_env):
        config = load_and_validate_config(write_config(CONFIG), env_paths=[write_env()])
        assert config.metadata.name == "CliPkg"
        assert config.metadata.github_user == "ada-lovelace"
        assert config.uuid is None

    def test_invalid_raises_validation_error(self, write_config, write_env):
        env_path = write_env(GITHUB_EMAIL="not-an-email")
        with pytest.raises(ValidationError):
            load_and_validate_config(write_config(CONFIG), env_paths=[env_path])

    def test_missing_config(self, tmp_path: Path, write_env):
        with pytest.raises(ConfigurationError, match="init-config"):
            load_and_validate_config(tmp_path / "config.toml", env_paths=[write_env()])

    def test_explicit_defaults_used(self, write_config, write_env, defaults):
        defaults["logging"]["min_level"] = "Warn"
        config = load_and_validate_config(
            write_config(CONFIG), defaults=defaults, env_paths=[write_env()]
        )
        assert config.logging_min_level == "Warn"


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_generates_project(self, write_config, write_env, tmp_project_dir: Path):
        path = generate(write_config(CONFIG), run_postgen=False, env_paths=[write_env()])
        assert path == tmp_project_dir / "CliPkg"
        assert (path / "Project.toml").is_file()
        assert (path / "test" / "tolerances.jl").is_file()

    def test_postgen_toggle(self, write_config, write_env):
        with patch("quicktemplates.scaffolder.generator.PostGenerator") as postgen_cls:
            generate(write_config(CONFIG), run_postgen=True, env_paths=[write_env()])
        postgen_cls.return_value.run.assert_called_once()

    def test_validation_failure_writes_nothing(self, write_config, write_env, tmp_project_dir):
        env_path = write_env(GITHUB_USER="-bad-")
        with pytest.raises(ValidationError):
            generate(write_config(CONFIG), run_postgen=False, env_paths=[env_path])
        assert list(tmp_project_dir.iterdir()) == []


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestMain:
    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_generate_defaults(self):
        args = build_parser().parse_args(["generate"])
        assert args.config == "config.toml"
        assert args.no_postgen is False

    def test_generate_success(self, isolated_cwd: Path, tmp_project_dir: Path):
        (isolated_cwd / "config.toml").write_text(CONFIG, encoding="utf-8")
        main(["generate", "--no-postgen"])
        assert (tmp_project_dir / "CliPkg" / "Project.toml").is_file()

    def test_generate_custom_config_path(self, isolated_cwd: Path, tmp_project_dir: Path):
        (isolated_cwd / "custom.toml").write_text(CONFIG, encoding="utf-8")
        main(["generate", "--config", "custom.toml", "--no-postgen"])
        assert (tmp_project_dir / "CliPkg").is_dir()

    def test_missing_config_exits_1(self, isolated_cwd: Path):
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "--no-postgen"])
        assert exc_info.value.code == 1

    def test_validation_error_exits_1(self, isolated_cwd: Path):
        (isolated_cwd / "config.toml").write_text('[project]\nname = "bad-name"\n', encoding="utf-8")
        with patch("quicktemplates.pipeline.console") as console:
            with pytest.raises(SystemExit) as exc_info:
                main(["generate", "--no-postgen"])
        assert exc_info.value.code == 1
        printed = " ".join(str(c.args[0]) for c in console.print.call_args_list)
        assert "uppercase letter" in printed

    def test_verbose_flag(self, isolated_cwd: Path):
        with patch("quicktemplates.pipeline.init_config") as init:
            main(["--verbose", "init-config", "--force"])
        init.assert_called_once_with(force=True)
        assert is_verbose() is True

    def test_setup_identity_dispatch(self):
        with patch("quicktemplates.pipeline.setup_identity") as setup:
            main(["setup-identity"])
        setup.assert_called_once_with()
