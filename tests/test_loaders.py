"""Tests for the configuration loaders (quicktemplates.loaders).

Covers:
- load_defaults: packaged file, missing file, incomplete file
- load_user: required/optional, unparseable TOML
- parse_env_file / load_env: quoting, comments, interpolation, precedence
"""

from __future__ import annotations

from pathlib import Path

import pytest

from quicktemplates.errors import ConfigurationError
from quicktemplates.loaders import (
    REQUIRED_DEFAULT_KEYS,
    global_env_path,
    load_defaults,
    load_env,
    load_user,
    missing_default_keys,
    parse_env_file,
)

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestLoadDefaults:
    def test_packaged_defaults_are_complete(self):
        defaults = load_defaults()
        assert missing_default_keys(defaults) == []
        assert defaults["project"]["min_julia_version"] == "1.10"
        assert defaults["logging"]["min_level"] == "Info"

    def test_every_section_present(self):
        defaults = load_defaults()
        for section in REQUIRED_DEFAULT_KEYS:
            assert isinstance(defaults[section], dict)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_defaults(tmp_path / "nope.toml")

    def test_incomplete_file_lists_missing_keys(self, tmp_path: Path):
        path = tmp_path / "defaults.toml"
        path.write_text('[project]\nlicense = "MIT"\n', encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            load_defaults(path)
        message = str(exc_info.value)
        assert "project.julia_version" in message
        assert "formatter" in message

    def test_unparseable_file(self, tmp_path: Path):
        path = tmp_path / "defaults.toml"
        path.write_text("[project\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Cannot parse"):
            load_defaults(path)


# ---------------------------------------------------------------------------
# User config
# ---------------------------------------------------------------------------


class TestLoadUser:
    def test_reads_tables(self, write_config):
        path = write_config(
            """
            [project]
            name = "MyPkg"

            [features]
            docs = true
            """
        )
        user = load_user(path)
        assert user["project"]["name"] == "MyPkg"
        assert user["features"] == {"docs": True}

    def test_missing_required_file_hints_init_config(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="init-config"):
            load_user(tmp_path / "config.toml")

    def test_missing_optional_file_is_empty(self, tmp_path: Path):
        assert load_user(tmp_path / "config.toml", required=False) == {}

    def test_unparseable_file(self, write_config):
        path = write_config('name = "unterminated\n')
        with pytest.raises(ConfigurationError, match="Cannot parse"):
            load_user(path)


# ---------------------------------------------------------------------------
# Env files
# ---------------------------------------------------------------------------


class TestEnvFiles:
    def test_global_env_location(self):
        assert global_env_path() == Path.home() / ".config" / "quicktemplates" / ".env"

    def test_quotes_comments_and_blank_lines(self, tmp_path: Path):
        path = tmp_path / ".env"
        path.write_text(
            "# comment\n"
            "\n"
            'AUTHOR_FULLNAME="Ada Lovelace"\n'
            "GITHUB_USER='ada'\n"
            "PLAIN=value\n",
            encoding="utf-8",
        )
        env = parse_env_file(path)
        assert env == {"AUTHOR_FULLNAME": "Ada Lovelace", "GITHUB_USER": "ada", "PLAIN": "value"}

    def test_interpolates_braced_and_bare_variables(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("QT_TEST_HOME", "/home/ada")
        path = tmp_path / ".env"
        path.write_text(
            "BRACED=${QT_TEST_HOME}/projects\n"
            "BARE=$QT_TEST_HOME/data\n",
            encoding="utf-8",
        )
        env = parse_env_file(path)
        assert env["BRACED"] == "/home/ada/projects"
        assert env["BARE"] == "/home/ada/data"

    def test_later_files_override_earlier(self, tmp_path: Path):
        first = tmp_path / "global.env"
        first.write_text("GITHUB_USER=global\nONLY_GLOBAL=1\n", encoding="utf-8")
        second = tmp_path / "local.env"
        second.write_text("GITHUB_USER=local\n", encoding="utf-8")

        env = load_env([first, second])
        assert env == {"GITHUB_USER": "local", "ONLY_GLOBAL": "1"}

    def test_missing_files_are_skipped(self, tmp_path: Path):
        assert load_env([tmp_path / "missing.env"]) == {}
