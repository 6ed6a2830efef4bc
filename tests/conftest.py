"""Shared pytest fixtures for the QuickTemplates test suite.

Provides reusable fixtures for:
- The packaged defaults tree
- A temporary PROJECT_DIR and matching identity env
- A config factory building merged snapshots from partial user tables
- A template renderer over the packaged templates
- A mocked ``run_command`` for post-generation steps
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable
from unittest.mock import MagicMock, patch

import pytest

from quicktemplates.config import ConfigSnapshot
from quicktemplates.loaders import load_defaults
from quicktemplates.merge import merge_configs
from quicktemplates.scaffolder.templates import TemplateRenderer
from quicktemplates.utils import set_verbose

TEST_UUID = "8f2c3a9e-1b7d-4e5f-9a0b-2c4d6e8f0a1b"


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary PROJECT_DIR for generated projects (auto-cleanup)."""
    project_dir = tmp_path / "projects"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture(autouse=True)
def _reset_verbose():
    """Keep the module-level verbose flag from leaking between tests."""
    set_verbose(False)
    yield
    set_verbose(False)


# ---------------------------------------------------------------------------
# Configuration sources
# ---------------------------------------------------------------------------

@pytest.fixture
def defaults() -> dict[str, Any]:
    """The packaged defaults.toml."""
    return load_defaults()


@pytest.fixture
def identity_env(tmp_project_dir: Path) -> dict[str, str]:
    """A complete identity pointing PROJECT_DIR at the temp directory."""
    return {
        "AUTHOR_FULLNAME": "Ada Lovelace",
        "GITHUB_USER": "ada-lovelace",
        "GITHUB_EMAIL": "ada@example.com",
        "PROJECT_DIR": str(tmp_project_dir),
    }


@pytest.fixture
def config_factory(
    defaults: dict[str, Any], identity_env: dict[str, str]
) -> Callable[..., ConfigSnapshot]:
    """Build a merged ``ConfigSnapshot`` from a partial user config.

    Usage::

        config = config_factory(features={"docs": True}, ci={"codecov": False})
        config = config_factory(name="Other", env={"GITHUB_USER": ""}, uuid=None)
    """

    def _make(
        name: str = "TestPkg",
        features: dict[str, Any] | None = None,
        env: dict[str, str] | None = None,
        uuid: str | None = TEST_UUID,
        **sections: Any,
    ) -> ConfigSnapshot:
        user: dict[str, Any] = {"project": {"name": name}, **sections}
        if features is not None:
            user["features"] = features
        merged_env = {**identity_env, **(env or {})}
        config = merge_configs(defaults, user, merged_env)
        return config.with_uuid(uuid) if uuid else config

    return _make


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Write a dedented ``config.toml`` into ``tmp_path`` and return its path."""

    def _write(content: str, name: str = "config.toml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_env(tmp_path: Path, identity_env: dict[str, str]) -> Callable[..., Path]:
    """Write an identity ``.env`` file; keyword overrides replace single keys."""

    def _write(name: str = "identity.env", **overrides: str) -> Path:
        values = {**identity_env, **overrides}
        path = tmp_path / name
        lines = []
        for key, value in values.items():
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            lines.append(f'{key}="{escaped}"\n')
        path.write_text(
            "".join(lines),
            encoding="utf-8",
        )
        return path

    return _write


# ---------------------------------------------------------------------------
# Scaffolder helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def mock_run_command():
    """Patch post-generation's ``run_command`` to succeed without running anything."""
    with patch(
        "quicktemplates.scaffolder.postgen.run_command",
        MagicMock(return_value=(0, "", "")),
    ) as mock:
        yield mock
