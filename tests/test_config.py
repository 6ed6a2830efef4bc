"""Tests for the configuration snapshot models (quicktemplates.config)."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from quicktemplates.config import ConfigSnapshot, DevWorkspace, GitHubConfig

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Immutability
# ---------------------------------------------------------------------------


class TestFrozenModels:
    def test_snapshot_is_frozen(self, config_factory):
        config = config_factory()
        with pytest.raises(PydanticValidationError):
            config.logging_min_level = "Debug"

    def test_nested_model_is_frozen(self, config_factory):
        config = config_factory()
        with pytest.raises(PydanticValidationError):
            config.metadata.name = "Other"

    def test_extra_fields_forbidden(self):
        with pytest.raises(PydanticValidationError):
            GitHubConfig(create_repo=False, private=True, auto_push=False, token="x")

    def test_no_hardcoded_defaults(self):
        with pytest.raises(PydanticValidationError):
            DevWorkspace(auto_setup=False)


# ---------------------------------------------------------------------------
# Derived values
# ---------------------------------------------------------------------------


class TestDerivedValues:
    def test_project_path(self, config_factory, tmp_project_dir: Path):
        config = config_factory(name="MyPkg")
        assert config.project_path == tmp_project_dir / "MyPkg"

    def test_project_path_expands_tilde(self, config_factory):
        config = config_factory(env={"PROJECT_DIR": "~/Projects"})
        assert config.project_path == Path.home() / "Projects" / "TestPkg"

    def test_feature_enabled(self, config_factory):
        config = config_factory(features={"docs": True, "tagbot": False})
        assert config.feature_enabled("docs") is True
        assert config.feature_enabled("tagbot", default=True) is False
        assert config.feature_enabled("unknown") is False
        assert config.feature_enabled("unknown", default=True) is True

    def test_with_uuid_returns_copy(self, config_factory):
        original = config_factory(uuid=None)
        updated = original.with_uuid("1234")

        assert original.uuid is None
        assert updated.uuid == "1234"
        assert isinstance(updated, ConfigSnapshot)
        assert updated.metadata == original.metadata
