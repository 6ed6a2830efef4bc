"""QuickTemplates configuration snapshot.

Typed, immutable configuration for one generation run. All models use
Pydantic v2 and are frozen: a ``ConfigSnapshot`` is built once by
:func:`quicktemplates.merge.merge_configs` and only read afterwards.

None of the fields carry default values. Every default lives in
``quicktemplates/data/defaults.toml``; a model constructed without a field
fails loudly instead of silently falling back to a hardcoded value.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt

# Environment keys that carry the author's identity. They are read from the
# ``.env`` files only and never from ``config.toml``.
IDENTITY_ENV_KEYS: tuple[str, ...] = (
    "AUTHOR_FULLNAME",
    "GITHUB_USER",
    "GITHUB_EMAIL",
    "PROJECT_DIR",
)

LOGGING_LEVELS: tuple[str, ...] = ("Debug", "Info", "Warn", "Error")

# An int stays an int where defaults.toml holds a float.
Tolerance = Union[StrictInt, StrictFloat]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ProjectMetadata(_Frozen):
    """Package identity and the few project-wide settings."""

    name: str = Field(..., description="Package name, e.g. 'MyPackage'")
    author_fullname: str = Field(..., description="Author's full name (AUTHOR_FULLNAME)")
    github_user: str = Field(..., description="GitHub account handle (GITHUB_USER)")
    github_email: str = Field(..., description="Contact e-mail (GITHUB_EMAIL)")
    project_dir: str = Field(..., description="Parent directory of generated projects (PROJECT_DIR)")
    license: str = Field(..., description="SPDX license identifier")
    julia_version: str = Field(..., description="Minimum Julia version in [compat]")
    initial_version: str = Field(..., description="Initial package version")
    default_branch: str = Field(..., description="Default git branch name")


class CIConfig(_Frozen):
    """GitHub Actions matrix settings."""

    julia_versions: tuple[str, ...]
    os: tuple[str, ...]
    docs_julia_version: str
    codecov: bool


class GitHubConfig(_Frozen):
    """Remote repository creation settings."""

    create_repo: bool
    private: bool
    auto_push: bool


class TestingConfig(_Frozen):
    """Test scaffold settings: Aqua.jl toggle and numeric tolerances."""

    __test__ = False  # not a pytest test class

    use_aqua: bool
    rtol: Tolerance
    atol: Tolerance
    ml_rtol: Tolerance
    ml_atol: Tolerance


class FormatterPrefs(_Frozen):
    """JuliaFormatter preferences, one flat record."""

    style: str
    indent: int
    margin: int
    always_for_in: bool
    whitespace_typedefs: bool
    whitespace_ops_in_indices: bool
    import_to_using: bool
    pipe_to_function_call: bool
    short_to_long_function_def: bool
    always_use_return: bool
    conditional_to_if: bool
    normalize_line_endings: str
    format_docstrings: bool
    align_struct_field: bool
    align_conditional: bool
    align_assignment: bool
    align_pair_arrow: bool


class DevWorkspace(_Frozen):
    """Personal development workspace (Revise, OhMyREPL, ...)."""

    auto_setup: bool
    packages: tuple[str, ...]


class ConfigSnapshot(_Frozen):
    """Merged configuration for a single generation run.

    ``uuid`` is ``None`` while the snapshot is being validated. The identity
    resolver attaches it afterwards through :meth:`with_uuid`, which returns a
    new snapshot and leaves the original untouched.
    """

    metadata: ProjectMetadata
    ci: CIConfig
    github: GitHubConfig
    testing: TestingConfig
    formatter: FormatterPrefs
    dev: DevWorkspace
    features: dict[str, StrictBool]
    logging_min_level: str
    env_vars: dict[str, str]
    uuid: Optional[str] = None

    # ------------------------------------------------------------------
    # Derived values (read-only properties)
    # ------------------------------------------------------------------

    @property
    def project_path(self) -> Path:
        """Target directory: ``PROJECT_DIR`` (tilde-expanded) / name."""
        return Path(self.metadata.project_dir).expanduser() / self.metadata.name

    def feature_enabled(self, name: str, default: bool = False) -> bool:
        """Return the flag for *name*, or *default* when it is not set at all."""
        value: Any = self.features.get(name, default)
        return value is True

    def with_uuid(self, uuid: str) -> "ConfigSnapshot":
        """Return a copy of this snapshot carrying *uuid*."""
        return self.model_copy(update={"uuid": uuid})
