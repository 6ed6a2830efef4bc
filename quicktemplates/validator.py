"""Fail-fast validation of a merged ``ConfigSnapshot``.

Every check runs, every violation is collected, and a single
:class:`~quicktemplates.errors.ValidationError` is raised at the end so the
user sees the whole list in one go. Non-fatal findings (an already existing
project, a missing ``gh`` CLI) are kept in :attr:`Validator.warnings` and
printed, but never block generation.

The project-name rules double as the path-traversal defence; the directory
boundary check repeats that defence on resolved, symlink-free paths.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import Any, Optional

from rich.markup import escape

from .config import LOGGING_LEVELS, ConfigSnapshot, ProjectMetadata
from .errors import ValidationError
from .utils import print_warning

PROJECT_NAME_RE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
# 1-39 chars, alphanumeric and hyphens, no leading/trailing hyphen.
GITHUB_USER_RE = re.compile(r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,37}[a-zA-Z0-9])?$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
VERSION_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:[-+].*)?$")

GLOBAL_ENV_HINT = "~/.config/quicktemplates/.env"


def parse_version(text: str) -> Optional[tuple[int, int, int]]:
    """Parse ``"1.12"``, ``"v1.10.2"`` or ``"1.11.0-rc1"`` into a comparable tuple.

    Missing minor/patch components are zero; pre-release and build suffixes
    are ignored. Returns ``None`` if *text* is not a version at all.
    """
    match = VERSION_RE.match(text.strip())
    if match is None:
        return None
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return (major, minor, patch)


class Validator:
    """Runs the fixed battery of configuration checks.

    Args:
        defaults: The loaded defaults tree; provides ``project.min_julia_version``.
    """

    def __init__(self, defaults: dict[str, Any]) -> None:
        self.defaults = defaults
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def validate(self, config: ConfigSnapshot) -> bool:
        """Validate *config*, returning ``True`` or raising ``ValidationError``."""
        self.errors = []
        self.warnings = []

        metadata = config.metadata
        self._check_required(metadata)
        self._check_project_name(metadata.name)
        self._check_github_user(metadata.github_user)
        self._check_email(metadata.github_email)
        self._check_paths(metadata)
        self._check_julia_version(metadata.julia_version)
        self._check_logging_level(config.logging_min_level)
        self._check_github_cli(config.github.create_repo)

        for warning in self.warnings:
            print_warning(escape(warning))

        if self.errors:
            raise ValidationError(self.errors)
        return True

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def _check_required(self, metadata: ProjectMetadata) -> None:
        if not metadata.name:
            self.errors.append("project.name is required in config.toml")
        for field, key in (
            ("author_fullname", "AUTHOR_FULLNAME"),
            ("github_user", "GITHUB_USER"),
            ("github_email", "GITHUB_EMAIL"),
            ("project_dir", "PROJECT_DIR"),
        ):
            if not getattr(metadata, field):
                self.errors.append(f"{key} is required in {GLOBAL_ENV_HINT}")

    def _check_project_name(self, name: str) -> None:
        if not name:
            return

        before = len(self.errors)
        if "/" in name:
            self.errors.append("project.name must not contain '/' (path separator)")
        if "\\" in name:
            self.errors.append("project.name must not contain '\\' (path separator)")
        if ".." in name:
            self.errors.append("project.name must not contain '..' (path traversal)")
        if name.startswith("."):
            self.errors.append("project.name must not start with '.' (hidden directory)")
        if len(self.errors) > before:
            return

        if not PROJECT_NAME_RE.match(name):
            self.errors.append(
                "project.name must start with an uppercase letter and contain only letters and digits"
            )

    def _check_github_user(self, github_user: str) -> None:
        if github_user and not GITHUB_USER_RE.match(github_user):
            self.errors.append(
                "GITHUB_USER is invalid (1-39 alphanumeric characters or hyphens, "
                "not starting or ending with a hyphen)"
            )

    def _check_email(self, email: str) -> None:
        if email and not EMAIL_RE.match(email):
            self.errors.append("GITHUB_EMAIL is not a valid e-mail address")

    def _check_paths(self, metadata: ProjectMetadata) -> None:
        if not metadata.project_dir:
            return

        base = Path(metadata.project_dir).expanduser()
        if not base.is_dir():
            self.errors.append(f"PROJECT_DIR does not exist: {metadata.project_dir}")
            return

        if not metadata.name:
            return

        project_path = base / metadata.name
        try:
            resolved_base = base.resolve(strict=True)
            # resolve() follows every existing component, including a symlink
            # sitting at the project path itself.
            resolved_project = project_path.resolve()
        except OSError:
            self.errors.append(f"Error accessing PROJECT_DIR: {metadata.project_dir}")
            return

        if resolved_project == resolved_base or not resolved_project.is_relative_to(resolved_base):
            self.errors.append("project.name escapes the base directory (path traversal detected)")
            return

        if project_path.is_dir():
            self.warnings.append(
                f"Project already exists at {project_path}\n"
                "   Existing files will NOT be overwritten (safe incremental mode)"
            )

    def _check_julia_version(self, julia_version: str) -> None:
        min_version_str = self.defaults["project"]["min_julia_version"]
        min_version = parse_version(min_version_str)
        if min_version is None:
            self.errors.append(f"defaults project.min_julia_version is not a version: {min_version_str}")
            return

        version = parse_version(julia_version)
        if version is None:
            self.errors.append(f"julia_version is not a valid version: {julia_version!r}")
        elif version < min_version:
            self.errors.append(
                f"julia_version must be >= {min_version_str} (got: {julia_version})"
            )

    def _check_logging_level(self, level: str) -> None:
        if level not in LOGGING_LEVELS:
            self.errors.append(f"logging_min_level must be one of: {', '.join(LOGGING_LEVELS)}")

    def _check_github_cli(self, create_repo: bool) -> None:
        if create_repo and shutil.which("gh") is None:
            self.warnings.append(
                "gh CLI is not installed; create_repo will not work.\n"
                "   Install: https://cli.github.com"
            )


def validate(config: ConfigSnapshot, defaults: dict[str, Any]) -> bool:
    """Validate *config* against *defaults*; see :class:`Validator`."""
    return Validator(defaults).validate(config)
