"""Configuration sources.

Three independent sources feed the merger:

* **defaults**: ``quicktemplates/data/defaults.toml``, shipped with the
  package. It is the only place default values come from and is checked for
  completeness when loaded.
* **user**: the project-local ``config.toml`` written by ``init-config``.
* **env**: identity and pass-through variables read from
  ``~/.config/quicktemplates/.env`` and then ``./.env`` (last write wins).

Each loader returns a plain nested ``dict``; turning them into a typed
snapshot is the merger's job.
"""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any, Iterable

from dotenv import dotenv_values

from .config import (
    CIConfig,
    DevWorkspace,
    FormatterPrefs,
    GitHubConfig,
    TestingConfig,
)
from .errors import ConfigurationError

DATA_DIR = Path(__file__).parent / "data"
DEFAULTS_PATH = DATA_DIR / "defaults.toml"
CONFIG_TEMPLATE_PATH = DATA_DIR / "config.toml.template"

# Every key the merger or validator reads from defaults, per section.
REQUIRED_DEFAULT_KEYS: dict[str, tuple[str, ...]] = {
    "project": (
        "license",
        "julia_version",
        "min_julia_version",
        "initial_version",
        "default_branch",
    ),
    "ci": tuple(CIConfig.model_fields),
    "github": tuple(GitHubConfig.model_fields),
    "testing": tuple(TestingConfig.model_fields),
    "formatter": tuple(FormatterPrefs.model_fields),
    "dev": tuple(DevWorkspace.model_fields),
    "logging": ("min_level",),
    "features": (),
}

_BARE_VAR_RE = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)")


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def global_env_path() -> Path:
    """Location of the global identity file written by ``setup-identity``."""
    return Path.home() / ".config" / "quicktemplates" / ".env"


def default_env_paths() -> list[Path]:
    """Env files in scan order: global identity first, project-local last."""
    return [global_env_path(), Path(".env")]


# ---------------------------------------------------------------------------
# TOML sources
# ---------------------------------------------------------------------------


def _load_toml(path: Path, hint: str = "") -> dict[str, Any]:
    """Parse a TOML file, raising ``ConfigurationError`` on any problem."""
    if not path.is_file():
        message = f"{path.name} not found at: {path}"
        if hint:
            message += f"\n   {hint}"
        raise ConfigurationError(message)
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Cannot parse {path}: {exc}") from exc


def missing_default_keys(defaults: dict[str, Any]) -> list[str]:
    """Return the dotted keys required by the merger that *defaults* lacks."""
    missing: list[str] = []
    for section, keys in REQUIRED_DEFAULT_KEYS.items():
        table = defaults.get(section)
        if not isinstance(table, dict):
            missing.append(section)
            continue
        missing.extend(f"{section}.{key}" for key in keys if key not in table)
    return missing


def load_defaults(path: str | Path | None = None) -> dict[str, Any]:
    """Load the built-in defaults and assert they are complete.

    Called once at process start; the result is passed down explicitly to
    the merger and the validator.

    Raises:
        ConfigurationError: If the file is missing, unparseable, or lacks any
            key listed in ``REQUIRED_DEFAULT_KEYS``.
    """
    defaults_path = Path(path) if path is not None else DEFAULTS_PATH
    defaults = _load_toml(defaults_path, "The defaults bundle ships with the package; reinstall it.")

    missing = missing_default_keys(defaults)
    if missing:
        raise ConfigurationError(
            f"Defaults file {defaults_path} is incomplete, missing: {', '.join(missing)}"
        )
    return defaults


def load_user(path: str | Path = "config.toml", required: bool = True) -> dict[str, Any]:
    """Load the user's project configuration.

    Args:
        path: Location of ``config.toml``.
        required: When ``False`` a missing file yields an empty dict instead
            of an error. An unparseable file is always an error.
    """
    user_path = Path(path)
    if not user_path.exists() and not required:
        return {}
    return _load_toml(user_path, "Run: quicktemplates init-config")


# ---------------------------------------------------------------------------
# Environment source
# ---------------------------------------------------------------------------


def _expand_bare_vars(value: str) -> str:
    """Expand ``$VAR`` references against the process environment.

    ``${VAR}`` is already handled by python-dotenv; unknown variables expand
    to an empty string.
    """
    return _BARE_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)


def parse_env_file(path: str | Path) -> dict[str, str]:
    """Parse one ``.env`` file into a flat string mapping.

    Comments and blank lines are ignored, surrounding quotes are stripped and
    both ``${VAR}`` and ``$VAR`` are interpolated. Keys without a value are
    dropped.
    """
    raw = dotenv_values(Path(path), interpolate=True)
    return {
        key: _expand_bare_vars(value)
        for key, value in raw.items()
        if value is not None
    }


def load_env(paths: Iterable[str | Path] | None = None) -> dict[str, str]:
    """Merge every existing env file, later files overriding earlier ones."""
    env: dict[str, str] = {}
    for env_path in paths if paths is not None else default_env_paths():
        if Path(env_path).is_file():
            env.update(parse_env_file(env_path))
    return env
