"""Merge the three configuration sources into one ``ConfigSnapshot``.

Precedence, highest first:

==========================  ==================================================
Field                       Sources
==========================  ==================================================
project name                ``user`` only
author / account / e-mail   ``env`` only
/ project dir
license, julia_version,     ``user`` > ``defaults``
initial_version,
default_branch
ci, github, testing, dev    per key, ``user`` > ``defaults``
formatter                   per field, ``user.features["formatter_<f>"]`` >
                            ``user.formatter.<f>`` > ``defaults.formatter.<f>``
features                    shallow, ``user`` > ``defaults``
logging min level           ``user`` > ``defaults``
env_vars                    every env key except the identity keys
==========================  ==================================================

Values are kept verbatim from whichever source wins, but must have the same
type as the value in ``defaults`` (an ``int`` is accepted where a ``float`` is
expected and stays an ``int``). Nothing is hardcoded here: a key missing
from ``defaults`` is a ``ConfigurationError``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .config import (
    IDENTITY_ENV_KEYS,
    CIConfig,
    ConfigSnapshot,
    DevWorkspace,
    FormatterPrefs,
    GitHubConfig,
    ProjectMetadata,
    TestingConfig,
)
from .errors import ConfigurationError

FORMATTER_OVERRIDE_PREFIX = "formatter_"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def merge_configs(
    defaults: dict[str, Any],
    user: dict[str, Any],
    env: dict[str, str],
) -> ConfigSnapshot:
    """Combine *defaults*, *user* and *env* into an immutable snapshot.

    Raises:
        ConfigurationError: If *defaults* lacks a key the merge needs, or a
            user value's type does not match the defaults' type for that key.
    """
    try:
        return ConfigSnapshot(
            metadata=_build_metadata(defaults, user, env),
            ci=_build_section(CIConfig, "ci", defaults, user),
            github=_build_section(GitHubConfig, "github", defaults, user),
            testing=_build_section(TestingConfig, "testing", defaults, user),
            formatter=_build_formatter(defaults, user),
            dev=_build_section(DevWorkspace, "dev", defaults, user),
            features=_build_features(defaults, user),
            logging_min_level=_pick(defaults, user, "logging", "min_level"),
            env_vars=_extract_env_vars(env),
        )
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid configuration value:\n{exc}") from exc


# ---------------------------------------------------------------------------
# Section builders
# ---------------------------------------------------------------------------


def _build_metadata(
    defaults: dict[str, Any], user: dict[str, Any], env: dict[str, str]
) -> ProjectMetadata:
    user_project = _section(user, "project")
    name = user_project.get("name", "")
    if not isinstance(name, str):
        raise ConfigurationError(
            f"Type conflict for 'project.name': expected str, got {type(name).__name__}"
        )
    return ProjectMetadata(
        name=name,
        author_fullname=env.get("AUTHOR_FULLNAME", ""),
        github_user=env.get("GITHUB_USER", ""),
        github_email=env.get("GITHUB_EMAIL", ""),
        project_dir=env.get("PROJECT_DIR", ""),
        license=_pick(defaults, user, "project", "license"),
        julia_version=_pick(defaults, user, "project", "julia_version"),
        initial_version=_pick(defaults, user, "project", "initial_version"),
        default_branch=_pick(defaults, user, "project", "default_branch"),
    )


def _build_section(
    model: type[BaseModel],
    section: str,
    defaults: dict[str, Any],
    user: dict[str, Any],
) -> Any:
    """Build *model* field by field, ``user[section]`` over ``defaults[section]``."""
    values = {field: _pick(defaults, user, section, field) for field in model.model_fields}
    return model(**values)


def _build_formatter(defaults: dict[str, Any], user: dict[str, Any]) -> FormatterPrefs:
    user_features = _section(user, "features")
    user_formatter = _section(user, "formatter")
    formatter_defaults = _required_section(defaults, "formatter")

    values: dict[str, Any] = {}
    for field in FormatterPrefs.model_fields:
        default = _required_value(formatter_defaults, "formatter", field)
        override_key = f"{FORMATTER_OVERRIDE_PREFIX}{field}"
        if override_key in user_features:
            value = user_features[override_key]
            source = f"features.{override_key}"
        elif field in user_formatter:
            value = user_formatter[field]
            source = f"formatter.{field}"
        else:
            value = default
            source = f"formatter.{field}"
        _check_type(source, default, value)
        values[field] = value
    return FormatterPrefs(**values)


def _build_features(defaults: dict[str, Any], user: dict[str, Any]) -> dict[str, bool]:
    """Shallow merge of the feature tables; ``formatter_*`` overrides are dropped."""
    merged = {**_required_section(defaults, "features"), **_section(user, "features")}
    return {
        name: enabled
        for name, enabled in merged.items()
        if not name.startswith(FORMATTER_OVERRIDE_PREFIX)
    }


def _extract_env_vars(env: dict[str, str]) -> dict[str, str]:
    return {key: value for key, value in env.items() if key not in IDENTITY_ENV_KEYS}


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------


def _section(source: dict[str, Any], name: str) -> dict[str, Any]:
    """Return ``source[name]`` if it is a table, else an empty dict."""
    table = source.get(name, {})
    return table if isinstance(table, dict) else {}


def _required_section(defaults: dict[str, Any], name: str) -> dict[str, Any]:
    table = defaults.get(name)
    if not isinstance(table, dict):
        raise ConfigurationError(f"defaults.toml is missing the [{name}] table")
    return table


def _required_value(table: dict[str, Any], section: str, key: str) -> Any:
    if key not in table:
        raise ConfigurationError(f"defaults.toml is missing '{section}.{key}'")
    return table[key]


def _pick(defaults: dict[str, Any], user: dict[str, Any], section: str, key: str) -> Any:
    """``user[section][key]`` if present, else ``defaults[section][key]``.

    The defaults value is always looked up, so an incomplete defaults file
    fails here even when the user supplies the key.
    """
    default = _required_value(_required_section(defaults, section), section, key)
    user_section = _section(user, section)
    if key not in user_section:
        return default
    value = user_section[key]
    _check_type(f"{section}.{key}", default, value)
    return value


def _check_type(key: str, default: Any, value: Any) -> None:
    """Reject *value* unless its type matches the defaults' type for *key*."""
    expected = type(default)
    actual = type(value)
    if actual is expected:
        return
    # bool is a subclass of int; never let the two stand in for each other.
    if expected is float and actual is int:
        return
    raise ConfigurationError(
        f"Type conflict for '{key}': expected {expected.__name__}, got {actual.__name__}"
    )
