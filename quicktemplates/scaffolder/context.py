"""Template data bag: the flat mapping every ``.j2`` template renders against."""

from __future__ import annotations

from datetime import date
from typing import Any

from ..config import ConfigSnapshot


def build_template_data(config: ConfigSnapshot) -> dict[str, Any]:
    """Flatten *config* into template variables.

    A pure function of the snapshot apart from ``year``. Formatter fields are
    exposed as ``formatter_<field>``, and ``env_vars`` entries are merged last
    so a ``.env`` value can be referenced by name inside any template.
    """
    metadata = config.metadata
    testing = config.testing

    data: dict[str, Any] = {
        "project_name": metadata.name,
        "author_fullname": metadata.author_fullname,
        "github_user": metadata.github_user,
        "github_email": metadata.github_email,
        "license": metadata.license,
        "julia_version": metadata.julia_version,
        "initial_version": metadata.initial_version,
        "default_branch": metadata.default_branch,
        "uuid": config.uuid or "",
        "year": date.today().year,
        "features": dict(config.features),
        "ci": config.ci.model_dump(),
        "github": config.github.model_dump(),
        "logging_min_level": config.logging_min_level,
        "testing_use_aqua": testing.use_aqua,
        "testing_rtol": testing.rtol,
        "testing_atol": testing.atol,
        "testing_ml_rtol": testing.ml_rtol,
        "testing_ml_atol": testing.ml_atol,
        "dev_packages": list(config.dev.packages),
    }

    for field, value in config.formatter.model_dump().items():
        data[f"formatter_{field}"] = value

    data.update(config.env_vars)
    return data
