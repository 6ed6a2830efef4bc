"""Stable package UUID across regenerations.

Julia registries key packages on the ``uuid`` in ``Project.toml``, so a
regenerated project must keep the UUID it was first created with. The
resolver only ever reads the manifest; writing it is left to the base
structure step, which renders the resolved value.
"""

from __future__ import annotations

import tomllib
import uuid
from pathlib import Path

from rich.markup import escape

from .config import ConfigSnapshot
from .errors import CorruptManifest
from .result import Err, Ok, Result, unwrap_or
from .utils import print_debug

MANIFEST_NAME = "Project.toml"


def read_existing_uuid(project_path: str | Path) -> Result[str, str | CorruptManifest]:
    """Look up the ``uuid`` of an existing manifest.

    Returns:
        ``Ok(uuid)`` when the manifest exists, parses, and has a string
        ``uuid``; otherwise ``Err`` describing why not. A manifest that fails
        to parse yields ``Err(CorruptManifest)`` rather than raising.
    """
    manifest = Path(project_path) / MANIFEST_NAME
    if not manifest.is_file():
        return Err(f"no manifest at {manifest}")

    try:
        with manifest.open("rb") as fh:
            data = tomllib.load(fh)
    except (tomllib.TOMLDecodeError, UnicodeDecodeError, OSError) as exc:
        return Err(CorruptManifest(manifest, str(exc)))

    existing = data.get("uuid")
    if not isinstance(existing, str) or not existing:
        return Err(f"manifest {manifest} has no uuid")
    return Ok(existing)


def resolve_uuid(project_path: str | Path) -> str:
    """Return the project's existing UUID, or mint a fresh version-4 UUID."""
    result = read_existing_uuid(project_path)
    if isinstance(result, Err):
        print_debug(f"Minting new uuid ({escape(str(result.error))})")
    return unwrap_or(None, result) or str(uuid.uuid4())


def attach_uuid(config: ConfigSnapshot) -> ConfigSnapshot:
    """Return a copy of *config* carrying the resolved UUID for its project path."""
    return config.with_uuid(resolve_uuid(config.project_path))
