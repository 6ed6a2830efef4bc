"""Exception hierarchy for QuickTemplates.

Two families exist:

* **Fatal** errors (``ConfigurationError``, ``ValidationError``) are raised
  before anything is written to the target project and abort the run.
* **Recoverable** errors (``FeatureUnavailable``, ``ExternalToolWarning``,
  ``CorruptManifest``) are raised and caught inside the generation stage; the
  caller prints a warning and carries on with the remaining work.
"""

from __future__ import annotations

from pathlib import Path


class QuickTemplatesError(Exception):
    """Base class for every error raised by QuickTemplates."""


# ---------------------------------------------------------------------------
# Fatal (pre-generation)
# ---------------------------------------------------------------------------


class ConfigurationError(QuickTemplatesError):
    """A configuration source is missing, unparseable, or inconsistent."""


class ValidationError(QuickTemplatesError):
    """Aggregate of every rule violation found by the validator.

    Attributes:
        errors: One human-readable message per violation, in check order.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(self.errors))


# ---------------------------------------------------------------------------
# Recoverable (post-gate)
# ---------------------------------------------------------------------------


class FeatureUnavailable(QuickTemplatesError):
    """A feature was requested but no handler is registered for it."""

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f"Feature '{feature}' is not implemented, skipping")


class ExternalToolWarning(QuickTemplatesError):
    """An external command run after generation failed."""

    def __init__(self, command: str, detail: str = "") -> None:
        self.command = command
        self.detail = detail
        message = f"'{command}' failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class CorruptManifest(QuickTemplatesError):
    """An existing ``Project.toml`` could not be parsed."""

    def __init__(self, path: Path, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Cannot parse manifest {path}: {detail}")
