"""Feature handlers and the registry that dispatches to them.

A feature is an independently toggleable unit of scaffolding. Each handler
has the signature ``handler(renderer, project_path, config)`` and only adds
files on top of the base structure, using the idempotent write primitives
of :class:`~quicktemplates.scaffolder.templates.TemplateRenderer`.

Adding a feature means registering a new handler::

    @DEFAULT_REGISTRY.register("pluto")
    def _pluto(renderer, project_path, config):
        ...

An unknown name looks up to ``None``; the generator turns that into
``FeatureUnavailable`` and moves on.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator, Optional

from ..config import ConfigSnapshot
from .context import build_template_data
from .templates import TemplateRenderer

FeatureHandler = Callable[[TemplateRenderer, Path, ConfigSnapshot], None]

DRWATSON_GITIGNORE_MARKER = "# DrWatson .gitignore additions"
NOTEBOOKS_GITIGNORE_MARKER = "# Jupyter/Notebooks .gitignore additions"

DRWATSON_DIRS: tuple[str, ...] = ("scripts", "data", "plots", "notebooks", "papers")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class FeatureRegistry:
    """Maps feature names to generation handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, FeatureHandler] = {}

    def register(self, name: str) -> Callable[[FeatureHandler], FeatureHandler]:
        """Decorator registering *handler* under *name*, replacing any previous one."""

        def decorator(handler: FeatureHandler) -> FeatureHandler:
            self._handlers[name] = handler
            return handler

        return decorator

    def get(self, name: str) -> Optional[FeatureHandler]:
        """Return the handler for *name*, or ``None`` if none is registered."""
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())


DEFAULT_REGISTRY = FeatureRegistry()


def _render_all(
    renderer: TemplateRenderer,
    project_path: Path,
    config: ConfigSnapshot,
    templates: list[tuple[str, str]],
) -> None:
    """Render ``(template, output)`` pairs relative to *project_path*."""
    data = build_template_data(config)
    for template_name, output_name in templates:
        renderer.render_to_file(template_name, project_path / output_name, data)


# ---------------------------------------------------------------------------
# Testing, docs, CI
# ---------------------------------------------------------------------------


@DEFAULT_REGISTRY.register("tests")
def generate_tests(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    """Tolerance constants and, when enabled, the Aqua.jl quality suite."""
    templates = [("test/tolerances.jl.j2", "test/tolerances.jl")]
    if config.testing.use_aqua:
        templates.append(("test/aqua_tests.jl.j2", "test/aqua_tests.jl"))
    _render_all(renderer, project_path, config, templates)


@DEFAULT_REGISTRY.register("docs")
def generate_docs(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    """Documenter.jl skeleton under ``docs/``."""
    (project_path / "docs" / "src").mkdir(parents=True, exist_ok=True)
    _render_all(
        renderer,
        project_path,
        config,
        [
            ("docs/Project.toml.j2", "docs/Project.toml"),
            ("docs/make.jl.j2", "docs/make.jl"),
            ("docs/src/index.md.j2", "docs/src/index.md"),
        ],
    )


@DEFAULT_REGISTRY.register("ci")
def generate_ci(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    """GitHub Actions CI workflow.

    TagBot and Dependabot come along by default; set them to ``false`` in
    ``[features]`` to opt out.
    """
    (project_path / ".github" / "workflows").mkdir(parents=True, exist_ok=True)
    _render_all(
        renderer,
        project_path,
        config,
        [("github/workflows/CI.yml.j2", ".github/workflows/CI.yml")],
    )

    if config.feature_enabled("tagbot", default=True):
        generate_tagbot(renderer, project_path, config)
    if config.feature_enabled("dependabot", default=True):
        generate_dependabot(renderer, project_path, config)


@DEFAULT_REGISTRY.register("tagbot")
def generate_tagbot(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    """Automated release tagging workflow."""
    _render_all(
        renderer,
        project_path,
        config,
        [("github/workflows/TagBot.yml.j2", ".github/workflows/TagBot.yml")],
    )


@DEFAULT_REGISTRY.register("dependabot")
def generate_dependabot(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    """Dependabot config keeping the GitHub Actions up to date."""
    _render_all(
        renderer,
        project_path,
        config,
        [("github/dependabot.yml.j2", ".github/dependabot.yml")],
    )


# ---------------------------------------------------------------------------
# Code style and workspaces
# ---------------------------------------------------------------------------


@DEFAULT_REGISTRY.register("formatter")
def generate_formatter(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    _render_all(
        renderer,
        project_path,
        config,
        [("root/JuliaFormatter.toml.j2", ".JuliaFormatter.toml")],
    )


@DEFAULT_REGISTRY.register("dev_mode")
def generate_dev_mode(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    _render_all(renderer, project_path, config, [("dev/Project.toml.j2", "dev/Project.toml")])


@DEFAULT_REGISTRY.register("benchmarks")
def generate_benchmarks(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    _render_all(
        renderer,
        project_path,
        config,
        [
            ("benchmarks/Project.toml.j2", "benchmarks/Project.toml"),
            ("benchmarks/runbenchmarks.jl.j2", "benchmarks/runbenchmarks.jl"),
        ],
    )


# ---------------------------------------------------------------------------
# Source modules
# ---------------------------------------------------------------------------


@DEFAULT_REGISTRY.register("logging")
def generate_logging(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    _render_all(renderer, project_path, config, [("src/logging.jl.j2", "src/logging.jl")])


@DEFAULT_REGISTRY.register("result_types")
def generate_result_types(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    _render_all(renderer, project_path, config, [("src/Result.jl.j2", "src/Result.jl")])


# ---------------------------------------------------------------------------
# Scientific projects
# ---------------------------------------------------------------------------


@DEFAULT_REGISTRY.register("drwatson")
def generate_drwatson(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    """DrWatson layout: scripts/data/plots/notebooks/papers.

    A scientific project always gets notebook support as well.
    """
    for directory in DRWATSON_DIRS:
        (project_path / directory).mkdir(parents=True, exist_ok=True)

    _render_all(
        renderer,
        project_path,
        config,
        [("scripts/example.jl.j2", "scripts/01_example.jl")],
    )
    renderer.append_once(
        "drwatson/gitignore.j2",
        project_path / ".gitignore",
        DRWATSON_GITIGNORE_MARKER,
    )
    generate_notebooks(renderer, project_path, config)


@DEFAULT_REGISTRY.register("notebooks")
def generate_notebooks(renderer: TemplateRenderer, project_path: Path, config: ConfigSnapshot) -> None:
    """Jupyter notebook plus VS Code settings for the Julia kernel."""
    (project_path / "notebooks").mkdir(parents=True, exist_ok=True)
    (project_path / ".vscode").mkdir(parents=True, exist_ok=True)

    _render_all(
        renderer,
        project_path,
        config,
        [
            ("notebooks/analysis.ipynb.j2", "notebooks/01_analysis.ipynb"),
            ("vscode/settings.json.j2", ".vscode/settings.json"),
        ],
    )
    renderer.append_once(
        "notebooks/gitignore.j2",
        project_path / ".gitignore",
        NOTEBOOKS_GITIGNORE_MARKER,
    )
