"""Main scaffolding orchestrator.

Takes a validated ``ConfigSnapshot`` carrying a resolved UUID and lays out a
Julia package under ``PROJECT_DIR/<name>``: the base structure every package
gets, one handler per enabled feature, the project-local ``.env`` and,
optionally, the post-generation steps.

Every write is write-if-absent, so re-running on an existing project only
fills in what is missing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.panel import Panel

from ..config import ConfigSnapshot
from ..errors import ConfigurationError, FeatureUnavailable
from ..utils import console, print_debug, print_success, print_warning
from .context import build_template_data
from .features import DEFAULT_REGISTRY, FeatureRegistry
from .postgen import PostGenerator
from .templates import TemplateRenderer

__all__ = ["ProjectGenerator", "build_template_data"]

# (template, output) pairs rendered for every package.
BASE_TEMPLATES: tuple[tuple[str, str], ...] = (
    ("root/Project.toml.j2", "Project.toml"),
    ("root/README.md.j2", "README.md"),
    ("root/LICENSE.j2", "LICENSE"),
    ("root/gitignore.j2", ".gitignore"),
    ("test/Project.toml.j2", "test/Project.toml"),
    ("test/runtests.jl.j2", "test/runtests.jl"),
    ("claude/rules/workflow.md.j2", ".claude/rules/workflow.md"),
)


class ProjectGenerator:
    """Scaffolds one Julia package from a ``ConfigSnapshot``.

    Args:
        config: Validated snapshot. Must carry a ``uuid``.
        renderer: Template renderer; the packaged templates by default.
        registry: Feature handlers; :data:`DEFAULT_REGISTRY` by default.
    """

    def __init__(
        self,
        config: ConfigSnapshot,
        renderer: Optional[TemplateRenderer] = None,
        registry: Optional[FeatureRegistry] = None,
    ) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()
        self.registry = registry or DEFAULT_REGISTRY

    # -- Public API --------------------------------------------------------

    def generate_project(self, run_postgen: bool = True) -> Path:
        """Generate the complete project and return its root directory."""
        if not self.config.uuid:
            raise ConfigurationError(
                "Configuration has no package uuid; resolve it before generating"
            )

        project_path = self.config.project_path
        console.print(
            Panel(
                f"Generating [bold]{self.config.metadata.name}[/bold]\n"
                f"  Location: {escape(str(project_path))}\n"
                f"  UUID:     {self.config.uuid}",
                title="QuickTemplates",
                border_style="cyan",
            )
        )

        # 1. Files every package gets
        self.generate_base_structure(project_path)

        # 2. Optional features
        self.generate_enabled_features(project_path)

        # 3. Project-local .env override
        self.generate_local_env(project_path)

        # 4. git / Pkg / gh
        if run_postgen:
            PostGenerator(self.config, self.renderer).run(project_path)

        console.print(
            Panel(
                f"[green]Project ready[/green]\n"
                f"  cd {escape(str(project_path))}\n"
                f"  julia --project",
                title="Done",
                border_style="green",
            )
        )
        return project_path

    def generate_base_structure(self, project_path: str | Path) -> None:
        """Create ``src/`` and ``test/`` and render the base files."""
        root = Path(project_path)
        (root / "src").mkdir(parents=True, exist_ok=True)
        (root / "test").mkdir(parents=True, exist_ok=True)

        data = build_template_data(self.config)
        templates = list(BASE_TEMPLATES)
        templates.append(("src/Package.jl.j2", f"src/{self.config.metadata.name}.jl"))

        for template_name, output_name in templates:
            self.renderer.render_to_file(template_name, root / output_name, data)
        print_success("Base structure created")

    def generate_feature(self, name: str, project_path: str | Path) -> None:
        """Run the handler registered for *name*.

        Raises:
            FeatureUnavailable: No handler is registered under *name*.
        """
        handler = self.registry.get(name)
        if handler is None:
            raise FeatureUnavailable(name)
        handler(self.renderer, Path(project_path), self.config)
        print_debug(f"Feature '{escape(name)}' generated")

    def generate_enabled_features(self, project_path: str | Path) -> list[str]:
        """Generate every feature whose flag is ``true``.

        Unknown features are reported and skipped; any other failure
        propagates.

        Returns:
            Names of the features that were generated.
        """
        generated: list[str] = []
        for name, enabled in self.config.features.items():
            if enabled is not True:
                continue
            try:
                self.generate_feature(name, project_path)
            except FeatureUnavailable as exc:
                print_warning(escape(str(exc)))
                continue
            generated.append(name)

        if generated:
            print_success(f"Features: {escape(', '.join(generated))}")
        return generated

    def generate_local_env(self, project_path: str | Path) -> Optional[Path]:
        """Write the project-local ``.env`` unless one already exists."""
        data = build_template_data(self.config)
        return self.renderer.render_to_file("root/env.j2", Path(project_path) / ".env", data)
