"""Post-generation steps: git, Pkg instantiation, GitHub remote, dev setup.

Every step is best-effort. A failing command raises
:class:`~quicktemplates.errors.ExternalToolWarning` inside the step; the
runner prints it as a warning and moves on to the next step, so a machine
without Julia or ``gh`` still ends up with a usable project tree.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from ..config import ConfigSnapshot
from rich.markup import escape

from ..errors import ExternalToolWarning
from ..utils import console, print_debug, print_info, print_success, print_warning, run_command
from .context import build_template_data
from .templates import TemplateRenderer

INITIAL_COMMIT_MESSAGE = "Initial commit via QuickTemplates"
INSTANTIATE_EXPR = "using Pkg; Pkg.instantiate()"

# Pkg.instantiate can download a whole dependency tree.
JULIA_TIMEOUT = 900


class PostGenerator:
    """Runs the external tools that finish a freshly generated project.

    Args:
        config: Snapshot the project was generated from.
        renderer: Used for the dev workspace templates.
    """

    def __init__(self, config: ConfigSnapshot, renderer: Optional[TemplateRenderer] = None) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()

    # -- Public API --------------------------------------------------------

    def run(self, project_path: str | Path) -> list[str]:
        """Run every applicable step in order.

        Returns:
            Warning messages from steps that failed.
        """
        root = Path(project_path)
        console.rule("[bold cyan]Post-generation[/bold cyan]")

        steps: list[tuple[str, Callable[[Path], None]]] = [
            ("git", self.init_git),
            ("julia", self.instantiate_project),
        ]
        if self.config.feature_enabled("drwatson"):
            steps.append(("drwatson", self.confirm_drwatson))
        if self.config.feature_enabled("dev_mode"):
            steps.append(("dev", self.instantiate_dev))
        if self.config.feature_enabled("docs"):
            steps.append(("docs", self.instantiate_docs))
        if self.config.github.create_repo:
            steps.append(("github", self.create_github_repo))
        if self.config.dev.auto_setup:
            steps.append(("dev_setup", self.setup_dev_workspace))

        warnings: list[str] = []
        for name, step in steps:
            try:
                step(root)
            except ExternalToolWarning as exc:
                print_warning(f"{name}: {escape(str(exc))}")
                warnings.append(str(exc))
        return warnings

    # -- Steps -------------------------------------------------------------

    def init_git(self, root: Path) -> None:
        """``git init``, stage everything and make the initial commit."""
        self._check(["git", "init"], root)
        self._check(["git", "add", "."], root)
        self._check(["git", "commit", "-m", INITIAL_COMMIT_MESSAGE], root)
        print_success("Git repository initialized")

    def instantiate_project(self, root: Path) -> None:
        self._instantiate(root, "main project")
        if self.config.feature_enabled("tests"):
            self._instantiate(root / "test", "test environment")

    def confirm_drwatson(self, root: Path) -> None:
        print_success("DrWatson layout ready (data/, plots/, scripts/, notebooks/, papers/)")

    def instantiate_dev(self, root: Path) -> None:
        self._instantiate(root / "dev", "dev environment")

    def instantiate_docs(self, root: Path) -> None:
        self._instantiate(root / "docs", "docs environment")

    def create_github_repo(self, root: Path) -> None:
        """Create the remote with ``gh``, add it as ``origin`` and optionally push."""
        user = self.config.metadata.github_user
        name = self.config.metadata.name
        visibility = "--private" if self.config.github.private else "--public"

        self._check(["gh", "repo", "create", f"{user}/{name}", visibility], root)
        self._check(
            ["git", "remote", "add", "origin", f"git@github.com:{user}/{name}.git"],
            root,
        )
        print_success(f"GitHub repository created: {user}/{name}")

        if self.config.github.auto_push:
            self._push(root)

    def setup_dev_workspace(self, root: Path) -> None:
        """Render the personal startup file and the dev setup script."""
        data = build_template_data(self.config)
        written = [
            self.renderer.render_to_file(
                "julia/config/startup.jl.j2", root / ".julia" / "config" / "startup.jl", data
            ),
            self.renderer.render_to_file(
                "scripts/dev_setup.jl.j2", root / "scripts" / "dev_setup.jl", data
            ),
        ]
        for path in written:
            if path is not None:
                print_debug(f"Wrote {escape(str(path))}")
        print_success("Dev workspace files created")

    # -- Internal helpers --------------------------------------------------

    def _push(self, root: Path) -> None:
        # ssh -T exits 1 on successful authentication (no shell access).
        rc, _, _ = run_command(["ssh", "-T", "git@github.com"], cwd=root, timeout=30)
        if rc not in (0, 1):
            raise ExternalToolWarning(
                "ssh -T git@github.com",
                "SSH authentication unavailable; push manually with: "
                f"git push -u origin {self.config.metadata.default_branch}",
            )

        branch = self._check(["git", "branch", "--show-current"], root) or (
            self.config.metadata.default_branch
        )
        self._check(["git", "push", "-u", "origin", branch], root)
        print_success(f"Pushed to origin/{escape(branch)}")

    def _instantiate(self, project: Path, label: str) -> None:
        print_info(f"Instantiating {label}...")
        self._check(
            ["julia", "--project", "-e", INSTANTIATE_EXPR],
            project,
            timeout=JULIA_TIMEOUT,
        )
        print_success(f"Instantiated {label}")

    def _check(self, cmd: list[str], cwd: Path, timeout: int = 300) -> str:
        """Run *cmd*, returning stdout or raising ``ExternalToolWarning``."""
        rc, stdout, stderr = run_command(cmd, cwd=cwd, timeout=timeout)
        if rc != 0:
            raise ExternalToolWarning(" ".join(cmd), stderr or f"exit code {rc}")
        return stdout
