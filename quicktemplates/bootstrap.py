"""One-time setup commands: the global identity file and a starter config.toml.

``setup_identity`` asks for the author's identity and writes
``~/.config/quicktemplates/.env``; ``init_config`` copies the packaged
``config.toml.template`` into the working directory. Both ask before
overwriting an existing file.
"""

from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.prompt import Confirm, Prompt

from .errors import ConfigurationError
from .loaders import CONFIG_TEMPLATE_PATH, global_env_path
from .utils import console, print_info, print_success, print_warning

_ENV_TEMPLATE = """\
# .env - QuickTemplates global configuration
# Generated: {generated}

# === Identity (required) ===
AUTHOR_FULLNAME={author_fullname}
GITHUB_USER={github_user}
GITHUB_EMAIL={github_email}
PROJECT_DIR={project_dir}

# === DVC (uncomment if used) ===
# DVC_REMOTE_URL=""
# AWS_ACCESS_KEY_ID=""
# AWS_SECRET_ACCESS_KEY=""
# GOOGLE_APPLICATION_CREDENTIALS=""

# === Database (uncomment if used) ===
# DB_HOST="localhost"
# DB_PORT="5432"
# DB_NAME=""
# DB_USER=""
# DB_PASSWORD=""

# === Notebooks (uncomment if used) ===
# JUPYTER_PORT=8888
# PLUTO_PORT=1234
"""


def default_project_dir() -> Path:
    return Path.home() / "Projects" / "Julia"


def _quote(value: str) -> str:
    # python-dotenv unescapes \\ and \" inside double quotes.
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_identity_env(
    author_fullname: str,
    github_user: str,
    github_email: str,
    project_dir: str,
) -> str:
    """Return the contents of the global identity ``.env``."""
    return _ENV_TEMPLATE.format(
        generated=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        author_fullname=_quote(author_fullname),
        github_user=_quote(github_user),
        github_email=_quote(github_email),
        project_dir=_quote(project_dir),
    )


def setup_identity(env_path: Optional[Path] = None) -> Optional[Path]:
    """Interactively write the global identity file.

    Returns:
        The written path, or ``None`` if the user declined to overwrite.

    Raises:
        ConfigurationError: A required identity field was left empty.
    """
    env_path = env_path or global_env_path()
    console.rule("[bold cyan]QuickTemplates identity setup[/bold cyan]")

    if env_path.exists() and not Confirm.ask(
        f"{escape(str(env_path))} already exists. Overwrite?", default=False
    ):
        print_info("Setup cancelled")
        return None

    author_fullname = Prompt.ask("Full name").strip()
    github_user = Prompt.ask("GitHub user").strip()
    github_email = Prompt.ask("GitHub e-mail (the GitHub noreply address is recommended)").strip()
    project_dir = Prompt.ask(
        "Base directory for projects", default=str(default_project_dir())
    ).strip()

    if not (author_fullname and github_user and github_email and project_dir):
        raise ConfigurationError("All identity fields are required")

    expanded = Path(project_dir).expanduser()
    if not expanded.is_dir():
        if Confirm.ask(f"Directory {escape(str(expanded))} does not exist. Create it?", default=True):
            expanded.mkdir(parents=True, exist_ok=True)
            print_success(f"Created {escape(str(expanded))}")
        else:
            print_warning(f"PROJECT_DIR {escape(str(expanded))} does not exist; generation will fail until it does")

    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.write_text(
        render_identity_env(author_fullname, github_user, github_email, project_dir),
        encoding="utf-8",
    )

    print_success(f"Identity written to {escape(str(env_path))}")
    print_info(
        "Next steps:\n"
        "  1. cd <working directory>\n"
        "  2. quicktemplates init-config\n"
        "  3. edit config.toml (name + features)\n"
        "  4. quicktemplates generate"
    )
    return env_path


def init_config(dest: str | Path = "config.toml", force: bool = False) -> Optional[Path]:
    """Copy the packaged ``config.toml.template`` to *dest*.

    Returns:
        The written path, or ``None`` if the user declined to overwrite.
    """
    if not CONFIG_TEMPLATE_PATH.is_file():
        raise ConfigurationError(f"config.toml.template not found at {CONFIG_TEMPLATE_PATH}")

    dest_path = Path(dest)
    if dest_path.exists() and not force:
        if not Confirm.ask(f"{escape(str(dest_path))} already exists. Overwrite?", default=False):
            print_info("Cancelled")
            return None

    shutil.copyfile(CONFIG_TEMPLATE_PATH, dest_path)
    print_success(f"{escape(str(dest_path))} created")
    print_info(
        "Edit it and set:\n"
        '   - name = "YourPackage"\n'
        "   - the features you need (true/false)\n"
        "Then run: quicktemplates generate"
    )
    return dest_path
