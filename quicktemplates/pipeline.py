"""Command-line entry point and the end-to-end ``generate`` pipeline.

Stages, in order:

1. Load defaults, the user's ``config.toml`` and the ``.env`` files.
2. Merge them into a ``ConfigSnapshot``.
3. Validate (fatal errors stop here, before anything is written).
4. Resolve the package UUID.
5. Scaffold the project and run post-generation.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Iterable, Optional

from rich.markup import escape

from . import __version__
from .bootstrap import init_config, setup_identity
from .config import ConfigSnapshot
from .errors import ConfigurationError, ValidationError
from .identity import attach_uuid
from .loaders import load_defaults, load_env, load_user
from .merge import merge_configs
from .scaffolder import ProjectGenerator
from .utils import console, print_error, print_summary_table, set_verbose
from .validator import validate


def load_and_validate_config(
    config_path: str | Path = "config.toml",
    defaults: Optional[dict[str, Any]] = None,
    env_paths: Optional[Iterable[str | Path]] = None,
) -> ConfigSnapshot:
    """Run stages 1-3 and return the validated snapshot (without a UUID).

    Raises:
        ConfigurationError: A source is missing, unparseable, or inconsistent.
        ValidationError: One or more validation rules failed.
    """
    defaults = defaults if defaults is not None else load_defaults()
    user = load_user(config_path)
    env = load_env(env_paths)

    config = merge_configs(defaults, user, env)
    validate(config, defaults)
    return config


def generate(
    config_path: str | Path = "config.toml",
    run_postgen: bool = True,
    env_paths: Optional[Iterable[str | Path]] = None,
) -> Path:
    """Generate the project described by *config_path*; returns its root."""
    config = attach_uuid(load_and_validate_config(config_path, env_paths=env_paths))

    print_summary_table(
        {
            "Package": config.metadata.name,
            "Author": config.metadata.author_fullname,
            "Location": str(config.project_path),
            "Julia": config.metadata.julia_version,
            "Features": ", ".join(n for n, on in config.features.items() if on) or "-",
        },
        title="QuickTemplates",
    )
    return ProjectGenerator(config).generate_project(run_postgen=run_postgen)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quicktemplates",
        description="QuickTemplates -- scaffold Julia packages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  quicktemplates setup-identity\n"
            "  quicktemplates init-config\n"
            "  quicktemplates generate --config config.toml\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print skipped files and other diagnostics",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "setup-identity",
        help="Write ~/.config/quicktemplates/.env interactively",
    )

    init_parser = subparsers.add_parser(
        "init-config",
        help="Copy the config.toml template into the current directory",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config.toml without asking",
    )

    generate_parser = subparsers.add_parser("generate", help="Generate the project")
    generate_parser.add_argument(
        "--config", "-c",
        default="config.toml",
        help="Path to config.toml (default: ./config.toml)",
    )
    generate_parser.add_argument(
        "--no-postgen",
        action="store_true",
        help="Skip git, Pkg and GitHub post-generation steps",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for the ``quicktemplates`` console script."""
    args = build_parser().parse_args(argv)
    set_verbose(args.verbose)

    try:
        if args.command == "setup-identity":
            setup_identity()
        elif args.command == "init-config":
            init_config(force=args.force)
        elif args.command == "generate":
            generate(args.config, run_postgen=not args.no_postgen)
    except ValidationError as exc:
        console.print("[bold red]Configuration is invalid:[/bold red]")
        for message in exc.errors:
            console.print(f"  - {escape(message)}")
        sys.exit(1)
    except ConfigurationError as exc:
        print_error(f"Error: {escape(str(exc))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
