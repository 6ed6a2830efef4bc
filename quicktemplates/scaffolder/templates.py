"""Jinja2 template rendering and the two filesystem write primitives.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``quicktemplates/scaffolder/templates/`` directory and renders them with the
template data bag built from a ``ConfigSnapshot``.

Both write primitives are idempotent:

* :meth:`TemplateRenderer.render_to_file` never touches an existing file
  unless ``force`` is set, so user edits survive a re-run.
* :meth:`TemplateRenderer.append_once` appends a block to a shared file
  (``.gitignore``) only if the block's marker comment is not already there.
"""

from __future__ import annotations

import re
import threading
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from rich.markup import escape

from ..utils import print_debug, slugify

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project scaffolding.

    The renderer discovers ``.j2`` template files under a configurable
    template directory. A missing template is not an error: optional files
    are simply not produced.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["slugify"] = slugify
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["toml_str"] = _toml_str_filter
        # One lock per shared output file so concurrent append_once calls
        # serialize. Lives as long as the renderer.
        self._append_locks: dict[Path, threading.Lock] = {}
        self._append_locks_guard = threading.Lock()

    # -- Single template rendering -----------------------------------------

    def has_template(self, template_path: str) -> bool:
        """Return ``True`` if *template_path* resolves under the template root."""
        try:
            self.env.get_template(template_path)
        except TemplateNotFound:
            return False
        return True

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"root/Project.toml.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    # -- File-based rendering ----------------------------------------------

    def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
        *,
        force: bool = False,
    ) -> Optional[Path]:
        """Render a template to *output_path* unless that file already exists.

        Args:
            template_path: Template to render, relative to the template root.
            output_path: Destination file. Parent directories are created.
            context: Template context variables.
            force: Overwrite an existing output file.

        Returns:
            The written path, or ``None`` when nothing was written because the
            template does not exist or the output is already present.
        """
        if not self.has_template(template_path):
            return None

        out = Path(output_path)
        if out.exists() and not force:
            print_debug(f"Skipping {escape(str(out))} (already exists)")
            return None

        content = self.render(template_path, context)
        _write_file(out, content)
        return out

    def append_once(
        self,
        template_path: str,
        output_path: str | Path,
        marker: str,
        context: dict[str, Any] | None = None,
    ) -> bool:
        """Append a rendered block to *output_path* at most once.

        The file is scanned for *marker*; if present nothing happens. The
        appended block always contains the marker, so repeated calls can
        never produce a second copy.

        Returns:
            ``True`` if the block was appended.
        """
        if not self.has_template(template_path):
            return False

        out = Path(output_path)
        with self._lock_for(out):
            current = out.read_text(encoding="utf-8") if out.exists() else ""
            if marker in current:
                print_debug(escape(f"Skipping append to {out} ({marker!r} already present)"))
                return False

            block = self.render(template_path, context or {})
            if marker not in block:
                block = f"{marker}\n{block}"

            out.parent.mkdir(parents=True, exist_ok=True)
            with out.open("a", encoding="utf-8") as fh:
                fh.write("\n" + block)
        return True

    def _lock_for(self, path: Path) -> threading.Lock:
        key = path.absolute()
        with self._append_locks_guard:
            lock = self._append_locks.get(key)
            if lock is None:
                lock = self._append_locks[key] = threading.Lock()
            return lock

    # -- Utility -----------------------------------------------------------

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*.

        Paths are relative to the template root directory.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


_TOML_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def _toml_str_filter(value: Any) -> str:
    """Escape *value* for use inside a double-quoted TOML basic string."""
    text = str(value)
    out = []
    for ch in text:
        if ch in _TOML_ESCAPES:
            out.append(_TOML_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{ord(ch):04X}")
        else:
            out.append(ch)
    return "".join(out)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
