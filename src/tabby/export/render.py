"""Render collaborators — Markdown conversion and template rendering.

Both are thin wrappers that pin down the contracts the builder relies on:

- :class:`MarkdownConverter` never raises; a conversion failure becomes an
  HTML fragment describing the error.
- :class:`TemplateRenderer` raises :class:`TemplateMissingError` for an
  unknown template name, which aborts the current build.
"""

from __future__ import annotations

import html
from pathlib import Path
from typing import TYPE_CHECKING

from tabby._errors import ExportError, TemplateMissingError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tabby._types import TemplateData


class MarkdownConverter:
    """Converts Markdown to an HTML fragment via Patitas.

    Uses the same plugin set everywhere so a rebuild produces the same
    markup as the initial build.

    """

    def __init__(self, plugins: Sequence[str] = ("table",)) -> None:
        from patitas import Markdown

        self._md = Markdown(plugins=list(plugins))

    def convert(self, text: str) -> str:
        """Return HTML for *text*, or an error fragment if conversion fails."""
        try:
            return self._md(text)
        except Exception as exc:  # noqa: BLE001
            detail = html.escape(f"{type(exc).__name__}: {exc}")
            return f'<pre class="tabby-error">Markdown conversion failed: {detail}</pre>\n'

    __call__ = convert


class TemplateRenderer:
    """Renders named Kida templates from an ordered list of directories.

    Directories are searched in order, so user templates shadow the bundled
    theme.  Missing directories are tolerated (the user may create them
    later in serve mode).

    Args:
        template_dirs: Template directories in priority order.

    """

    def __init__(self, template_dirs: Sequence[Path]) -> None:
        from kida import Environment, FileSystemLoader

        self._dirs = tuple(Path(d) for d in template_dirs)
        self._env = Environment(
            loader=FileSystemLoader([str(d) for d in self._dirs]),
            autoescape=True,
            auto_reload=True,
        )

    @property
    def template_dirs(self) -> tuple[Path, ...]:
        return self._dirs

    def has_template(self, name: str) -> bool:
        """Whether *name* exists in any template directory."""
        return any((d / name).is_file() for d in self._dirs)

    def render(self, name: str, data: TemplateData) -> str:
        """Render template *name* with *data*.

        Raises:
            TemplateMissingError: If no directory contains *name*.
            ExportError: If the template exists but fails to render.

        """
        if not self.has_template(name):
            searched = ", ".join(str(d) for d in self._dirs)
            msg = f"Template {name!r} not found (searched: {searched})"
            raise TemplateMissingError(msg)
        try:
            template = self._env.get_template(name)
            return template.render(**data)
        except Exception as exc:
            msg = f"Failed to render template {name!r}: {exc}"
            raise ExportError(msg) from exc
