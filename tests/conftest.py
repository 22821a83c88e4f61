"""Shared test fixtures for tabby."""

from __future__ import annotations

import html
from pathlib import Path
from typing import Any

import pytest

from tabby._errors import TemplateMissingError
from tabby.config import TabbyConfig
from tabby.export.cache import BuildCache

HELLO_MD = "---\ntitle: Hello\ndraft: false\n---\n# Hi\n"


@pytest.fixture
def tmp_site(tmp_path: Path) -> Path:
    """Create a minimal site structure for testing.

    Returns the path to the site root with content/ and templates/ dirs.
    """
    content = tmp_path / "content"
    content.mkdir()
    (content / "hello.md").write_text(HELLO_MD)
    (content / "second-post.md").write_text(
        "---\ntitle: Second\ntags: [a, b, a]\n---\nSome *text*.\n"
    )

    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "post.html").write_text(
        "<!DOCTYPE html>\n<html>\n<body>{{ content | safe }}</body>\n</html>\n"
    )

    return tmp_path


@pytest.fixture
def config(tmp_site: Path) -> TabbyConfig:
    """A TabbyConfig rooted at tmp_site."""
    return TabbyConfig(root=tmp_site)


@pytest.fixture
def cache(config: TabbyConfig) -> BuildCache:
    """A digest-strategy cache persisted under the site root."""
    return BuildCache(config.cache_path, base=config.content_path)


class FakeConverter:
    """Markdown stand-in: turns ``# X`` lines into headings, wraps the rest."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def convert(self, text: str) -> str:
        self.calls.append(text)
        out = []
        for line in text.splitlines():
            if line.startswith("# "):
                out.append(f"<h1>{html.escape(line[2:])}</h1>")
            elif line.strip():
                out.append(f"<p>{html.escape(line)}</p>")
        return "\n".join(out)


class FakeRenderer:
    """Template stand-in with a fixed set of known template names."""

    def __init__(self, templates: tuple[str, ...] = ("post.html",)) -> None:
        self.templates = set(templates)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def render(self, name: str, data: dict[str, Any]) -> str:
        if name not in self.templates:
            msg = f"Template {name!r} not found"
            raise TemplateMissingError(msg)
        self.calls.append((name, data))
        return (
            f"<html><head><title>{html.escape(data['title'])}</title></head>"
            f"<body>{data['content']}</body></html>"
        )


@pytest.fixture
def converter() -> FakeConverter:
    return FakeConverter()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()
