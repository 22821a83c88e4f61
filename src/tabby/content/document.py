"""Content documents — front matter, title and slug derivation.

A content file is UTF-8 Markdown with an optional leading front-matter
block::

    ---
    title: Hello
    date: 2024-05-01
    tags: [intro, meta]
    draft: false
    excerpt: A first post.
    ---
    # Hi

The opening and closing delimiters must be lines consisting of exactly
three hyphens.  A block that fails to parse never aborts the build: the
document falls back to filename-derived metadata and the original text.
"""

from __future__ import annotations

import datetime as dt
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tabby._errors import FrontMatterError

_DELIMITER = "---"
_SLUG_STRIP = re.compile(r"[^a-z0-9]+")
_WORD_SPLIT = re.compile(r"[-_\s]+")


@dataclass(frozen=True, slots=True)
class Document:
    """A content file ready for rendering.

    Attributes:
        title: Display title.
        body: Markdown body (front matter removed).
        slug: URL-safe name; determines the output path.
        date: Publication date.
        tags: Ordered, de-duplicated tags.
        draft: Drafts are never rendered.
        excerpt: Short summary for listings and meta tags.
        source: Path of the file the document was built from.

    """

    title: str
    body: str
    slug: str
    date: dt.date
    tags: tuple[str, ...] = ()
    draft: bool = False
    excerpt: str = ""
    source: Path | None = field(default=None, compare=False)


def slug_from_filename(path: Path) -> str:
    """``My First_Post.md`` -> ``my-first-post``."""
    slug = _SLUG_STRIP.sub("-", path.stem.lower()).strip("-")
    return slug or "post"


def title_from_filename(path: Path) -> str:
    """``my-first_post.md`` -> ``My First Post``."""
    words = [w for w in _WORD_SPLIT.split(path.stem) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words) or path.stem


def split_front_matter(text: str) -> tuple[str | None, str]:
    """Split a leading front-matter block from the body.

    Returns ``(raw_metadata, body)``.  ``raw_metadata`` is None when the
    text has no complete block (missing opening or closing delimiter), in
    which case ``body`` is the text unchanged.

    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != _DELIMITER:
        return None, text

    for i in range(1, len(lines)):
        if lines[i].rstrip("\r\n") == _DELIMITER:
            raw = "".join(lines[1:i])
            body = "".join(lines[i + 1:]).lstrip("\r\n")
            return raw, body

    return None, text


def parse_front_matter(raw: str) -> dict[str, Any]:
    """Parse the YAML between the delimiters.

    Raises:
        FrontMatterError: If the block is not valid YAML or not a mapping.

    """
    try:
        data = yaml.safe_load(raw)
    except (yaml.YAMLError, ValueError) as exc:
        # timestamps like 2024-02-30 fail in the constructor with ValueError
        msg = f"invalid YAML: {exc}"
        raise FrontMatterError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"expected a mapping, got {type(data).__name__}"
        raise FrontMatterError(msg)
    return data


def _coerce_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            msg = f"invalid date {value!r}"
            raise FrontMatterError(msg) from exc
    msg = f"invalid date {value!r}"
    raise FrontMatterError(msg)


def _coerce_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [str(part).strip() for part in value]
    else:
        msg = f"tags must be a list or comma-separated string, got {value!r}"
        raise FrontMatterError(msg)
    # dict preserves first-seen order
    return tuple(dict.fromkeys(t for t in items if t))


def _coerce_draft(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    msg = f"draft must be true or false, got {value!r}"
    raise FrontMatterError(msg)


def document_from_metadata(
    path: Path,
    metadata: dict[str, Any],
    body: str,
    *,
    today: dt.date | None = None,
) -> Document:
    """Build a Document from parsed front matter.

    Unset ``date`` defaults to *today*, unset ``title`` to the
    filename-derived title.

    Raises:
        FrontMatterError: If a recognized key has an unusable value.

    """
    date_value = metadata.get("date")
    title = metadata.get("title")
    excerpt = metadata.get("excerpt")
    return Document(
        title=str(title) if title is not None else title_from_filename(path),
        body=body,
        slug=slug_from_filename(path),
        date=_coerce_date(date_value) if date_value is not None else (today or dt.date.today()),
        tags=_coerce_tags(metadata.get("tags")),
        draft=_coerce_draft(metadata.get("draft")),
        excerpt=str(excerpt) if excerpt is not None else "",
        source=path,
    )


def fallback_document(path: Path, text: str, *, today: dt.date | None = None) -> Document:
    """Document built purely from the filename, with *text* as the body."""
    return Document(
        title=title_from_filename(path),
        body=text,
        slug=slug_from_filename(path),
        date=today or dt.date.today(),
        source=path,
    )


def load_document(path: Path, text: str, *, today: dt.date | None = None) -> Document:
    """Turn the text of a content file into a Document.

    Front-matter failures are logged and degrade to :func:`fallback_document`
    with the literal original text as the body.

    """
    raw, body = split_front_matter(text)
    if raw is None:
        return fallback_document(path, text, today=today)

    try:
        metadata = parse_front_matter(raw)
        return document_from_metadata(path, metadata, body, today=today)
    except FrontMatterError as exc:
        print(
            f"  Front matter in {path.name} ignored ({exc}); using filename metadata",
            file=sys.stderr,
        )
        return fallback_document(path, text, today=today)
