"""Site builder — incremental two-phase scan/process orchestrator.

Pipeline order:
    1. Scan: list content files and ask the cache which ones changed
    2. Process: for each changed file, load the document (front matter
       with filename fallback), skip drafts, convert Markdown, render the
       template, inject the live-reload bootstrap, write the page
    3. Update the cache entry of every file whose output was written,
       with the fingerprint of the bytes that were rendered
    4. Persist the cache

Failure policy:
    - Listing the content directory fails -> ``ContentError``, nothing built.
    - A single file can't be read or decoded -> logged, recorded in the
      report, its cache entry left stale so the next run retries it; the
      other files still build.
    - Front matter doesn't parse -> filename metadata, build continues.
    - The template is missing -> ``TemplateMissingError`` aborts the rest
      of the run.  Pages already written keep their cache entries.
"""

from __future__ import annotations

import datetime as dt
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from tabby._errors import ContentError, ExportError
from tabby.content.document import Document, load_document
from tabby.reactive.livereload import inject_livereload

if TYPE_CHECKING:
    from tabby._types import TemplateData
    from tabby.config import TabbyConfig
    from tabby.export.cache import BuildCache
    from tabby.export.render import MarkdownConverter, TemplateRenderer
    from tabby.observability.collector import StackCollector


@dataclass(frozen=True, slots=True)
class FileFailure:
    """A content file that could not be built in isolation.

    Attributes:
        path: Source content file.
        reason: Human-readable failure description.

    """

    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class BuildReport:
    """Result of one build pass.

    Attributes:
        total: Content files seen by the scan.
        changed: Source files the cache flagged for rebuild.
        written: Output files written, in processing order.
        skipped_drafts: Slugs of documents skipped as drafts.
        failures: Files that failed without aborting the run.
        duration_ms: Wall-clock time of the pass.

    """

    total: int
    changed: tuple[Path, ...]
    written: tuple[Path, ...]
    skipped_drafts: tuple[str, ...]
    failures: tuple[FileFailure, ...]
    duration_ms: float

    @property
    def ok(self) -> bool:
        """True when every changed file was handled."""
        return not self.failures


class SiteBuilder:
    """Builds changed content files into HTML pages.

    Args:
        config: Frozen Tabby configuration.
        cache: Change-detection cache shared with other builds.
        converter: Markdown collaborator (defaults to Patitas).
        renderer: Template collaborator (defaults to Kida over the
            user templates and the bundled theme).
        collector: Optional observability collector.

    """

    def __init__(
        self,
        config: TabbyConfig,
        cache: BuildCache,
        *,
        converter: MarkdownConverter | None = None,
        renderer: TemplateRenderer | None = None,
        collector: StackCollector | None = None,
    ) -> None:
        self._config = config
        self._cache = cache
        self._collector = collector

        if converter is None:
            from tabby.export.render import MarkdownConverter

            converter = MarkdownConverter()
        if renderer is None:
            from tabby.export.render import TemplateRenderer
            from tabby.theme import get_template_dirs

            renderer = TemplateRenderer(get_template_dirs(config))

        self._converter = converter
        self._renderer = renderer

    @property
    def cache(self) -> BuildCache:
        return self._cache

    # ------------------------------------------------------------------
    # Phase 1: scan
    # ------------------------------------------------------------------

    def list_content(self) -> list[Path]:
        """Non-directory entries of the content dir with the content extension.

        Raises:
            ContentError: If the content directory cannot be listed.

        """
        content_path = self._config.content_path
        try:
            entries = sorted(content_path.iterdir())
        except OSError as exc:
            msg = f"Cannot list content directory {content_path}: {exc}"
            raise ContentError(msg) from exc
        return [
            p for p in entries
            if p.suffix == self._config.extension and not p.is_dir()
        ]

    def scan(self) -> tuple[list[Path], list[Path]]:
        """Return ``(all_files, changed_files)``.  Never mutates the cache."""
        files = self.list_content()
        changed = [p for p in files if self._cache.needs_rebuild(p)]
        return files, changed

    # ------------------------------------------------------------------
    # Phase 2: process
    # ------------------------------------------------------------------

    def build(self, *, force: bool = False) -> BuildReport:
        """Run one incremental build pass.

        Args:
            force: Forget every fingerprint first, rebuilding all files.

        Returns:
            BuildReport describing what was written and what failed.

        Raises:
            ContentError: If the content directory cannot be listed.
            TemplateMissingError: If the configured template doesn't exist.
            ExportError: If a page renders badly or can't be written.

        """
        start = time.perf_counter()
        if force:
            self._cache.clear()

        files, changed = self.scan()
        print(f"  Scanned {len(files)} files, {len(changed)} changed", file=sys.stderr)

        written: list[Path] = []
        drafts: list[str] = []
        failures: list[FileFailure] = []

        try:
            for path in changed:
                t0 = time.perf_counter()
                try:
                    data, fingerprint = self._cache.read(path)
                    text = data.decode("utf-8")
                except (OSError, UnicodeDecodeError) as exc:
                    self._fail(failures, path, f"read failed: {exc}")
                    continue

                doc = load_document(path, text)
                if doc.draft:
                    self._remove_output(doc.slug)
                    drafts.append(doc.slug)
                    self._mark_built(path, fingerprint)
                    self._record(path, "", "draft", t0)
                    continue

                target = self.output_path_for(doc.slug)
                self._write_html(target, self.render_page(doc))
                written.append(target)
                self._mark_built(path, fingerprint)
                self._record(path, str(target), "written", t0)
        finally:
            if changed or force:
                self._save_cache()

        elapsed = (time.perf_counter() - start) * 1000
        if self._collector is not None:
            self._collector.record_build(
                total=len(files),
                changed=len(changed),
                written=len(written),
                failed=len(failures),
                duration_ms=elapsed,
            )

        return BuildReport(
            total=len(files),
            changed=tuple(changed),
            written=tuple(written),
            skipped_drafts=tuple(drafts),
            failures=tuple(failures),
            duration_ms=elapsed,
        )

    def render_page(self, doc: Document) -> str:
        """Convert, render and post-process one document.

        Raises:
            TemplateMissingError: If the configured template doesn't exist.
            ExportError: If the template fails to render.

        """
        fragment = self._converter.convert(doc.body)
        html = self._renderer.render(self._config.template, self.template_data(doc, fragment))
        if self._config.live_reload:
            html = inject_livereload(html)
        return html

    @staticmethod
    def template_data(doc: Document, fragment: str) -> TemplateData:
        """The data bundle handed to the template."""
        return {
            "title": doc.title,
            "content": fragment,
            "date": doc.date.isoformat(),
            "tags": list(doc.tags),
            "excerpt": doc.excerpt,
            "slug": doc.slug,
            "current_year": dt.date.today().year,
        }

    def output_path_for(self, slug: str) -> Path:
        """``hello-world`` -> ``<output>/hello-world.html``."""
        return self._config.output_path / f"{slug}.html"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _mark_built(self, path: Path, fingerprint: str) -> None:
        self._cache.update_file(path, fingerprint)

    def _fail(self, failures: list[FileFailure], path: Path, reason: str) -> None:
        print(f"  Skipping {path.name}: {reason}", file=sys.stderr)
        failures.append(FileFailure(path=path, reason=reason))
        if self._collector is not None:
            self._collector.record_file(str(path), outcome="failed")

    def _record(self, path: Path, target: str, outcome: str, t0: float) -> None:
        if self._collector is not None:
            self._collector.record_file(
                str(path),
                target=target,
                outcome=outcome,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )

    def _remove_output(self, slug: str) -> None:
        """Drop a page left over from before the document became a draft."""
        target = self.output_path_for(slug)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            print(f"  Could not remove stale {target.name}: {exc}", file=sys.stderr)

    def _save_cache(self) -> None:
        try:
            self._cache.save()
        except OSError as exc:
            print(f"  Cache not saved: {exc}", file=sys.stderr)

    @staticmethod
    def _write_html(filepath: Path, html: str) -> int:
        """Write HTML content to a file, creating parent dirs as needed.

        Returns the size in bytes of the written file.

        Raises:
            ExportError: If the file cannot be written.

        """
        data = html.encode("utf-8")
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            filepath.write_bytes(data)
        except OSError as exc:
            msg = f"Failed to write {filepath}: {exc}"
            raise ExportError(msg) from exc
        return len(data)
