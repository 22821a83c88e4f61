"""Tabby error hierarchy.

All tabby-specific errors inherit from TabbyError for easy catching.
Each kind carries its own ``exit_code`` so the CLI can report failures
with a machine-readable status.
"""


class TabbyError(Exception):
    """Base error for all tabby operations."""

    exit_code: int = 1


class ConfigError(TabbyError):
    """Invalid or missing configuration."""

    exit_code = 2


class ContentError(TabbyError):
    """Error in content processing (listing, reading, front matter)."""

    exit_code = 3


class FrontMatterError(ContentError):
    """Malformed front-matter block.

    Never fatal: the builder falls back to filename-derived metadata.
    """


class ExportError(TabbyError):
    """Error while rendering or writing output."""

    exit_code = 5


class TemplateMissingError(ExportError):
    """A referenced template does not exist. Aborts the current build."""

    exit_code = 4


class WatchError(TabbyError):
    """Transient failure reported by the filesystem watcher."""

    exit_code = 6


class ReactiveError(TabbyError):
    """Error in the live-reload layer (broadcasting, SSE endpoint)."""

    exit_code = 7
