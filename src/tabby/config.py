"""Tabby configuration.

TabbyConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path

from tabby._errors import ConfigError

_FINGERPRINT_STRATEGIES = frozenset({"digest", "stat"})

# Side-car file holding the change-detection cache, relative to root.
CACHE_FILE = Path(".tabby") / "cache.json"


@dataclass(frozen=True, slots=True)
class TabbyConfig:
    """Configuration for a Tabby site.

    Attributes:
        root: Path to the site root directory (contains content/, templates/).
              Always resolved to an absolute path on construction.
        host: Bind address for serve mode.
        port: Bind port for serve mode.
        output: Output directory for generated HTML.
        content_dir: Directory containing Markdown content (top level only).
        templates_dir: Directory containing Kida templates.
        template: Template used to render every document.
        extension: File extension recognized as content.
        fingerprint: Change-detection strategy, ``"digest"`` (sha256 of the
            file bytes) or ``"stat"`` (size + modification second).
        live_reload: Inject the live-reload bootstrap into generated pages.
        force_polling: Use the polling watcher instead of native events.

    """

    root: Path = field(default_factory=Path.cwd)
    host: str = "127.0.0.1"
    port: int = 3000
    output: Path = field(default_factory=lambda: Path("public"))
    content_dir: str = "content"
    templates_dir: str = "templates"
    template: str = "post.html"
    extension: str = ".md"
    fingerprint: str = "digest"
    live_reload: bool = True
    force_polling: bool = False

    def __post_init__(self) -> None:
        # watchfiles reports absolute paths
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())
        if self.fingerprint not in _FINGERPRINT_STRATEGIES:
            msg = (
                f"Unknown fingerprint strategy {self.fingerprint!r}; "
                f"expected one of {sorted(_FINGERPRINT_STRATEGIES)}"
            )
            raise ConfigError(msg)
        if not self.extension.startswith("."):
            object.__setattr__(self, "extension", "." + self.extension)

    @property
    def content_path(self) -> Path:
        """Absolute path to content directory."""
        return self.root / self.content_dir

    @property
    def templates_path(self) -> Path:
        """Absolute path to templates directory."""
        return self.root / self.templates_dir

    @property
    def output_path(self) -> Path:
        """Absolute path to output directory."""
        if self.output.is_absolute():
            return self.output
        return self.root / self.output

    @property
    def cache_path(self) -> Path:
        """Absolute path to the change-detection cache file."""
        return self.root / CACHE_FILE
