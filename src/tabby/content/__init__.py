"""Content layer — source documents and change detection on disk.

Handles front matter parsing, filename-derived metadata, and watching the
content directory for writes that should trigger a rebuild.
"""

from tabby.content.document import Document, load_document
from tabby.content.watcher import ChangeEvent, RebuildWatcher, is_noise

__all__ = [
    "ChangeEvent",
    "Document",
    "RebuildWatcher",
    "is_noise",
    "load_document",
]
