"""Export layer — incremental HTML generation.

Scans content against the change-detection cache and renders only the
files that changed.
"""

from tabby.export.builder import BuildReport, FileFailure, SiteBuilder
from tabby.export.cache import BuildCache, CacheEntry

__all__ = ["BuildCache", "BuildReport", "CacheEntry", "FileFailure", "SiteBuilder"]
