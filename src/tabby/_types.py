"""Shared type definitions for tabby."""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from pathlib import Path

# Mode of operation
type TabbyMode = Literal["build", "serve"]

# Path to a content source file
type ContentPath = Path

# Fingerprint strategy for the change-detection cache
type FingerprintStrategy = Literal["digest", "stat"]

# Live-reload client identifier
type ClientID = str

# Data bundle handed to the template renderer
type TemplateData = dict[str, Any]

# Zero-argument hooks used by the watcher (build, notify)
type Hook = Callable[[], Any]
