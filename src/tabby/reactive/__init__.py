"""Reactive layer — live reload.

Injects the bootstrap script into generated pages and fans reload signals
out to every connected browser after a rebuild.
"""

from tabby.reactive.broadcaster import Broadcaster, ReloadSession
from tabby.reactive.livereload import LIVERELOAD_ENDPOINT, inject_livereload

__all__ = [
    "LIVERELOAD_ENDPOINT",
    "Broadcaster",
    "ReloadSession",
    "inject_livereload",
]
