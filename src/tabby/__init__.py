"""Tabby — an incremental static site builder with live reload.

Turns a directory of Markdown files into HTML pages, rebuilding only the
files whose content changed, and tells open browser tabs to refresh after
every rebuild.

Quick start::

    import tabby

    tabby.build("my-site/")       # Incremental build into my-site/public/
    tabby.serve("my-site/")       # Build, watch, serve with live reload

Built on:

    patitas     Markdown parser   (content -> HTML fragments)
    kida        Template engine   (fragments -> pages)
    chirp       Web framework     (static files + SSE endpoint)
    watchfiles  File watching     (rebuild triggers)

"""

__version__ = "0.1.0"
__all__ = [
    "TabbyConfig",
    "__version__",
    "build",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import tabby`` fast while providing a clean top-level API.
    """
    if name == "TabbyConfig":
        from tabby.config import TabbyConfig

        return TabbyConfig

    if name == "build":
        from tabby.app import build

        return build

    if name == "serve":
        from tabby.app import serve

        return serve

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
