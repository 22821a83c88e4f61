"""Tabby CLI — tabby build / tabby serve.

Entry point for the ``tabby`` command-line interface.  Failures are
reported on stderr and mapped to a per-kind exit status (see
``tabby._errors``).
"""

from __future__ import annotations

import argparse
import sys

from tabby._errors import ContentError, TabbyError


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the tabby CLI."""
    parser = argparse.ArgumentParser(
        prog="tabby",
        description="Incremental static site builder with live reload.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # tabby build
    build_parser = subparsers.add_parser(
        "build",
        help="Build changed content into HTML",
    )
    build_parser.add_argument("root", nargs="?", default=".", help="Site root directory")
    build_parser.add_argument(
        "--force", action="store_true", help="Ignore the cache and rebuild everything",
    )
    build_parser.add_argument("--output", default=None, help="Output directory")

    # tabby serve
    serve_parser = subparsers.add_parser(
        "serve",
        help="Build, then watch content and serve with live reload",
    )
    serve_parser.add_argument("root", nargs="?", default=".", help="Site root directory")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument("--output", default=None, help="Output directory")
    serve_parser.add_argument(
        "--poll", action="store_true", help="Poll for changes instead of native events",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from tabby import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from tabby.app import build, serve

    try:
        if args.command == "build":
            report = build(root=args.root, force=args.force, output=args.output)
            if not report.ok:
                sys.exit(ContentError.exit_code)
        elif args.command == "serve":
            serve(
                root=args.root,
                host=args.host,
                port=args.port,
                output=args.output,
                force_polling=args.poll or None,
            )
    except TabbyError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        sys.exit(exc.exit_code)


if __name__ == "__main__":
    main()
