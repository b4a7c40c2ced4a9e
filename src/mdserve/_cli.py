"""mdserve CLI — serve a directory of Markdown files with live reload.

Entry point for the ``mdserve`` command-line interface.
"""

from __future__ import annotations

import argparse
import logging
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the mdserve CLI."""
    parser = argparse.ArgumentParser(
        prog="mdserve",
        description="Render a directory of Markdown files as HTML with live reload.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument("dir", nargs="?", default=".", help="Directory to serve")
    parser.add_argument("--host", default=None, help="Host to bind to (default: localhost)")
    parser.add_argument(
        "--port", type=int, default=None, help="Port to bind to (default: 0, first free from 8080)",
    )
    parser.add_argument("--file", default=None, help="Entry markdown file to open")
    parser.add_argument(
        "--livereload",
        dest="live_reload",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable live reload (default: on)",
    )
    parser.add_argument(
        "--template-dir", default=None, help="Directory overriding the bundled templates",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=None, help="Enable debug logging",
    )
    return parser


def _get_version() -> str:
    """Get the package version."""
    from mdserve import __version__

    return __version__


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )
    if not verbose:
        # aiohttp and watchfiles are chatty at INFO.
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        logging.getLogger("watchfiles").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(bool(args.verbose))

    from mdserve._errors import MdserveError
    from mdserve.app import serve

    try:
        serve(
            root=args.dir,
            host=args.host,
            port=args.port,
            file=args.file,
            live_reload=args.live_reload,
            template_dir=args.template_dir,
            verbose=args.verbose,
        )
    except MdserveError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except OSError as exc:
        print(f"Error: server failed: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
