"""mdserve — a live-reloading Markdown development server.

Renders the Markdown files of a directory tree as styled HTML, serves
co-located assets, and reloads open browser tabs when a Markdown file
changes.

Quick start::

    import mdserve

    mdserve.serve("docs/")

Or build the aiohttp application yourself::

    from mdserve import ServeConfig, create_app

    app = create_app(ServeConfig(root="docs/"))

"""

__version__ = "0.1.0"
__all__ = [
    "ServeConfig",
    "__version__",
    "create_app",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import mdserve`` fast (no aiohttp import until needed).
    """
    if name == "ServeConfig":
        from mdserve.config import ServeConfig

        return ServeConfig

    if name == "create_app":
        from mdserve.app import create_app

        return create_app

    if name == "serve":
        from mdserve.app import serve

        return serve

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
