"""mdserve application — wires the router, watch tree and reload hub into aiohttp.

``create_app`` builds the aiohttp application for a ServeConfig; ``serve`` is
the public entry point that loads configuration, prints the banner and runs
the server until interrupted.
"""

import asyncio
import logging
import socket
from collections.abc import Callable
from pathlib import Path

from aiohttp import web

from mdserve._errors import ConfigError, WatchError
from mdserve.config import ServeConfig
from mdserve.config_loader import load_config
from mdserve.content.router import ContentRouter
from mdserve.content.watcher import DirectoryWatchTree, EventSource, WatchfilesSource
from mdserve.reactive.hub import ReloadHub
from mdserve.reactive.livereload import livereload_middleware

logger = logging.getLogger(__name__)

HUB_KEY = web.AppKey("mdserve_hub", ReloadHub)
WATCH_TREE_KEY = web.AppKey("mdserve_watch_tree", DirectoryWatchTree)

_FIRST_PORT = 8080


def find_available_port(host: str, start: int = _FIRST_PORT) -> int:
    """Return the first port from *start* that can be bound on *host*.

    Raises:
        ConfigError: If *host* cannot be resolved or no port up to 65535 is
            free.

    """
    try:
        family, _, _, _, sockaddr = socket.getaddrinfo(host, start, type=socket.SOCK_STREAM)[0]
    except socket.gaierror as exc:
        msg = f"Cannot resolve host {host!r}: {exc}"
        raise ConfigError(msg) from exc
    address = sockaddr[0]

    for port in range(start, 65536):
        with socket.socket(family, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((address, port) + tuple(sockaddr[2:]))
            except OSError:
                continue
            return port
    msg = f"Failed to find an available port on {host}"
    raise ConfigError(msg)


def _setup_live_reload(
    app: web.Application,
    config: ServeConfig,
    router: ContentRouter,
    source: EventSource | None,
) -> ReloadHub | None:
    """Create the watch tree and reload hub and hook them into the app lifecycle.

    Returns None (live reload disabled, content still served) when the
    served root cannot be watched.

    """
    hub = ReloadHub(write_timeout=config.write_timeout)
    if source is None:
        source = WatchfilesSource(debounce_ms=config.debounce_ms, step_ms=config.step_ms)
    tree = DirectoryWatchTree(
        config.root,
        source,
        on_change=lambda _event: hub.notify(),
        tracked_suffixes=config.tracked_suffixes,
    )
    try:
        tree.prepare()
    except WatchError as exc:
        logger.warning("Failed to initialize live reload: %s", exc)
        return None

    app[HUB_KEY] = hub
    app[WATCH_TREE_KEY] = tree

    async def _start_live_reload(app: web.Application) -> None:
        await hub.start()
        tree.start()

    async def _stop_live_reload(app: web.Application) -> None:
        # on_shutdown runs before aiohttp waits for open handlers, so
        # WebSocket clients must be closed here.
        await asyncio.to_thread(tree.stop)
        await hub.stop()
        logger.info("LiveReload: stopped")

    app.on_startup.append(_start_live_reload)
    app.on_shutdown.append(_stop_live_reload)

    router.register_livereload_endpoint(app, hub)
    return hub


def create_app(
    config: ServeConfig,
    *,
    source: EventSource | None = None,
    renderer: Callable[[bytes], bytes] | None = None,
) -> web.Application:
    """Build the aiohttp application for *config*.

    Args:
        config: Session configuration.
        source: Event source for the watch tree (default: watchfiles).
        renderer: Markdown renderer override (default: Python-Markdown).

    """
    if not config.root.is_dir():
        msg = f"Directory does not exist: {config.root}"
        raise ConfigError(msg)

    app = web.Application()
    router = ContentRouter(config) if renderer is None else ContentRouter(config, renderer=renderer)

    hub = None
    if config.live_reload:
        hub = _setup_live_reload(app, config, router, source)
    if hub is not None:
        app.middlewares.append(livereload_middleware(config.reload_endpoint))

    router.register_routes(app)
    return app


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def serve(root: str | Path = ".", **kwargs: object) -> None:
    """Serve a directory of Markdown files until interrupted.

    Args:
        root: Directory to serve.
        **kwargs: Override ServeConfig fields.

    Raises:
        ConfigError: If the configuration is invalid or the root is missing.
        OSError: If the listening port cannot be bound.

    """
    from mdserve.banner import print_banner

    config = load_config(Path(root), **kwargs)
    port = config.port or find_available_port(config.host)

    app = create_app(config)
    live = HUB_KEY in app

    print_banner(config, port=port, live_reload=live)

    web.run_app(
        app,
        host=config.host,
        port=port,
        print=None,
        access_log=logger if config.verbose else None,
    )
