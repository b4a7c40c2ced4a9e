"""Reactive layer — live-reload fan-out.

Connects file changes to browser reloads through the reload hub and the
WebSocket endpoint.
"""

from mdserve.reactive.hub import RELOAD_TOKEN, ClientConnection, ReloadHub
from mdserve.reactive.livereload import livereload_middleware, make_livereload_handler

__all__ = [
    "RELOAD_TOKEN",
    "ClientConnection",
    "ReloadHub",
    "livereload_middleware",
    "make_livereload_handler",
]
