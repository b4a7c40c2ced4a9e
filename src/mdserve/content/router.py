"""Content router — serves the served root over HTTP.

Dispatch order: the live-reload endpoint, the asset prefix, then content
resolution for every other path.  Resolution decides between a directory
index, a rendered Markdown page, a raw asset, a trailing-slash redirect, and
403/404 answers.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import os
from http import HTTPStatus
from typing import TYPE_CHECKING
from urllib.parse import unquote

from aiohttp import web
from markupsafe import Markup

from mdserve._errors import RenderError
from mdserve.content.listing import (
    create_breadcrumbs,
    directory_title,
    extract_title,
    list_directory,
)
from mdserve.content.renderer import render_markdown
from mdserve.content.resolver import (
    Asset,
    Forbidden,
    Index,
    Markdown,
    NotFound,
    Redirect,
    resolve,
)
from mdserve.theme import STYLESHEET_NAME, create_environment, stylesheet_path

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from mdserve.config import ServeConfig
    from mdserve.reactive.hub import ReloadHub

logger = logging.getLogger(__name__)

_CONTENT_TYPES: dict[str, str] = {
    ".html": "text/html; charset=utf-8",
    ".htm": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".md": "text/markdown; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
}


def request_fs_path(request: web.Request) -> str:
    """Percent-decode the request path, keeping non-UTF-8 bytes as surrogate escapes.

    Listing links encode raw file-name bytes, so they must decode back to the
    same ``str`` that ``os.scandir`` produced.
    """
    return unquote(request.rel_url.raw_path, errors="surrogateescape")


def content_type_for(path: Path) -> str:
    """Return the Content-Type header value for a served file."""
    suffix = path.suffix.lower()
    if suffix in _CONTENT_TYPES:
        return _CONTENT_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


class ContentRouter:
    """Routes requests for the served root through aiohttp.

    Args:
        config: Session configuration (root, prefixes, theme).
        renderer: Markdown-to-HTML function; defaults to ``render_markdown``.

    """

    def __init__(
        self,
        config: ServeConfig,
        *,
        renderer: Callable[[bytes], bytes] = render_markdown,
    ) -> None:
        self._config = config
        self._root = config.root
        self._renderer = renderer
        self._env = create_environment(config)
        self._stylesheet_url = config.assets_prefix + STYLESHEET_NAME

    def register_livereload_endpoint(self, app: web.Application, hub: ReloadHub) -> None:
        """Register the live-reload WebSocket endpoint.

        Must be called before ``register_routes`` so it precedes the
        catch-all content route.
        """
        from mdserve.reactive.livereload import make_livereload_handler

        app.router.add_get(self._config.reload_endpoint, make_livereload_handler(hub), name="livereload")

    def register_routes(self, app: web.Application) -> None:
        """Register the asset passthrough and the catch-all content route."""
        app.router.add_get(self._config.assets_prefix + "{tail:.*}", self.handle_asset, name="assets")
        app.router.add_get("/{tail:.*}", self.handle_request, name="content")

    # -- handlers ---------------------------------------------------------

    async def handle_request(self, request: web.Request) -> web.StreamResponse:
        target = resolve(self._root, request_fs_path(request))

        match target:
            case Index(path=directory):
                return await self._serve_index(request, directory)
            case Markdown(path=path):
                return await self._serve_markdown(request, path)
            case Asset(path=path):
                return self._serve_file(path)
            case Redirect(location=location):
                if request.query_string:
                    location = f"{location}?{request.query_string}"
                raise web.HTTPMovedPermanently(location)
            case Forbidden():
                raise web.HTTPForbidden(text="Invalid path")
            case NotFound():
                raise web.HTTPNotFound()

    async def handle_asset(self, request: web.Request) -> web.StreamResponse:
        request_path = request_fs_path(request)
        prefix = self._config.assets_prefix
        if request_path.startswith(prefix):
            tail = request_path[len(prefix) :]
        else:
            tail = request.match_info.get("tail", "")
        target = resolve(self._root, tail)

        match target:
            case Markdown(path=path) | Asset(path=path):
                return self._serve_file(path)
            case Forbidden():
                raise web.HTTPForbidden(text="Invalid path")

        if tail.strip("/") == STYLESHEET_NAME:
            css = stylesheet_path(self._config)
            return web.FileResponse(css, headers={"Content-Type": content_type_for(css)})
        raise web.HTTPNotFound()

    # -- responses --------------------------------------------------------

    def _serve_file(self, path: Path) -> web.StreamResponse:
        logger.info("file: %s", os.path.relpath(path, self._root))
        return web.FileResponse(path, headers={"Content-Type": content_type_for(path)})

    async def _serve_index(self, request: web.Request, directory: Path) -> web.Response:
        try:
            entries = await asyncio.to_thread(list_directory, self._root, directory)
        except OSError as exc:
            logger.error("failed to read directory %s: %s", directory, exc)
            return self._error_response(request, 500, f"Failed to read directory: {exc}")

        rel = os.path.relpath(directory, self._root)
        html = self._env.get_template("directory.html").render(
            title=directory_title(self._root, directory),
            breadcrumbs=create_breadcrumbs(rel),
            entries=entries,
            stylesheet=self._stylesheet_url,
        )
        return web.Response(text=html, content_type="text/html")

    async def _serve_markdown(self, request: web.Request, path: Path) -> web.Response:
        rel = os.path.relpath(path, self._root)
        try:
            source = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            logger.error("failed to read %s: %s", rel, exc)
            return self._error_response(request, 500, f"Failed to read file: {exc}")

        try:
            body = await asyncio.to_thread(self._renderer, source)
        except RenderError as exc:
            logger.error("failed to render %s: %s", rel, exc)
            return self._error_response(request, 500, str(exc))

        logger.info("markdown: %s", rel)
        text = source.decode("utf-8", errors="replace")
        html = self._env.get_template("page.html").render(
            title=extract_title(text, path.name),
            content=Markup(body.decode("utf-8", errors="replace")),
            breadcrumbs=create_breadcrumbs(rel, is_file=True),
            stylesheet=self._stylesheet_url,
        )
        return web.Response(text=html, content_type="text/html")

    def _error_response(self, request: web.Request, status: int, message: str) -> web.Response:
        reason = HTTPStatus(status).phrase
        html = self._env.get_template("error.html").render(
            status=status,
            reason=reason,
            path=request.path,
            message=message,
            stylesheet=self._stylesheet_url,
        )
        return web.Response(text=html, status=status, content_type="text/html")
