"""Live reload — WebSocket endpoint and client script injection.

Injects a small script into HTML responses that connects the browser to the
reload endpoint.  Any message from the server reloads the page; after a
disconnect the script keeps retrying and reloads once the server is back.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from aiohttp import WSMsgType, web

from mdserve.reactive.hub import ClientConnection

if TYPE_CHECKING:
    from aiohttp.typedefs import Handler, Middleware

    from mdserve.reactive.hub import ReloadHub

logger = logging.getLogger(__name__)

# The script injected before </body>.  {endpoint} is the reload path.
_LIVERELOAD_SCRIPT = """\
<script data-mdserve-livereload>
(function() {{
  var proto = location.protocol === 'https:' ? 'wss:' : 'ws:';
  var url = proto + '//' + location.host + '{endpoint}';
  function connect(reconnecting) {{
    var ws = new WebSocket(url);
    ws.onopen = function() {{
      if (reconnecting) location.reload();
    }};
    ws.onmessage = function() {{
      location.reload();
    }};
    ws.onclose = function() {{
      setTimeout(function() {{ connect(true); }}, 1000);
    }};
  }}
  connect(false);
}})();
</script>
"""


def livereload_script(endpoint: str) -> str:
    return _LIVERELOAD_SCRIPT.format(endpoint=endpoint)


def inject_script(body: str, script: str) -> str:
    """Insert *script* before ``</body>`` (or ``</html>``), else append it."""
    if "</body>" in body:
        return body.replace("</body>", script + "</body>", 1)
    if "</html>" in body:
        return body.replace("</html>", script + "</html>", 1)
    return body + script


def livereload_middleware(endpoint: str) -> Middleware:
    """Build an aiohttp middleware that injects the reload script into HTML.

    Only plain ``web.Response`` objects with a ``text/html`` content type
    are touched; file and WebSocket responses pass through unchanged.

    """
    script = livereload_script(endpoint)

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        response = await handler(request)

        if not isinstance(response, web.Response) or response.content_type != "text/html":
            return response
        if response.body is None or response.prepared:
            return response

        response.text = inject_script(response.text, script)
        return response

    return middleware


def make_livereload_handler(hub: ReloadHub) -> Handler:
    """Create the WebSocket handler that registers clients with *hub*.

    The handler's read loop exists only to notice disconnection; incoming
    messages are ignored.

    """

    async def livereload_handler(request: web.Request) -> web.StreamResponse:
        ws = web.WebSocketResponse(heartbeat=30.0)
        await ws.prepare(request)

        conn = ClientConnection(client_id=str(uuid.uuid4()), transport=ws)
        hub.register(conn)
        try:
            async for msg in ws:
                if msg.type == WSMsgType.ERROR:
                    logger.debug("live-reload connection error: %s", ws.exception())
                    break
        finally:
            hub.unregister(conn)
            await ws.close()
        return ws

    return livereload_handler
