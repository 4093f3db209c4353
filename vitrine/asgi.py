from __future__ import annotations

import logging
import typing as t
from typing import Generator

from anyio import to_thread

from vitrine._core._headers import Headers
from vitrine._core.models import Request, Response
from vitrine._server import AssetServer
from vitrine._utils import HEADERS_ENCODING
from vitrine.wsgi import is_cascading

logger = logging.getLogger(__name__)


class _ASGIScope(t.TypedDict, total=False):
    """ASGI HTTP scope type."""

    type: str
    asgi: dict[str, str]
    http_version: str
    method: str
    scheme: str
    path: str
    query_string: bytes
    root_path: str
    headers: list[tuple[bytes, bytes]]
    server: tuple[str, int | None] | None
    client: tuple[str, int] | None
    state: dict[str, t.Any]
    extensions: dict[str, t.Any]


_Scope = _ASGIScope
_Receive = t.Callable[[], t.Awaitable[dict[str, t.Any]]]
_Send = t.Callable[[dict[str, t.Any]], t.Awaitable[None]]
_ASGIApp = t.Callable[[_Scope, _Receive, _Send], t.Awaitable[None]]


class ASGIAssetApp:
    """
    ASGI application serving the assets of an `AssetServer`.

    The server itself is synchronous, so every request is handled, and every
    body chunk read, in a worker thread.

    Args:
        server: The asset server handling requests.
        fallback: Application that receives requests for assets that do not
            exist. Without one, those requests get the server's 404.

    Example:
        ```python
        from vitrine import AssetServer, StaticEnvironment
        from vitrine.asgi import ASGIAssetApp

        app = ASGIAssetApp(AssetServer(StaticEnvironment("public")))
        ```
    """

    def __init__(self, server: AssetServer, fallback: _ASGIApp | None = None) -> None:
        self.server = server
        self.fallback = fallback

    async def __call__(self, scope: _Scope, receive: _Receive, send: _Send) -> None:
        if scope["type"] != "http":
            logger.debug("Skipping non-HTTP request: type=%s", scope["type"])
            if self.fallback is not None:
                await self.fallback(scope, receive, send)
            return

        request = self._asgi_to_internal_request(scope)

        try:
            response = await to_thread.run_sync(self.server.handle_request, request)
        except Exception as e:
            logger.error(
                "Error processing request: path=%s error=%s",
                request.path,
                str(e),
                exc_info=True,
            )
            raise

        if self.fallback is not None and is_cascading(response):
            logger.debug("Cascading %s to the fallback application", request.path)
            await self.fallback(scope, receive, send)
            return

        await self._send_internal_response(response, send)

    def _asgi_to_internal_request(self, scope: _Scope) -> Request:
        headers_dict = {
            key.decode(HEADERS_ENCODING): value.decode(HEADERS_ENCODING) for key, value in scope.get("headers", [])
        }

        return Request(
            path=scope.get("path", "/"),
            headers=Headers(headers_dict),
            query_string=scope.get("query_string", b"").decode(HEADERS_ENCODING),
        )

    async def _send_internal_response(self, response: Response, send: _Send) -> None:
        headers: list[tuple[bytes, bytes]] = [
            (key.encode(HEADERS_ENCODING), value.encode(HEADERS_ENCODING)) for key, value in response.headers.items()
        ]

        await send(
            {
                "type": "http.response.start",
                "status": response.status_code,
                "headers": headers,
            }
        )

        chunks: Generator[bytes, None, None] = response._iter_stream()
        bytes_sent = 0
        try:
            while True:
                chunk = await to_thread.run_sync(next, chunks, None)
                if chunk is None:
                    break
                await send(
                    {
                        "type": "http.response.body",
                        "body": chunk,
                        "more_body": True,
                    }
                )
                bytes_sent += len(chunk)
        finally:
            # Releases the asset's file handle when the client goes away mid-body.
            chunks.close()

        await send(
            {
                "type": "http.response.body",
                "body": b"",
                "more_body": False,
            }
        )
        logger.debug(
            "Response fully sent: status=%d total_bytes=%d",
            response.status_code,
            bytes_sent,
        )
