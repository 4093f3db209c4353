from __future__ import annotations

import logging
import typing as t
from http import HTTPStatus

from vitrine._core._headers import Headers
from vitrine._core.models import Request, Response
from vitrine._server import AssetServer
from vitrine._utils import HEADERS_ENCODING

logger = logging.getLogger(__name__)

_Environ = t.Dict[str, t.Any]
_StartResponse = t.Callable[..., t.Any]
_WSGIApp = t.Callable[[_Environ, _StartResponse], t.Iterable[bytes]]


def is_cascading(response: Response) -> bool:
    return response.status_code == 404 and response.headers.get("X-Cascade") == "pass"


class WSGIAssetApp:
    """
    WSGI application serving the assets of an `AssetServer`.

    Args:
        server: The asset server handling requests.
        fallback: Application that receives requests for assets that do not
            exist. Without one, those requests get the server's 404.

    Example:
        ```python
        from wsgiref.simple_server import make_server

        from vitrine import AssetServer, StaticEnvironment
        from vitrine.wsgi import WSGIAssetApp

        app = WSGIAssetApp(AssetServer(StaticEnvironment("public")))
        make_server("", 8000, app).serve_forever()
        ```
    """

    def __init__(self, server: AssetServer, fallback: _WSGIApp | None = None) -> None:
        self.server = server
        self.fallback = fallback

    def __call__(self, environ: _Environ, start_response: _StartResponse) -> t.Iterable[bytes]:
        request = self._wsgi_to_internal_request(environ)

        try:
            response = self.server.handle_request(request)
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
            return self.fallback(environ, start_response)

        status = f"{response.status_code} {HTTPStatus(response.status_code).phrase}"
        start_response(status, list(response.headers.items()))
        return response._iter_stream()

    def _wsgi_to_internal_request(self, environ: _Environ) -> Request:
        # PEP 3333 hands the path over as latin-1 decoded bytes.
        raw_path = environ.get("PATH_INFO", "")
        path = raw_path.encode(HEADERS_ENCODING).decode("utf-8", "replace")

        headers = Headers(
            {
                key[5:].replace("_", "-").title(): value
                for key, value in environ.items()
                if key.startswith("HTTP_")
            }
        )

        return Request(
            path=path,
            headers=headers,
            query_string=environ.get("QUERY_STRING", ""),
        )
