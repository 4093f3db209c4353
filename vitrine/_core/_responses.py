from __future__ import annotations

from vitrine._core._asset import StaticAsset
from vitrine._core._headers import Headers, cache_control
from vitrine._core.models import Request, Response
from vitrine._utils import bytesize, http_date, path_fingerprint

__all__ = (
    "etag",
    "forbidden_response",
    "not_found_response",
    "not_modified_response",
    "ok_response",
    "asset_headers",
)


def etag(asset: StaticAsset) -> str:
    """The asset digest quoted for use as an ETag."""
    return f'"{asset.digest}"'


def forbidden_response() -> Response:
    return Response(
        status_code=403,
        headers=Headers({"Content-Type": "text/plain", "Content-Length": "9"}),
        stream=[b"Forbidden"],
    )


def not_found_response() -> Response:
    # X-Cascade tells an enclosing composed app it may try another handler.
    return Response(
        status_code=404,
        headers=Headers({"Content-Type": "text/plain", "Content-Length": "9", "X-Cascade": "pass"}),
        stream=[b"Not found"],
    )


def not_modified_response() -> Response:
    return Response(status_code=304, headers=Headers({}), stream=[])


def ok_response(request: Request, asset: StaticAsset, max_age: int) -> Response:
    if request.body_only:
        body = asset.body
        return Response(
            status_code=200,
            headers=asset_headers(request, asset, bytesize(body), max_age),
            stream=[body],
        )
    return Response(
        status_code=200,
        headers=asset_headers(request, asset, asset.length, max_age),
        stream=asset,
    )


def asset_headers(request: Request, asset: StaticAsset, length: int, max_age: int) -> Headers:
    headers = Headers()

    headers["Content-Type"] = asset.content_type
    headers["Content-Length"] = str(length)

    # Fingerprinted URLs never change content.
    if path_fingerprint(request.path) is not None:
        headers["Cache-Control"] = cache_control(public=True, max_age=max_age)
    else:
        headers["Cache-Control"] = cache_control(public=True, must_revalidate=True)

    headers["Last-Modified"] = http_date(asset.mtime)
    headers["ETag"] = etag(asset)

    return headers
