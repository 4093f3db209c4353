from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

import pytest

from vitrine import AssetServer, CompileError
from vitrine.wsgi import WSGIAssetApp

from .conftest import BrokenEnvironment, write_asset


class StartResponse:
    def __init__(self) -> None:
        self.status: Optional[str] = None
        self.headers: List[Tuple[str, str]] = []

    def __call__(self, status: str, headers: List[Tuple[str, str]], exc_info: Any = None) -> None:
        self.status = status
        self.headers = headers

    def get_header(self, name: str) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None


def create_environ(path: str = "/", query_string: str = "", **headers: str) -> dict[str, Any]:
    environ = {
        "REQUEST_METHOD": "GET",
        "SCRIPT_NAME": "",
        "PATH_INFO": path.encode("utf-8").decode("iso-8859-1"),
        "QUERY_STRING": query_string,
        "SERVER_NAME": "testserver",
        "SERVER_PORT": "80",
        "wsgi.url_scheme": "http",
    }
    for name, value in headers.items():
        environ[f"HTTP_{name.upper()}"] = value
    return environ


def fallback_app(environ: dict[str, Any], start_response: Any) -> Iterable[bytes]:
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [b"fallback"]


def test_serves_asset(server: AssetServer) -> None:
    app = WSGIAssetApp(server)
    start_response = StartResponse()

    body = b"".join(app(create_environ("/app.js"), start_response))

    assert start_response.status == "200 OK"
    assert start_response.get_header("Content-Type") == "application/javascript"
    assert start_response.get_header("Cache-Control") == "public, must-revalidate"
    assert body == b"console.log('hello');\n"


def test_passes_validators(server: AssetServer) -> None:
    app = WSGIAssetApp(server)
    start_response = StartResponse()

    body = b"".join(
        app(
            create_environ("/app.js", IF_MODIFIED_SINCE="Mon, 01 Jan 2024 00:00:00 GMT"),
            start_response,
        )
    )

    assert start_response.status == "304 Not Modified"
    assert body == b""


def test_decodes_utf8_path(server: AssetServer, asset_root: Path) -> None:
    write_asset(asset_root, "héllo.txt", "bonjour")
    app = WSGIAssetApp(server)
    start_response = StartResponse()

    body = b"".join(app(create_environ("/héllo.txt"), start_response))

    assert start_response.status == "200 OK"
    assert body == b"bonjour"


def test_passes_query_string(server: AssetServer) -> None:
    app = WSGIAssetApp(server)
    start_response = StartResponse()

    body = b"".join(app(create_environ("/greeting.txt", query_string="body=1"), start_response))

    assert start_response.get_header("Content-Length") == "6"
    assert body == "héllo".encode("utf-8")


def test_forbidden(server: AssetServer) -> None:
    app = WSGIAssetApp(server, fallback=fallback_app)
    start_response = StartResponse()

    body = b"".join(app(create_environ("/../secret.txt"), start_response))

    assert start_response.status == "403 Forbidden"
    assert body == b"Forbidden"


def test_not_found_without_fallback(server: AssetServer) -> None:
    app = WSGIAssetApp(server)
    start_response = StartResponse()

    body = b"".join(app(create_environ("/missing.js"), start_response))

    assert start_response.status == "404 Not Found"
    assert start_response.get_header("X-Cascade") == "pass"
    assert body == b"Not found"


def test_not_found_cascades_to_fallback(server: AssetServer) -> None:
    app = WSGIAssetApp(server, fallback=fallback_app)
    start_response = StartResponse()

    body = b"".join(app(create_environ("/missing.js"), start_response))

    assert start_response.status == "200 OK"
    assert body == b"fallback"


def test_errors_propagate(broken_environment: BrokenEnvironment, caplog: pytest.LogCaptureFixture) -> None:
    app = WSGIAssetApp(AssetServer(broken_environment))

    with caplog.at_level("ERROR", logger="vitrine.wsgi"):
        with pytest.raises(CompileError):
            app(create_environ("/broken.png"), StartResponse())

    assert any("path=/broken.png" in message for message in caplog.messages)
