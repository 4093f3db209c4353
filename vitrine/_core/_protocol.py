from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Union
from urllib.parse import unquote

from typing_extensions import assert_never

from vitrine._core._asset import StaticAsset
from vitrine._core._rendering import (
    ErrorKind,
    css_exception_response,
    error_kind_for,
    javascript_exception_response,
)
from vitrine._core._responses import (
    etag,
    forbidden_response,
    not_found_response,
    not_modified_response,
    ok_response,
)
from vitrine._core.models import Request, Response
from vitrine._utils import http_date


_SEGMENT_SEPARATORS = re.compile(r"[/\\]")

ONE_YEAR = 31_536_000


@dataclass
class ServerOptions:
    """
    Configuration options for the asset server.

    Attributes:
    ----------
    max_age : int
        Lifetime in seconds advertised for fingerprinted URLs, which are
        cached as ``public, max-age=<max_age>``. URLs without a fingerprint
        are always sent as ``public, must-revalidate``.

        Default: 31536000 (one year)

    render_errors : bool
        When True, failures for script and stylesheet paths are rendered into
        the response body with a 200 status so the browser shows them. When
        False, every failure propagates to the caller.

        Default: True

        Examples:
        --------
        >>> # Let the hosting framework's error pages handle everything
        >>> options = ServerOptions(render_errors=False)
    """

    max_age: int = ONE_YEAR
    """Seconds a fingerprinted asset may be cached for."""

    render_errors: bool = True
    """When True, script and stylesheet failures are rendered in-band."""


def is_forbidden_path(path: str) -> bool:
    """
    True when `path` tries to climb out of the asset directories.

    Example:
        ```
        is_forbidden_path("/assets/../../../etc/passwd")  # True
        is_forbidden_path("/assets/%2e%2e/secret")  # True
        is_forbidden_path("/assets/app..min.js")  # False
        ```
    """
    for candidate in (path, unquote(path)):
        if ".." in _SEGMENT_SEPARATORS.split(candidate):
            return True
    return False


def not_modified(request: Request, asset: StaticAsset) -> bool:
    """
    Compare If-Modified-Since against the asset mtime.

    Only an exact match of the formatted date counts.
    """
    return request.headers.get("If-Modified-Since") == http_date(asset.mtime)


def etag_match(request: Request, asset: StaticAsset) -> bool:
    return request.headers.get("If-None-Match") == etag(asset)


def client_has_current(request: Request, asset: StaticAsset) -> bool:
    return not_modified(request, asset) or etag_match(request, asset)


@dataclass
class State(ABC):
    request: Request
    options: ServerOptions

    @abstractmethod
    def next(self, *args: Any, **kwargs: Any) -> Union["State", None]:
        raise NotImplementedError("Subclasses must implement this method")


@dataclass
class Validate(State):
    """
    Entry state: rejects unsafe paths before any other work happens.
    """

    def next(self) -> Union["Resolve", "Forbidden"]:
        if is_forbidden_path(self.request.path):
            return Forbidden(request=self.request, options=self.options, response=forbidden_response())
        return Resolve(request=self.request, options=self.options)


@dataclass
class Resolve(State):
    """
    Waiting for the environment to look up the requested asset.
    """

    @property
    def logical_path(self) -> str:
        path = self.request.path
        return path[1:] if path.startswith("/") else path

    def next(self, asset: Optional[StaticAsset]) -> Union["NotFound", "Negotiate"]:
        if asset is None:
            return NotFound(request=self.request, options=self.options, response=not_found_response())
        return Negotiate(request=self.request, options=self.options, asset=asset)


@dataclass
class Negotiate(State):
    """
    Decides whether the client already holds the current asset.

    Either validator alone is enough for a 304.
    """

    asset: StaticAsset

    def next(self) -> Union["NotModified", "Deliver"]:
        if client_has_current(self.request, self.asset):
            return NotModified(request=self.request, options=self.options, response=not_modified_response())
        return Deliver(request=self.request, options=self.options, asset=self.asset)


@dataclass
class Deliver(State):
    asset: StaticAsset

    def next(self) -> "Success":
        return Success(
            request=self.request,
            options=self.options,
            response=ok_response(self.request, self.asset, self.options.max_age),
        )


@dataclass
class Failed(State):
    """
    Resolving or delivering the asset raised `error`.

    `content_type` comes from the request path, since there may be no asset
    to ask.
    """

    error: Exception
    content_type: str

    @property
    def kind(self) -> ErrorKind:
        if not self.options.render_errors:
            return ErrorKind.UNHANDLED
        return error_kind_for(self.content_type)

    def next(self) -> Union["ErrorRendered", "Propagated"]:
        kind = self.kind
        if kind is ErrorKind.SCRIPT:
            response = javascript_exception_response(self.error)
        elif kind is ErrorKind.STYLESHEET:
            response = css_exception_response(self.error)
        elif kind is ErrorKind.UNHANDLED:
            return Propagated(request=self.request, options=self.options, error=self.error)
        else:
            assert_never(kind)
        return ErrorRendered(request=self.request, options=self.options, kind=kind, response=response)


@dataclass
class Terminal(State):
    outcome: ClassVar[str]

    def next(self) -> None:
        return None


@dataclass
class Forbidden(Terminal):
    outcome: ClassVar[str] = "403 Forbidden"
    response: Response


@dataclass
class NotFound(Terminal):
    outcome: ClassVar[str] = "404 Not Found"
    response: Response


@dataclass
class NotModified(Terminal):
    outcome: ClassVar[str] = "304 Not Modified"
    response: Response


@dataclass
class Success(Terminal):
    outcome: ClassVar[str] = "200 OK"
    response: Response


@dataclass
class ErrorRendered(Terminal):
    outcome: ClassVar[str] = "500 Internal Server Error (rendered in-band)"
    kind: ErrorKind
    response: Response


@dataclass
class Propagated(Terminal):
    outcome: ClassVar[str] = "500 Internal Server Error"
    error: Exception


AnyState = Union[
    Validate,
    Resolve,
    Negotiate,
    Deliver,
    Failed,
    Forbidden,
    NotFound,
    NotModified,
    Success,
    ErrorRendered,
    Propagated,
]
