from __future__ import annotations

import logging
import time
from typing import Optional, Union

from typing_extensions import assert_never

from vitrine._core._protocol import (
    AnyState,
    Deliver,
    ErrorRendered,
    Failed,
    Forbidden,
    Negotiate,
    NotFound,
    NotModified,
    Propagated,
    Resolve,
    ServerOptions,
    Success,
    Terminal,
    Validate,
)
from vitrine._core.models import Request, Response
from vitrine._environment import BaseEnvironment
from vitrine._utils import elapsed_ms


class AssetServer:
    """
    Serves the assets of an environment over HTTP.

    This class is independent of any specific web framework and works only with
    internal models; see `vitrine.wsgi` and `vitrine.asgi` for adapters.

    Mapping the server at a URL prefix serves every asset in the environment:
    a request for ``"/foo/bar.js"`` looks up ``"foo/bar.js"``.

    Args:
        environment: Resolves logical paths into assets.
        options: Server configuration. Defaults to ServerOptions().
    """

    def __init__(self, environment: BaseEnvironment, options: Optional[ServerOptions] = None) -> None:
        self.environment = environment
        self.options = options if options is not None else ServerOptions()

    @property
    def logger(self) -> logging.Logger:
        return self.environment.logger

    def handle_request(self, request: Request) -> Response:
        start_time = time.time()
        state: AnyState = Validate(request=request, options=self.options)

        while True:
            self.logger.debug("Handling state: %s", type(state).__name__)
            if isinstance(state, Validate):
                state = state.next()
            elif isinstance(state, Resolve):
                try:
                    asset = self.environment.find_asset(state.logical_path)
                except Exception as e:
                    state = self._handle_failure(state, e)
                else:
                    state = state.next(asset)
            elif isinstance(state, Negotiate):
                state = state.next()
            elif isinstance(state, Deliver):
                try:
                    state = state.next()
                except Exception as e:
                    state = self._handle_failure(state, e)
            elif isinstance(state, Failed):
                state = state.next()
            elif isinstance(state, (Forbidden, NotFound, NotModified, Success)):
                self._log_outcome(state, start_time)
                return state.response
            elif isinstance(state, ErrorRendered):
                self.environment.expire_index()
                self._log_outcome(state, start_time)
                return state.response
            elif isinstance(state, Propagated):
                self._log_outcome(state, start_time)
                raise state.error
            else:
                assert_never(state)

    def _handle_failure(self, state: Union[Resolve, Deliver], error: Exception) -> Failed:
        path = state.request.path
        self.logger.error("Error compiling asset %s:", path)
        self.logger.error("%s: %s", type(error).__name__, error)
        return Failed(
            request=state.request,
            options=self.options,
            error=error,
            content_type=self.environment.content_type_of(path),
        )

    def _log_outcome(self, state: Terminal, start_time: float) -> None:
        self.logger.info(
            "Served asset %s - %s (%dms)",
            state.request.path,
            state.outcome,
            elapsed_ms(start_time),
        )

    def asset_path(self, logical_path: str, fingerprint: bool = True, prefix: Optional[str] = None) -> str:
        """
        Build the URL path for an asset.

        By default the asset's digest is spliced into the file name:

            /assets/application-3676d55f84497cbeadfc614c1b1b62fc.js

        Args:
            logical_path: The asset to link to.
            fingerprint: Whether to include the digest when the asset exists.
            prefix: Prepended to the path, e.g. the mount point of the server.
        """
        url = logical_path
        if fingerprint:
            asset = self.environment.find_asset(logical_path.lstrip("/"))
            if asset is not None:
                url = asset.digest_path

        if prefix:
            url = f"{prefix.rstrip('/')}/{url.lstrip('/')}"
        if not url.startswith("/"):
            url = f"/{url}"
        return url

    def asset_url(
        self,
        logical_path: str,
        *,
        scheme: str = "http",
        host: str = "localhost",
        port: Optional[int] = None,
        fingerprint: bool = True,
        prefix: Optional[str] = None,
    ) -> str:
        """
        Like `asset_path`, but returns an absolute URL.

        The port is omitted when it is the default one for the scheme.
        """
        if port is None:
            port = 443 if scheme == "https" else 80

        if (scheme == "http" and port != 80) or (scheme == "https" and port != 443):
            host = f"{host}:{port}"

        return f"{scheme}://{host}{self.asset_path(logical_path, fingerprint, prefix)}"
