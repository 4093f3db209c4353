from __future__ import annotations

import abc
import hashlib
import logging
import mimetypes
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from vitrine._core._asset import CHUNK_SIZE, StaticAsset
from vitrine._core.models import FileStat
from vitrine._exceptions import ReadError
from vitrine._utils import path_fingerprint, strip_fingerprint

__all__ = ("BaseEnvironment", "StaticEnvironment", "MIME_TYPES")

logger = logging.getLogger("vitrine.environment")

PathLike = Union[str, Path]

MIME_TYPES: Dict[str, str] = {
    ".css": "text/css",
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".json": "application/json",
    ".html": "text/html",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".ico": "image/vnd.microsoft.icon",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".txt": "text/plain",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


class BaseEnvironment(abc.ABC):
    """
    Everything the asset server needs from the system that resolves assets.

    Implementations may cache resolved assets internally; keeping that cache
    consistent across threads is their job, not the server's.
    """

    logger: logging.Logger = logging.getLogger("vitrine")

    @abc.abstractmethod
    def find_asset(self, logical_path: str) -> Optional[StaticAsset]:
        """
        Resolve `logical_path`, returning None when no such asset exists.

        Raise only for genuine read or compile failures.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def content_type_of(self, path: str) -> str:
        raise NotImplementedError()

    @abc.abstractmethod
    def digest(self) -> str:
        """
        Fingerprint of the whole configuration assets are built with.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def file_digest(self, path: PathLike) -> Optional[str]:
        raise NotImplementedError()

    @abc.abstractmethod
    def stat(self, path: PathLike) -> Optional[FileStat]:
        raise NotImplementedError()

    def expire_index(self) -> None:
        """
        Drop any cached resolution results so the next lookup starts over.
        """


class StaticEnvironment(BaseEnvironment):
    """
    Serves files as they are from a set of directories.

    Args:
        root: Base directory; nothing outside of it is ever served.
        paths: Load paths relative to `root`, searched in order.
        version: Bump it to invalidate every previously resolved asset.
        digest_algorithm: Any algorithm name `hashlib.new` accepts.
        logger: Logger the asset server reports through.

    Example:
        ```python
        environment = StaticEnvironment("public", paths=["javascripts", "stylesheets"])
        asset = environment.find_asset("app.js")
        ```
    """

    def __init__(
        self,
        root: PathLike,
        paths: Iterable[PathLike] = (".",),
        *,
        version: str = "",
        digest_algorithm: str = "sha256",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.paths: List[Path] = []
        self.version = version
        self.digest_algorithm = digest_algorithm
        if logger is not None:
            self.logger = logger

        self._index: Dict[str, StaticAsset] = {}
        self._lock = threading.Lock()

        for path in paths:
            self.append_path(path)

    def append_path(self, path: PathLike) -> None:
        resolved = (self.root / path).resolve()
        if not resolved.is_relative_to(self.root):
            raise ValueError(f"Load path {path!r} is outside of {self.root}")
        self.paths.append(resolved)

    def resolve(self, logical_path: str) -> Optional[Path]:
        """
        Find the file backing `logical_path` in the first load path that has it.
        """
        for base in self.paths:
            candidate = (base / logical_path).resolve()
            if not candidate.is_relative_to(base):
                logger.debug("Refusing to resolve %s outside of %s", logical_path, base)
                continue
            if candidate.is_file():
                return candidate
        return None

    def find_asset(self, logical_path: str) -> Optional[StaticAsset]:
        logical_path = logical_path.lstrip("/")
        fingerprint = path_fingerprint(logical_path)
        if fingerprint is None:
            return self._find_unfingerprinted(logical_path)

        asset = self._find_unfingerprinted(strip_fingerprint(logical_path))
        if asset is not None:
            if asset.digest.startswith(fingerprint):
                return asset
            logger.debug("Fingerprint %s does not match %s", fingerprint, asset.digest)

        # The hex suffix may be part of the file's real name, e.g. fonts-abcdef1.woff
        return self._find_unfingerprinted(logical_path)

    def _find_unfingerprinted(self, logical_path: str) -> Optional[StaticAsset]:
        with self._lock:
            cached = self._index.get(logical_path)
        if cached is not None and cached.is_fresh():
            return cached

        pathname = self.resolve(logical_path)
        if pathname is None:
            with self._lock:
                self._index.pop(logical_path, None)
            return None

        try:
            asset = StaticAsset(self, logical_path, pathname)
        except OSError as e:
            raise ReadError(f"Could not read {pathname}: {e}") from e

        with self._lock:
            self._index[logical_path] = asset
        return asset

    def expire_index(self) -> None:
        with self._lock:
            logger.debug("Expiring %d indexed assets", len(self._index))
            self._index.clear()

    def content_type_of(self, path: str) -> str:
        extension = os.path.splitext(path)[1].lower()
        if extension in MIME_TYPES:
            return MIME_TYPES[extension]
        guessed, _ = mimetypes.guess_type(path)
        return guessed or DEFAULT_MIME_TYPE

    def digest(self) -> str:
        hash_ = hashlib.new(self.digest_algorithm)
        hash_.update(self.version.encode("utf-8"))
        hash_.update(self.digest_algorithm.encode("utf-8"))
        for path in self.paths:
            hash_.update(str(path).encode("utf-8"))
        return hash_.hexdigest()

    def file_digest(self, path: PathLike) -> Optional[str]:
        hash_ = hashlib.new(self.digest_algorithm)
        try:
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                    hash_.update(chunk)
        except FileNotFoundError:
            return None
        return hash_.hexdigest()

    def stat(self, path: PathLike) -> Optional[FileStat]:
        try:
            result = os.stat(path)
        except FileNotFoundError:
            return None
        return FileStat(
            mtime=datetime.fromtimestamp(result.st_mtime, tz=timezone.utc),
            size=result.st_size,
        )
