from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generator, Iterable, cast
from urllib.parse import parse_qsl

from vitrine._core._headers import Headers
from vitrine._utils import make_sync_iterator

_BODY_ONLY_PATTERN = re.compile(r"^(1|t)")


@dataclass(frozen=True)
class FileStat:
    mtime: datetime
    size: int


@dataclass
class Request:
    path: str
    headers: Headers = field(default_factory=lambda: Headers({}))
    query_string: str = ""

    @property
    def body_only(self) -> bool:
        """
        True when `?body=1` or `?body=true` asks for the raw asset body.
        """
        return any(
            key == "body" and _BODY_ONLY_PATTERN.match(value)
            for key, value in parse_qsl(self.query_string, keep_blank_values=True)
        )


@dataclass
class Response:
    status_code: int
    headers: Headers = field(default_factory=lambda: Headers({}))
    stream: Iterable[bytes] = field(default_factory=list)

    def _iter_stream(self) -> Generator[bytes, None, None]:
        if hasattr(self, "collected_body"):
            yield getattr(self, "collected_body")
            return
        yield from self.stream

    def read(self) -> bytes:
        """
        Reads the entire response body without consuming the stream.
        """
        if hasattr(self, "collected_body"):
            return cast(bytes, getattr(self, "collected_body"))

        collected = b"".join([chunk for chunk in self.stream])
        setattr(self, "collected_body", collected)
        self.stream = make_sync_iterator([collected])
        return collected
