from __future__ import annotations

import re
import time
import typing as tp
from datetime import datetime
from email.utils import formatdate
from typing import Iterable, Iterator

HEADERS_ENCODING = "iso-8859-1"

_FINGERPRINT_PATTERN = re.compile(r"-([0-9a-f]{7,128})$")


def http_date(value: datetime) -> str:
    """
    Format a timezone-aware datetime in RFC 1123 format.

    Example output: 'Sun, 26 Oct 2025 12:34:56 GMT'
    """
    return formatdate(timeval=value.timestamp(), localtime=False, usegmt=True)


def bytesize(content: tp.Union[str, bytes]) -> int:
    """
    Number of bytes `content` occupies on the wire.

    Strings are measured in their UTF-8 encoding, so "héllo" is 6 bytes long.
    """
    if isinstance(content, str):
        return len(content.encode("utf-8"))
    return len(content)


def elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)


def _split_basename(path: str) -> tp.Tuple[str, str, str]:
    directory, _, basename = path.rpartition("/")
    # A leading dot belongs to the name, not to the extensions.
    dot = basename.find(".", 1)
    if dot == -1:
        return directory, basename, ""
    return directory, basename[:dot], basename[dot:]


def _join(directory: str, name: str) -> str:
    return f"{directory}/{name}" if directory else name


def path_fingerprint(path: str) -> tp.Optional[str]:
    """
    Extract the content digest embedded in a path, if any.

    Example:
        ```
        path_fingerprint("js/app-0aa2105d29558f3eb790d411d7d8fb66.js")
        # '0aa2105d29558f3eb790d411d7d8fb66'
        path_fingerprint("js/app.js")
        # None
        ```
    """
    _, name, _ = _split_basename(path)
    match = _FINGERPRINT_PATTERN.search(name)
    return match.group(1) if match else None


def strip_fingerprint(path: str) -> str:
    directory, name, extensions = _split_basename(path)
    return _join(directory, _FINGERPRINT_PATTERN.sub("", name) + extensions)


def splice_fingerprint(path: str, digest: str) -> str:
    directory, name, extensions = _split_basename(path)
    return _join(directory, f"{name}-{digest}{extensions}")


def make_sync_iterator(iterable: Iterable[bytes]) -> Iterator[bytes]:
    for item in iterable:
        yield item
