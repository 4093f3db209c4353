from __future__ import annotations

import enum
import json
import string
import textwrap
import traceback

from vitrine._core._headers import Headers
from vitrine._core.models import Response
from vitrine._utils import bytesize

__all__ = (
    "ErrorKind",
    "error_kind_for",
    "escape_css_content",
    "javascript_exception_response",
    "css_exception_response",
)

SCRIPT_CONTENT_TYPES = ("application/javascript", "text/javascript")
STYLESHEET_CONTENT_TYPES = ("text/css",)

CSS_ERROR_TEMPLATE = string.Template(
    textwrap.dedent(
        """\
        html {
          padding: 18px 36px;
        }

        head {
          display: block;
        }

        body {
          margin: 0;
          padding: 0;
        }

        body > * {
          display: none !important;
        }

        head:after, body:before, body:after {
          display: block !important;
        }

        head:after {
          font-family: sans-serif;
          font-size: large;
          font-weight: bold;
          content: "Error compiling CSS asset";
        }

        body:before, body:after {
          font-family: monospace;
          white-space: pre-wrap;
        }

        body:before {
          font-weight: bold;
          content: "$message";
        }

        body:after {
          content: "$backtrace";
        }
        """
    )
)


class ErrorKind(enum.Enum):
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    UNHANDLED = "unhandled"


def error_kind_for(content_type: str) -> ErrorKind:
    """
    Decide how a failure for a path with `content_type` reaches the client.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type in SCRIPT_CONTENT_TYPES:
        return ErrorKind.SCRIPT
    if media_type in STYLESHEET_CONTENT_TYPES:
        return ErrorKind.STYLESHEET
    return ErrorKind.UNHANDLED


def describe_exception(exception: BaseException) -> str:
    return f"{type(exception).__name__}: {exception}"


def innermost_frame(exception: BaseException) -> str:
    frames = traceback.extract_tb(exception.__traceback__)
    if not frames:
        return ""
    frame = frames[-1]
    return f'File "{frame.filename}", line {frame.lineno}, in {frame.name}'


def escape_css_content(content: str) -> str:
    """
    Escape `content` for use inside a CSS ``content: "..."`` string.
    """
    return (
        content.replace("\\", "\\005c ")
        .replace("\n", "\\000a ")
        .replace('"', "\\0022 ")
        .replace("/", "\\002f ")
    )


def javascript_exception_response(exception: BaseException) -> Response:
    """
    A script that rethrows `exception` in the browser.
    """
    body = f"throw Error({json.dumps(describe_exception(exception))})"
    return Response(
        status_code=200,
        headers=Headers(
            {
                "Content-Type": "application/javascript",
                "Content-Length": str(bytesize(body)),
            }
        ),
        stream=[body.encode("utf-8")],
    )


def css_exception_response(exception: BaseException) -> Response:
    """
    A stylesheet that hides the page and shows `exception` in its place.
    """
    message = "\n" + describe_exception(exception)
    backtrace = "\n  " + innermost_frame(exception)

    body = CSS_ERROR_TEMPLATE.substitute(
        message=escape_css_content(message),
        backtrace=escape_css_content(backtrace),
    )
    return Response(
        status_code=200,
        headers=Headers(
            {
                "Content-Type": "text/css;charset=utf-8",
                "Content-Length": str(bytesize(body)),
            }
        ),
        stream=[body.encode("utf-8")],
    )
