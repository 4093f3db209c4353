from vitrine._core._asset import StaticAsset as StaticAsset
from vitrine._core._headers import Headers as Headers
from vitrine._core._protocol import (
    AnyState as AnyState,
    Deliver as Deliver,
    ErrorRendered as ErrorRendered,
    Failed as Failed,
    Forbidden as Forbidden,
    Negotiate as Negotiate,
    NotFound as NotFound,
    NotModified as NotModified,
    Propagated as Propagated,
    Resolve as Resolve,
    ServerOptions as ServerOptions,
    State as State,
    Success as Success,
    Validate as Validate,
)
from vitrine._core._rendering import ErrorKind as ErrorKind
from vitrine._core.models import (
    FileStat as FileStat,
    Request as Request,
    Response as Response,
)
from vitrine._environment import BaseEnvironment as BaseEnvironment, StaticEnvironment as StaticEnvironment
from vitrine._exceptions import (
    AssetError as AssetError,
    CompileError as CompileError,
    ReadError as ReadError,
    RecordError as RecordError,
    VitrineError as VitrineError,
)
from vitrine._server import AssetServer as AssetServer

__all__ = (
    # Server
    "AssetServer",
    "ServerOptions",
    ## States
    "AnyState",
    "State",
    "Validate",
    "Resolve",
    "Negotiate",
    "Deliver",
    "Failed",
    "Forbidden",
    "NotFound",
    "NotModified",
    "Success",
    "ErrorRendered",
    "Propagated",
    "ErrorKind",
    # Models
    "Request",
    "Response",
    "FileStat",
    "StaticAsset",
    ## Headers
    "Headers",
    # Environments
    "BaseEnvironment",
    "StaticEnvironment",
    # Exceptions
    "VitrineError",
    "RecordError",
    "AssetError",
    "CompileError",
    "ReadError",
)
