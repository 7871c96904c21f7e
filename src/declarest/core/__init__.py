"""Core engine for declarest (transport-agnostic)."""

from .builder import bind_arguments, build_request
from .codec import Codec, JsonCodec
from .decoder import StatusPolicy, decode_response, is_success_status
from .descriptors import (
    BodyParam,
    HeaderParam,
    MethodDescriptor,
    MethodVerb,
    ParamBinding,
    PathParam,
    QueryParam,
    ReturnKind,
)
from .dispatcher import Dispatcher
from .errors import (
    BuildError,
    ClientError,
    ConfigurationError,
    DecodeError,
    MissingParameterError,
    SerializationError,
    ShapeError,
    TransportError,
    UnsuccessfulStatusError,
)
from .factory import BoundMethod, ClientHandle, create_client, normalize_base_url
from .messages import Request, Response
from .observability import LogfmtFormatter, log_event, setup_logging
from .transport import Transport

__all__ = [
    # Descriptors
    "MethodVerb",
    "ReturnKind",
    "PathParam",
    "QueryParam",
    "HeaderParam",
    "BodyParam",
    "ParamBinding",
    "MethodDescriptor",
    # Wire values
    "Request",
    "Response",
    # Engine
    "build_request",
    "bind_arguments",
    "decode_response",
    "is_success_status",
    "StatusPolicy",
    "Dispatcher",
    "Transport",
    "Codec",
    "JsonCodec",
    # Client factory
    "create_client",
    "normalize_base_url",
    "ClientHandle",
    "BoundMethod",
    # Exceptions
    "ClientError",
    "ConfigurationError",
    "BuildError",
    "MissingParameterError",
    "SerializationError",
    "TransportError",
    "UnsuccessfulStatusError",
    "DecodeError",
    "ShapeError",
    # Logging
    "setup_logging",
    "log_event",
    "LogfmtFormatter",
]
