"""declarest package exports."""

from .config import ClientConfig, create_client_from_env
from .core import (
    BodyParam,
    BoundMethod,
    BuildError,
    ClientError,
    ClientHandle,
    Codec,
    ConfigurationError,
    DecodeError,
    HeaderParam,
    JsonCodec,
    MethodDescriptor,
    MethodVerb,
    MissingParameterError,
    PathParam,
    QueryParam,
    Request,
    Response,
    ReturnKind,
    SerializationError,
    ShapeError,
    Transport,
    TransportError,
    UnsuccessfulStatusError,
    build_request,
    create_client,
    decode_response,
    setup_logging,
)
from .declaration import ApiDeclaration, Body, Header, Path, Query, describe
from .transports import HttpxTransport, MockTransport, RetryConfig

__all__ = [
    # Descriptors
    "MethodVerb",
    "ReturnKind",
    "PathParam",
    "QueryParam",
    "HeaderParam",
    "BodyParam",
    "MethodDescriptor",
    # Declaration
    "ApiDeclaration",
    "Path",
    "Query",
    "Header",
    "Body",
    "describe",
    # Client
    "create_client",
    "create_client_from_env",
    "ClientConfig",
    "ClientHandle",
    "BoundMethod",
    "build_request",
    "decode_response",
    "Request",
    "Response",
    "Codec",
    "JsonCodec",
    # Transports
    "Transport",
    "HttpxTransport",
    "MockTransport",
    "RetryConfig",
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
]
