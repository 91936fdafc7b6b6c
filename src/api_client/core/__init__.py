"""Core API Client модули."""

from .config import ApiClientConfig, TimeoutConfig, DEFAULT_TTL
from .message import Headers, Request, Response
from .builder import RequestBuilder, REQUEST_ID_HEADER, REQUEST_DEPTH_HEADER, REQUEST_NAME_HEADER
from .events import EventManager, Event, REQUEST_PRE, REQUEST_POST, REQUEST_FAIL
from .exceptions import (
    ApiClientException,
    RequestFailure,
    ConnectionError,
    ClientError,
    ServerError,
    BadResponseError,
    RuntimeError,
    ConfigurationError,
    InvalidCacheKeyError,
    classify_transport_exception,
)
from .resource import ApiResource
from .transport import Transport, RequestsTransport
from .client import ApiClient, RESPONSE_TIME_HEADER

__all__ = [
    # Client
    "ApiClient",
    "RESPONSE_TIME_HEADER",

    # Config
    "ApiClientConfig",
    "TimeoutConfig",
    "DEFAULT_TTL",

    # Messages
    "Headers",
    "Request",
    "Response",
    "ApiResource",

    # Building
    "RequestBuilder",
    "REQUEST_ID_HEADER",
    "REQUEST_DEPTH_HEADER",
    "REQUEST_NAME_HEADER",

    # Events
    "EventManager",
    "Event",
    "REQUEST_PRE",
    "REQUEST_POST",
    "REQUEST_FAIL",

    # Transport
    "Transport",
    "RequestsTransport",

    # Exceptions
    "ApiClientException",
    "RequestFailure",
    "ConnectionError",
    "ClientError",
    "ServerError",
    "BadResponseError",
    "RuntimeError",
    "ConfigurationError",
    "InvalidCacheKeyError",
    "classify_transport_exception",
]
