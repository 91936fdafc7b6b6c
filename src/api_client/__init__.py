"""API Client Library - HTTP API client with immutable requests and typed failures."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.client import ApiClient
from .core.config import ApiClientConfig, TimeoutConfig
from .core.message import Headers, Request, Response
from .core.resource import ApiResource
from .core.events import EventManager, REQUEST_PRE, REQUEST_POST, REQUEST_FAIL
from .core.transport import Transport, RequestsTransport
from .core.exceptions import (
    ApiClientException,
    RequestFailure,
    ConnectionError,
    ClientError,
    ServerError,
    BadResponseError,
    RuntimeError,
    ConfigurationError,
    InvalidCacheKeyError,
)
from .core.logging import ApiClientLogger, LoggingConfig
from .core.env_config import ApiClientSettings, load_from_env
from .cache import CacheInterface, MemoryCache, DiskCache

# Set up logging - add NullHandler to prevent "No handler found" warnings
# Users can configure logging themselves using logging.getLogger('api_client')
logging.getLogger('api_client').addHandler(logging.NullHandler())

try:
    __version__ = version("api-client-core")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__license__ = "MIT"

__all__ = [
    # Core
    "ApiClient",
    "ApiResource",
    "Headers",
    "Request",
    "Response",
    "EventManager",
    "REQUEST_PRE",
    "REQUEST_POST",
    "REQUEST_FAIL",
    "Transport",
    "RequestsTransport",

    # Config
    "ApiClientConfig",
    "TimeoutConfig",
    "ApiClientSettings",
    "load_from_env",

    # Logging
    "ApiClientLogger",
    "LoggingConfig",

    # Cache
    "CacheInterface",
    "MemoryCache",
    "DiskCache",

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

    # Version
    "__version__",
]
