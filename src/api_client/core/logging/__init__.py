"""
Logging system for API Client.

Example:
    >>> from api_client import ApiClient
    >>> from api_client.core.logging import LoggingConfig
    >>> config = ApiClientConfig.create(
    ...     "https://api.test/",
    ...     logging=LoggingConfig.create(level="DEBUG", format="json"),
    ... )
    >>> client = ApiClient(config=config)
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import ApiClientLogger
from .formatters import JSONFormatter, TextFormatter, ColoredFormatter, get_formatter
from .filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
)
from .handlers import create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "ApiClientLogger",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "ColoredFormatter",
    "get_formatter",
    # Filters
    "CorrelationIdFilter",
    "ExtraFieldsFilter",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    # Handlers
    "create_console_handler",
    "create_file_handler",
]
