"""
Configuration loader from environment variables and .env files.
"""

from typing import Optional

from ..config import ApiClientConfig, TimeoutConfig
from ..logging.config import LoggingConfig
from .validator import ApiClientSettings


def load_from_env(env_file: Optional[str] = None, **overrides) -> ApiClientConfig:
    """
    Load ApiClientConfig from environment variables.

    Priority (highest to lowest):
    1. **overrides - explicit parameters
    2. Environment variables (API_CLIENT_*)
    3. .env file
    4. Defaults

    Args:
        env_file: Custom .env file path (default: ./.env)
        **overrides: Settings field overrides (root_url, default_ttl, ...)

    Raises:
        pydantic.ValidationError: invalid values

    Example:
        >>> config = load_from_env()
        >>> config = load_from_env(root_url="https://staging.api.test/")
    """
    settings = ApiClientSettings(_env_file=env_file or '.env', **overrides)

    logging_config = None
    if settings.log_enabled:
        logging_config = LoggingConfig.create(
            level=settings.log_level,
            format=settings.log_format,
            enable_file=settings.log_file_path is not None,
            file_path=settings.log_file_path,
        )

    return ApiClientConfig(
        root_url=settings.root_url,
        headers=settings.headers,
        default_options=settings.default_options(),
        default_ttl=settings.default_ttl,
        request_id=settings.request_id,
        timeout=TimeoutConfig(connect=settings.timeout_connect, read=settings.timeout_read),
        verify_ssl=settings.verify_ssl,
        logging=logging_config,
    )
