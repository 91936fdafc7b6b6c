"""Environment-based configuration (API_CLIENT_* variables, .env files)."""

from .loader import load_from_env
from .validator import ApiClientSettings

__all__ = [
    "load_from_env",
    "ApiClientSettings",
]
