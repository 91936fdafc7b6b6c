"""
Pydantic settings model for environment configuration.
"""

import json
from typing import Any, Dict, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiClientSettings(BaseSettings):
    """
    ApiClient configuration from environment variables.

    Reads from:
    1. Environment variables (API_CLIENT_*)
    2. .env file
    3. Defaults

    Example .env file:
        API_CLIENT_ROOT_URL=https://api.example.com/
        API_CLIENT_DEFAULT_TTL=300
        API_CLIENT_REQUEST_ID=batch-2026-10-17
        API_CLIENT_HEADERS={"X-Api-Key": "secret-key-123"}
        API_CLIENT_TIMEOUT_READ=10
        API_CLIENT_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix='API_CLIENT_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    root_url: str = Field(default="", description="Root URL of the API")
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra default headers (JSON object)")
    default_ttl: int = Field(default=600, ge=0, description="Default cache TTL in seconds")
    request_id: Optional[str] = Field(default=None, description="Fixed X-Request-Id for the process")

    add_request_id: bool = Field(default=False)
    add_request_depth: bool = Field(default=False)
    add_request_time: bool = Field(default=False)
    http_errors: bool = Field(default=True)

    timeout_connect: float = Field(default=5.0, gt=0)
    timeout_read: float = Field(default=30.0, gt=0)
    verify_ssl: bool = Field(default=True)

    log_enabled: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "text", "colored"] = Field(default="text")
    log_file_path: Optional[str] = None

    @field_validator('headers', mode='before')
    @classmethod
    def parse_headers(cls, v: Any) -> Any:
        """Allow headers as a JSON string."""
        if isinstance(v, str):
            v = v.strip()
            return json.loads(v) if v else {}
        return v

    @field_validator('request_id')
    @classmethod
    def validate_request_id(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    def default_options(self) -> Dict[str, Any]:
        """Per-call options that differ from the built-in defaults."""
        options: Dict[str, Any] = {}
        for name in ('add_request_id', 'add_request_depth', 'add_request_time'):
            if getattr(self, name):
                options[name] = True
        if not self.http_errors:
            options['http_errors'] = False
        return options
