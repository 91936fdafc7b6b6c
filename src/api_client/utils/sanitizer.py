# src/api_client/utils/sanitizer.py
"""
Маскирование чувствительных данных перед записью в лог.

Защищает токены, пароли и API ключи в заголовках, URL и телах запросов.
"""

import re
from typing import Any, Dict, Mapping

DEFAULT_MASK = "***REDACTED***"

# Точные имена (case-insensitive)
SENSITIVE_KEYS = {
    'password', 'passwd', 'pwd',
    'token', 'access_token', 'refresh_token', 'id_token',
    'secret', 'client_secret', 'api_secret',
    'api_key', 'apikey', 'api-key', 'x-api-key', 'private_key',
    'authorization', 'proxy-authorization', 'auth',
    'cookie', 'set-cookie', 'session', 'session_id', 'sessionid',
    'x-auth-token', 'x-csrf-token', 'credentials',
}

# Подстроки, которые делают ключ чувствительным (например, db_password)
SENSITIVE_FRAGMENTS = ('password', 'secret', 'token')

SENSITIVE_PATTERNS = [
    (re.compile(r'(Bearer\s+)([A-Za-z0-9\-._~+/]+=*)', re.IGNORECASE), r'\1' + DEFAULT_MASK),
    (re.compile(r'(Basic\s+)([A-Za-z0-9+/]+=*)', re.IGNORECASE), r'\1' + DEFAULT_MASK),
    (re.compile(r'([?&](?:api[_-]?key|token|access_token|password)=)([^&\s#]+)', re.IGNORECASE), r'\1' + DEFAULT_MASK),
    (re.compile(r'://([^:/@\s]+):([^@/\s]+)@'), r'://\1:' + DEFAULT_MASK + '@'),
]


def is_sensitive_key(key: str) -> bool:
    key = key.lower()
    return key in SENSITIVE_KEYS or any(fragment in key for fragment in SENSITIVE_FRAGMENTS)


def mask_sensitive_data(data: Any, mask: str = DEFAULT_MASK) -> Any:
    """
    Рекурсивно маскирует чувствительные данные в словарях, списках, строках.

    Examples:
        >>> mask_sensitive_data({"Authorization": "Bearer abc", "page": 1})
        {'Authorization': '***REDACTED***', 'page': 1}

        >>> mask_sensitive_data("https://api.test/x?api_key=abc&page=1")
        'https://api.test/x?api_key=***REDACTED***&page=1'
    """
    if data is None or isinstance(data, (bool, int, float)):
        return data

    if isinstance(data, str):
        result = data
        for pattern, replacement in SENSITIVE_PATTERNS:
            result = pattern.sub(replacement.replace(DEFAULT_MASK, mask), result)
        return result

    if isinstance(data, Mapping):
        return {
            key: mask if is_sensitive_key(str(key)) else mask_sensitive_data(value, mask)
            for key, value in data.items()
        }

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask) for item in data)

    return data


def mask_headers(headers: Mapping[str, Any], mask: str = DEFAULT_MASK) -> Dict[str, Any]:
    """
    Маскирует чувствительные заголовки (работает и с Headers).

    Example:
        >>> mask_headers({"Authorization": "Bearer t", "Accept": "application/json"})
        {'Authorization': '***REDACTED***', 'Accept': 'application/json'}
    """
    return {name: mask if is_sensitive_key(name) else value for name, value in headers.items()}
