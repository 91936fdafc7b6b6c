"""
Иерархия исключений API Client.

Классификация:
- RequestFailure - ошибки отправки запроса (connection, 4xx, 5xx, bad response, runtime)
- ConfigurationError / InvalidCacheKeyError - ошибки конфигурации и кэша
"""

from typing import TYPE_CHECKING, Optional

import requests

if TYPE_CHECKING:
    from .message import Request, Response

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ApiClientException(Exception):
    """Базовое исключение API Client."""

    def __init__(self, message: str, **kwargs):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ОШИБКИ ЗАПРОСА
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RequestFailure(ApiClientException):
    """
    Базовая ошибка выполнения запроса.

    Args:
        message: Сообщение об ошибке
        request: Отправленный запрос (если известен)
        response: Полученный ответ (если был)
        status_code: HTTP статус (по умолчанию берется из response)
    """

    default_status_code: int = 0

    def __init__(
        self,
        message: str,
        request: Optional["Request"] = None,
        response: Optional["Response"] = None,
        status_code: Optional[int] = None,
    ):
        self.request = request
        self.response = response

        if status_code is None:
            status_code = response.status_code if response is not None else self.default_status_code
        self.status_code = status_code

        msg = message
        if request is not None:
            msg += f" ({request.method} {request.uri})"

        super().__init__(msg)

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        request: Optional["Request"] = None,
        response: Optional["Response"] = None,
    ) -> "RequestFailure":
        """
        Обернуть исключение транспорта в ошибку этого типа.

        Исходное исключение сохраняется в __cause__.
        """
        error = cls(str(exc) or type(exc).__name__, request=request, response=response)
        error.__cause__ = exc
        return error


class ConnectionError(RequestFailure):
    """
    Цель недоступна.

    Примеры:
    - DNS resolution failed
    - Connection refused
    - TLS handshake failed
    - Timeout
    """
    pass


class ClientError(RequestFailure):
    """4xx ошибка, о которой сообщил сам транспорт."""

    default_status_code = 400


class ServerError(RequestFailure):
    """5xx ошибка, о которой сообщил сам транспорт."""

    default_status_code = 500


class BadResponseError(RequestFailure):
    """
    Ответ получен, но его статус вне [200, 400) при включенном http_errors.

    Полный ответ доступен через атрибут response.
    """

    @classmethod
    def create(cls, response: "Response", request: Optional["Request"] = None) -> "BadResponseError":
        """Создать ошибку из полученного ответа."""
        message = f"Unsuccessful response: HTTP {response.status_code}"
        if response.reason:
            message += f" {response.reason}"
        return cls(message, request=request, response=response)


class RuntimeError(RequestFailure):
    """Любая другая ошибка во время отправки. Статус по умолчанию 500."""

    default_status_code = 500

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# КОНФИГУРАЦИЯ И КЭШ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ConfigurationError(ApiClientException):
    """Ошибка конфигурации (например, кэш не задан)."""
    pass


class InvalidCacheKeyError(ApiClientException, ValueError):
    """
    Невалидный ключ кэша.

    Args:
        key: Переданный ключ
        message: Дополнительное сообщение
    """

    def __init__(self, key: object, message: str = ""):
        self.key = key

        msg = f"Invalid cache key: {key!r}"
        if message:
            msg += f": {message}"

        super().__init__(msg)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def classify_transport_exception(
    exc: BaseException,
    request: Optional["Request"] = None,
) -> RequestFailure:
    """
    Конвертировать исключение транспорта в нашу таксономию.

    Args:
        exc: Исключение, выброшенное транспортом
        request: Отправляемый запрос

    Returns:
        RequestFailure подходящего типа

    Examples:
        >>> exc = requests.exceptions.ConnectTimeout()
        >>> our_exc = classify_transport_exception(exc)
        >>> assert isinstance(our_exc, ConnectionError)
    """
    # Транспорт уже классифицировал ошибку сам
    if isinstance(exc, RequestFailure):
        if exc.request is None:
            exc.request = request
        return exc

    if isinstance(exc, (requests.exceptions.Timeout, requests.exceptions.ConnectionError)):
        return ConnectionError.from_exception(exc, request)

    if isinstance(exc, requests.exceptions.HTTPError):
        raw = exc.response
        status_code = raw.status_code if raw is not None else 0

        response = None
        if raw is not None:
            from .message import Response
            response = Response.from_requests(raw)

        if 400 <= status_code < 500:
            return ClientError.from_exception(exc, request, response)
        if 500 <= status_code < 600:
            return ServerError.from_exception(exc, request, response)

    # Неизвестная ошибка - оборачиваем
    return RuntimeError.from_exception(exc, request)
