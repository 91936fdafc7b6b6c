# src/api_client/core/transport.py
"""
Transport capability: sends a Request and returns a Response.

Transports may raise their own exceptions (requests.exceptions.*) or an
already-classified RequestFailure; ApiClient maps everything else into
the error taxonomy.
"""

import copy
from abc import ABC, abstractmethod
from typing import Callable, Optional

import requests
from requests.adapters import HTTPAdapter

from .config import TimeoutConfig
from .message import Request, Response
from .session_manager import ThreadSafeSessionManager


class Transport(ABC):
    """Базовый класс для транспортов."""

    @abstractmethod
    def send(self, request: Request) -> Response:
        """Отправить запрос и вернуть ответ."""
        pass

    def clone(self) -> "Transport":
        """Копия для copy-on-write клиента."""
        return copy.copy(self)

    def close(self) -> None:
        """Освободить ресурсы (по умолчанию ничего)."""
        pass


class RequestsTransport(Transport):
    """
    Транспорт на основе requests.

    Каждый поток использует собственную сессию (ThreadSafeSessionManager).
    Ретраи на уровне адаптера отключены.

    Args:
        timeout: Таймауты (connect, read)
        verify_ssl: Проверять SSL сертификаты
        allow_redirects: Следовать редиректам
        raise_for_status: Выбрасывать requests.HTTPError на 4xx/5xx
                          (тогда ApiClient превратит их в ClientError/ServerError)
        session_factory: Фабрика сессий (по умолчанию requests.Session с HTTPAdapter)

    Example:
        >>> transport = RequestsTransport(timeout=TimeoutConfig(connect=3, read=10))
        >>> client = ApiClient("https://api.test/", transport=transport)
    """

    def __init__(
        self,
        timeout: Optional[TimeoutConfig] = None,
        verify_ssl: bool = True,
        allow_redirects: bool = True,
        raise_for_status: bool = False,
        session_factory: Optional[Callable[[], requests.Session]] = None,
    ):
        self.timeout = timeout or TimeoutConfig()
        self.verify_ssl = verify_ssl
        self.allow_redirects = allow_redirects
        self.raise_for_status = raise_for_status
        self._session_factory = session_factory or self._create_session
        self._session_manager = ThreadSafeSessionManager(self._session_factory)

    @staticmethod
    def _create_session() -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=0)
        session.mount('http://', adapter)
        session.mount('https://', adapter)
        return session

    @property
    def session(self) -> requests.Session:
        """Сессия текущего потока."""
        return self._session_manager.get_session()

    def send(self, request: Request) -> Response:
        raw = self.session.request(
            method=request.method,
            url=request.uri,
            headers=request.headers.to_dict(),
            data=request.body,
            timeout=self.timeout.as_tuple(),
            verify=self.verify_ssl,
            allow_redirects=self.allow_redirects,
        )

        if self.raise_for_status:
            raw.raise_for_status()

        return Response.from_requests(raw)

    def clone(self) -> "RequestsTransport":
        """Та же конфигурация, но собственные сессии."""
        return RequestsTransport(
            timeout=self.timeout,
            verify_ssl=self.verify_ssl,
            allow_redirects=self.allow_redirects,
            raise_for_status=self.raise_for_status,
            session_factory=self._session_factory,
        )

    def close(self) -> None:
        self._session_manager.close_all()
