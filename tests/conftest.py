"""
Pytest configuration and fixtures for api-client-core tests.
"""

from typing import List, Optional

import pytest
import responses as responses_lib

from src.api_client.core.client import ApiClient
from src.api_client.core.logging.config import LoggingConfig
from src.api_client.core.message import Request, Response
from src.api_client.core.transport import Transport
from src.api_client.cache.memory import MemoryCache


class FakeTransport(Transport):
    """
    Транспорт для тестов: записывает запросы и отдает заготовленные ответы.

    Элемент очереди может быть Response или исключением (будет выброшено).
    Пустая очередь -> 200 с пустым JSON объектом.
    """

    def __init__(self, queue: Optional[list] = None):
        self.queue = list(queue or [])
        self.sent: List[Request] = []
        self.closed = False

    def send(self, request: Request) -> Response:
        self.sent.append(request)
        if not self.queue:
            return Response(200, {"Content-Type": "application/json"}, b"{}")
        item = self.queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


class FakeClock:
    """Управляемые часы для MemoryCache."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def json_response(status: int = 200, body: bytes = b'{"id": 1}', content_type: str = "application/json") -> Response:
    return Response(status, {"Content-Type": content_type}, body)


@pytest.fixture
def root_url():
    """Root URL for testing."""
    return "https://api.test/"


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(root_url, transport):
    """ApiClient with fake transport."""
    client = ApiClient(root_url, transport=transport, id_generator=lambda: "generated-id")
    yield client
    client.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_cache(clock):
    return MemoryCache(max_size=100, clock=clock)


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def logging_config():
    """LoggingConfig for tests that need a client logger."""
    return LoggingConfig.create(
        level="DEBUG",
        enable_console=True,
        enable_file=False
    )


@pytest.fixture
def logging_config_with_file(tmp_path):
    """
    LoggingConfig with file logging enabled.

    Uses temporary directory for log files to avoid cleanup issues.
    """
    log_file = tmp_path / "test.log"
    return LoggingConfig.create(
        level="DEBUG",
        enable_console=False,
        enable_file=True,
        file_path=str(log_file)
    )
