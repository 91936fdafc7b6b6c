# src/api_client/core/message.py
"""
Immutable HTTP message value types.

Every ``with_*`` / ``without_*`` call returns a new object; a holder of the
previous value never observes the change.
"""

import io
import json
from dataclasses import dataclass, field, replace
from http import HTTPStatus
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import requests

HeaderValue = Union[str, bytes, int, float, Iterable[Union[str, bytes, int, float]]]
HeadersInput = Union[Mapping[str, HeaderValue], Iterable[Tuple[str, HeaderValue]], "Headers", None]
BodyInput = Union[str, bytes, bytearray, io.IOBase, None]


def normalize_header_values(value: HeaderValue) -> Tuple[str, ...]:
    """Привести значение заголовка к кортежу строк."""
    if isinstance(value, (str, bytes, int, float)):
        value = [value]

    values = []
    for item in value:
        if isinstance(item, bytes):
            item = item.decode("latin-1")
        values.append(str(item).strip())
    return tuple(values)


def _normalize_body(body: BodyInput) -> Optional[bytes]:
    """Привести тело запроса к bytes."""
    if body is None:
        return None
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if hasattr(body, "read"):
        data = body.read()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    raise TypeError(f"Unsupported body type: {type(body).__name__}")


class Headers(Mapping[str, Tuple[str, ...]]):
    """
    Ordered, case-insensitive, multi-valued header collection.

    Lookups ignore case; iteration yields names in insertion order with the
    casing they were last set with. Values for a name keep insertion order.

    Example:
        >>> headers = Headers({"Accept": "application/json"})
        >>> headers = headers.with_added("accept", "text/plain")
        >>> headers["ACCEPT"]
        ('application/json', 'text/plain')
    """

    __slots__ = ("_items",)

    def __init__(self, headers: HeadersInput = None):
        items: Dict[str, Tuple[str, Tuple[str, ...]]] = {}

        if isinstance(headers, Headers):
            items = dict(headers._items)
        elif headers:
            pairs = headers.items() if isinstance(headers, Mapping) else headers
            for name, value in pairs:
                key = name.lower()
                values = normalize_header_values(value)
                if key in items:
                    items[key] = (items[key][0], items[key][1] + values)
                else:
                    items[key] = (name, values)

        self._items = items

    def __getitem__(self, name: str) -> Tuple[str, ...]:
        return self._items[name.lower()][1]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"

    def get_line(self, name: str) -> str:
        """Значения заголовка через запятую (пустая строка если нет)."""
        return ", ".join(self.get(name, ()))

    def with_header(self, name: str, value: HeaderValue) -> "Headers":
        """Заменить все значения заголовка."""
        new = Headers(self)
        new._items[name.lower()] = (name, normalize_header_values(value))
        return new

    def with_added(self, name: str, value: HeaderValue) -> "Headers":
        """Добавить значения к существующим."""
        key = name.lower()
        new = Headers(self)
        if key in new._items:
            original, values = new._items[key]
            new._items[key] = (original, values + normalize_header_values(value))
        else:
            new._items[key] = (name, normalize_header_values(value))
        return new

    def without(self, name: str) -> "Headers":
        """Удалить заголовок (без учета регистра)."""
        new = Headers(self)
        new._items.pop(name.lower(), None)
        return new

    def to_dict(self) -> Dict[str, str]:
        """Плоский словарь для транспорта: значения склеены через ', '."""
        return {name: ", ".join(values) for name, values in self._items.values()}


@dataclass(frozen=True)
class Request:
    """
    Исходящий запрос (immutable).

    Attributes:
        method: HTTP метод
        uri: Абсолютный или относительный URI
        headers: Заголовки
        body: Тело запроса (None если отсутствует)
    """

    method: str = "GET"
    uri: str = ""
    headers: Headers = field(default_factory=Headers)
    body: Optional[bytes] = None

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        if not isinstance(self.headers, Headers):
            object.__setattr__(self, "headers", Headers(self.headers))
        object.__setattr__(self, "body", _normalize_body(self.body))

    @property
    def url(self) -> str:
        return self.uri

    def has_header(self, name: str) -> bool:
        return name in self.headers

    def get_header(self, name: str) -> List[str]:
        return list(self.headers.get(name, ()))

    def get_header_line(self, name: str) -> str:
        return self.headers.get_line(name)

    def body_stream(self) -> io.BytesIO:
        """Тело как поток (пустой поток если тела нет)."""
        return io.BytesIO(self.body or b"")

    def with_method(self, method: str) -> "Request":
        return replace(self, method=method)

    def with_uri(self, uri: str) -> "Request":
        return replace(self, uri=str(uri))

    def with_header(self, name: str, value: HeaderValue) -> "Request":
        return replace(self, headers=self.headers.with_header(name, value))

    def with_added_header(self, name: str, value: HeaderValue) -> "Request":
        return replace(self, headers=self.headers.with_added(name, value))

    def without_header(self, name: str) -> "Request":
        return replace(self, headers=self.headers.without(name))

    def with_body(self, body: BodyInput) -> "Request":
        return replace(self, body=body)


@dataclass(frozen=True)
class Response:
    """
    Ответ транспорта (immutable).

    Attributes:
        status_code: HTTP статус, 100..599
        headers: Заголовки ответа
        body: Тело ответа
        reason: Reason phrase
        url: Итоговый URL (после редиректов)
        raw: Исходный объект транспорта (например, requests.Response)
    """

    status_code: int
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    reason: str = ""
    url: Optional[str] = None
    raw: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not 100 <= self.status_code <= 599:
            raise ValueError(f"status_code must be in [100, 599], got {self.status_code}")
        if not isinstance(self.headers, Headers):
            object.__setattr__(self, "headers", Headers(self.headers))
        object.__setattr__(self, "body", _normalize_body(self.body) or b"")
        if not self.reason:
            try:
                object.__setattr__(self, "reason", HTTPStatus(self.status_code).phrase)
            except ValueError:
                pass

    @classmethod
    def from_requests(cls, response: requests.Response) -> "Response":
        """Создать Response из requests.Response."""
        return cls(
            status_code=response.status_code,
            headers=Headers(response.headers.items()),
            body=response.content or b"",
            reason=response.reason or "",
            url=response.url,
            raw=response,
        )

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body)

    def has_header(self, name: str) -> bool:
        return name in self.headers

    def get_header(self, name: str) -> List[str]:
        return list(self.headers.get(name, ()))

    def get_header_line(self, name: str) -> str:
        return self.headers.get_line(name)

    def body_stream(self) -> io.BytesIO:
        return io.BytesIO(self.body)

    def with_header(self, name: str, value: HeaderValue) -> "Response":
        return replace(self, headers=self.headers.with_header(name, value))

    def with_added_header(self, name: str, value: HeaderValue) -> "Response":
        return replace(self, headers=self.headers.with_added(name, value))

    def without_header(self, name: str) -> "Response":
        return replace(self, headers=self.headers.without(name))
