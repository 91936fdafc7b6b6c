# src/api_client/core/builder.py
"""
Request builder: template request + per-call options -> Request.

No network I/O happens here. The only side-effecting input is the
request-id generator, which is injectable.
"""

import uuid
from typing import Any, Callable, Mapping, Optional, Tuple

from .message import Request
from .transforms import apply_body, apply_headers, apply_query, resolve_uri

REQUEST_ID_HEADER = "X-Request-Id"
REQUEST_DEPTH_HEADER = "X-Request-Depth"
REQUEST_NAME_HEADER = "X-Request-Name"


def default_id_generator() -> str:
    return str(uuid.uuid4())


class RequestBuilder:
    """
    Строит Request из шаблона клиента и options вызова.

    Args:
        template: Шаблонный запрос (URI = root url, заголовки по умолчанию)
        request_id: Фиксированный correlation id процесса (имеет приоритет
                    над сгенерированным)
        id_generator: Генератор уникальных id (uuid4 по умолчанию)

    Example:
        >>> builder = RequestBuilder(Request("GET", "https://api.test/"))
        >>> request, http_errors = builder.create_request("GET", "/items/1")
        >>> request.uri
        'https://api.test/items/1'
    """

    def __init__(
        self,
        template: Request,
        request_id: Optional[str] = None,
        id_generator: Optional[Callable[[], str]] = None,
    ):
        self.template = template
        self.request_id = request_id
        self.id_generator = id_generator or default_id_generator

    def create_request(
        self,
        method: str,
        target: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[Request, bool]:
        """
        Построить запрос.

        Args:
            method: HTTP метод
            target: Относительный или абсолютный URI
            options: query, headers, body, request_name, add_request_id,
                     add_request_depth, http_errors

        Returns:
            (request, http_errors) - готовый запрос и действующая политика
            http_errors для этого вызова
        """
        options = options or {}

        request = self.template.with_method(method)
        request = request.with_uri(resolve_uri(request.uri, target))
        return self.apply_options(request, options)

    def apply_options(self, request: Request, options: Mapping[str, Any]) -> Tuple[Request, bool]:
        if options.get("query") is not None:
            request = apply_query(request, options["query"])

        if options.get("headers"):
            request = apply_headers(request, options["headers"])

        if options.get("body") is not None:
            request = apply_body(request, options["body"])

        if options.get("request_name"):
            request = self.add_request_name(request, options["request_name"])

        if options.get("add_request_id") is True:
            request = self.add_request_id(request)

        if options.get("add_request_depth") is True:
            request = self.increment_request_depth(request)

        http_errors = bool(options.get("http_errors", True))

        return request, http_errors

    # ==================== Служебные заголовки ====================

    def add_request_id(self, request: Request, request_id: Optional[str] = None) -> Request:
        """
        Добавить X-Request-Id, если его еще нет.

        Уже присутствующий id не перезаписывается, чтобы correlation id
        сохранялся по всей цепочке вызовов. Явно переданный request_id
        заменяет существующий.

        Приоритет: request_id аргумент > фиксированный id процесса > генератор.
        """
        if request_id is None:
            if request.has_header(REQUEST_ID_HEADER):
                return request
            request_id = self.request_id or self.id_generator()

        return request.with_header(REQUEST_ID_HEADER, request_id)

    @staticmethod
    def add_request_name(request: Request, name: Optional[str] = None) -> Request:
        """Выставить X-Request-Name (пустое имя - без изменений)."""
        if not name:
            return request
        return request.with_header(REQUEST_NAME_HEADER, name)

    @staticmethod
    def add_request_depth(request: Request, depth: int = 0) -> Request:
        """Выставить глубину, если заголовка нет; иначе увеличить на 1."""
        if request.has_header(REQUEST_DEPTH_HEADER):
            return RequestBuilder.increment_request_depth(request)
        return request.with_header(REQUEST_DEPTH_HEADER, depth)

    @staticmethod
    def increment_request_depth(request: Request) -> Request:
        """
        Увеличить X-Request-Depth на 1 (или выставить 1, если заголовка нет).

        Нечисловое значение считается нулем.
        """
        depth = 0
        values = request.get_header(REQUEST_DEPTH_HEADER)
        if values:
            try:
                depth = int(values[0])
            except ValueError:
                depth = 0

        return request.with_header(REQUEST_DEPTH_HEADER, depth + 1)
