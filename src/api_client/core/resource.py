# src/api_client/core/resource.py
"""
Shaping of successful responses into resources.

Understands HAL+JSON (``_links`` / ``_embedded``) and vnd.error+json
bodies; any other JSON body is exposed as plain data.
"""

import json
from typing import Any, Dict, Optional

from .message import Response

ERROR_CONTENT_TYPE = "application/vnd.error+json"


class ApiResource:
    """
    Ресурс, полученный из ответа API.

    Attributes:
        data: Данные ресурса (без _links и _embedded)
        links: Ссылки HAL (rel -> link или список link)
        embedded: Вложенные ресурсы HAL (rel -> ApiResource или список)
        error: True если ресурс описывает ошибку (vnd.error)

    Example:
        >>> resource = ApiResource.from_response(response)
        >>> resource.get("name")
        'x'
        >>> resource.get_link("self")["href"]
        '/items/1'
    """

    def __init__(
        self,
        data: Optional[Dict[str, Any]] = None,
        links: Optional[Dict[str, Any]] = None,
        embedded: Optional[Dict[str, Any]] = None,
        error: bool = False,
    ):
        self.data = data or {}
        self.links = links or {}
        self.embedded = embedded or {}
        self.error = error

    @classmethod
    def from_response(cls, response: Response) -> "ApiResource":
        """
        Построить ресурс из ответа.

        Пустое или не-JSON тело дает пустой ресурс. Ответ считается
        ошибкой, если Content-Type = application/vnd.error+json.
        """
        content_type = response.get_header_line("Content-Type").lower()
        is_error = ERROR_CONTENT_TYPE in content_type

        body = response.body.strip()
        if not body:
            return cls(error=is_error)

        try:
            payload = json.loads(body)
        except ValueError:
            return cls(error=is_error)

        if not isinstance(payload, dict):
            return cls(data={"items": payload} if payload is not None else {}, error=is_error)

        return cls.from_array(payload, error=is_error)

    @classmethod
    def from_array(cls, payload: Dict[str, Any], error: bool = False) -> "ApiResource":
        data = {k: v for k, v in payload.items() if k not in ("_links", "_embedded")}
        links = payload.get("_links") or {}

        embedded: Dict[str, Any] = {}
        for rel, value in (payload.get("_embedded") or {}).items():
            if isinstance(value, list):
                embedded[rel] = [cls.from_array(item) for item in value if isinstance(item, dict)]
            elif isinstance(value, dict):
                embedded[rel] = cls.from_array(value)

        return cls(data=data, links=links, embedded=embedded, error=error)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __contains__(self, key: object) -> bool:
        return key in self.data

    def get_link(self, rel: str) -> Optional[Any]:
        return self.links.get(rel)

    def get_embedded(self, rel: str) -> Any:
        return self.embedded.get(rel)

    def is_error_resource(self) -> bool:
        return self.error

    def to_array(self) -> Dict[str, Any]:
        """
        Обратно в структуру (для кэширования).

        from_array(to_array()) дает эквивалентный ресурс.
        """
        result = dict(self.data)
        if self.links:
            result["_links"] = self.links
        if self.embedded:
            result["_embedded"] = {
                rel: [item.to_array() for item in value] if isinstance(value, list) else value.to_array()
                for rel, value in self.embedded.items()
            }
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApiResource):
            return NotImplemented
        return self.to_array() == other.to_array() and self.error == other.error

    def __repr__(self) -> str:
        return f"ApiResource(data={self.data!r}, links={list(self.links)}, embedded={list(self.embedded)})"
