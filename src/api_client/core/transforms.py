# src/api_client/core/transforms.py
"""
Pure transforms over Request values and option mappings.

Includes:
- URI reference resolution
- Query merge (call-supplied keys override base keys)
- Header application (values are added, ``None`` removes)
- Body encoding (structured bodies become JSON)
- Recursive merge of default and per-call options
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from .message import Request, normalize_header_values

QueryInput = Union[str, Mapping[str, Any], None]

JSON_CONTENT_TYPE = "application/json"


def resolve_uri(base: str, target: Optional[str]) -> str:
    """
    Разрешить target относительно base (RFC 3986).

    Абсолютный target полностью заменяет base, относительный
    объединяется с путем base.

    Examples:
        >>> resolve_uri("https://api.test/", "/items/1")
        'https://api.test/items/1'
        >>> resolve_uri("https://api.test/v1/", "items")
        'https://api.test/v1/items'
        >>> resolve_uri("https://api.test/", "https://other.test/x")
        'https://other.test/x'
    """
    if not target:
        return base
    if not base:
        return str(target)
    return urljoin(base, str(target))


def parse_query(query: str) -> Dict[str, Any]:
    """
    Разобрать query string в упорядоченный словарь.

    Повторяющиеся ключи собираются в список значений.
    """
    result: Dict[str, Any] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key in result:
            existing = result[key]
            result[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            result[key] = value
    return result


def _encode_scalar(value: Any) -> Any:
    if isinstance(value, bool):
        return "1" if value else "0"
    return value


def _flatten_query(key: str, value: Any, pairs: List[Tuple[str, Any]]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for sub_key, item in value.items():
            _flatten_query(f"{key}[{sub_key}]", item, pairs)
    elif isinstance(value, (list, tuple)):
        if any(isinstance(item, Mapping) for item in value):
            for index, item in enumerate(value):
                _flatten_query(f"{key}[{index}]", item, pairs)
        else:
            pairs.extend((key, _encode_scalar(item)) for item in value if item is not None)
    else:
        pairs.append((key, _encode_scalar(value)))


def build_query(params: Mapping[str, Any]) -> str:
    """
    Закодировать параметры в query string (form-encoding).

    None пропускается, списки повторяют ключ, вложенные словари
    разворачиваются в ключи со скобками.

    Examples:
        >>> build_query({"page": 2, "tag": ["a", "b"], "debug": True})
        'page=2&tag=a&tag=b&debug=1'
        >>> build_query({"filter": {"status": "open"}})
        'filter%5Bstatus%5D=open'
        >>> build_query({"sort": [{"field": "id"}]})
        'sort%5B0%5D%5Bfield%5D=id'
    """
    pairs: List[Tuple[str, Any]] = []
    for key, value in params.items():
        _flatten_query(str(key), value, pairs)
    return urlencode(pairs)


def merge_query(uri: str, query: QueryInput) -> str:
    """
    Слить query из URI с переданным query.

    Ключи из query переопределяют одноименные ключи URI; остальные
    сохраняют исходные значения и порядок.

    Example:
        >>> merge_query("https://api.test/items?page=1&sort=asc", {"page": 2})
        'https://api.test/items?page=2&sort=asc'
    """
    if query is None:
        return uri

    parts = urlsplit(uri)
    params = parse_query(parts.query)

    if isinstance(query, str):
        overrides = parse_query(query.lstrip("?"))
    else:
        for key, value in query.items():
            if value is None:
                params.pop(key, None)
        overrides = parse_query(build_query(query))

    params.update(overrides)

    return urlunsplit(parts._replace(query=build_query(params)))


def apply_query(request: Request, query: QueryInput) -> Request:
    return request.with_uri(merge_query(request.uri, query))


def apply_headers(request: Request, headers: Mapping[str, Any]) -> Request:
    """
    Применить заголовки из options по одному, в порядке итерации.

    Значения добавляются к уже существующим; значение None
    удаляет заголовок целиком.
    """
    for name, value in headers.items():
        if value is None:
            request = request.without_header(name)
        else:
            request = request.with_added_header(name, value)
    return request


def encode_body(body: Any) -> Tuple[Union[str, bytes], bool]:
    """
    Подготовить тело запроса.

    Returns:
        (тело, is_json) - is_json=True если тело было структурой и
        сериализовано в JSON
    """
    if isinstance(body, (Mapping, list, tuple)):
        return json.dumps(body, separators=(",", ":")), True
    return body, False


def apply_body(request: Request, body: Any) -> Request:
    """
    Прикрепить тело к запросу.

    Структура (dict/list) кодируется в JSON, и если Content-Type
    еще не задан, выставляется application/json. Строки и bytes
    передаются как есть.
    """
    encoded, is_json = encode_body(body)
    if is_json and not request.has_header("Content-Type"):
        request = request.with_header("Content-Type", JSON_CONTENT_TYPE)
    return request.with_body(encoded)


def merge_headers(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Слить два набора заголовков без потери значений.

    Для одного и того же имени (без учета регистра) значения base идут
    первыми, затем значения override. None в override отменяет заголовок.

    Example:
        >>> merge_headers({"Accept": "a"}, {"accept": ["b", "c"]})
        {'Accept': ['a', 'b', 'c']}
    """
    merged: Dict[str, Tuple[str, Optional[List[str]]]] = {}
    for source in (base, override):
        for name, value in source.items():
            key = name.lower()
            if value is None:
                merged[key] = (name, None)
                continue
            values = list(normalize_header_values(value))
            if key in merged and merged[key][1] is not None:
                merged[key] = (merged[key][0], merged[key][1] + values)
            else:
                merged[key] = (name, values)
    return {name: values for name, values in merged.values()}


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Рекурсивное слияние словарей (deep merge).

    Вложенные словари объединяются по ключам, для остальных типов
    значение из override побеждает.
    """
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _parse_string_query(options: Mapping[str, Any]) -> Mapping[str, Any]:
    query = options.get("query")
    if isinstance(query, str):
        return {**options, "query": parse_query(query.lstrip("?"))}
    return options


def merge_options(defaults: Mapping[str, Any], options: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Слить default options клиента с options вызова.

    - скаляры: побеждает значение вызова
    - вложенные словари (например, query): объединяются по ключам
    - query, заданный строкой, сначала разбирается в словарь
    - headers: значения для одного имени складываются (default, затем call)

    Example:
        >>> merge_options(
        ...     {"headers": {"X-A": "1"}, "query": "a=1", "http_errors": True},
        ...     {"headers": {"X-A": "2"}, "query": {"b": 2}, "http_errors": False},
        ... )
        {'headers': {'X-A': ['1', '2']}, 'query': {'a': '1', 'b': 2}, 'http_errors': False}
    """
    defaults = _parse_string_query(defaults)
    options = _parse_string_query(options)
    result = _deep_merge(defaults, options)

    default_headers = defaults.get("headers")
    call_headers = options.get("headers")
    if isinstance(default_headers, Mapping) and isinstance(call_headers, Mapping):
        result["headers"] = merge_headers(default_headers, call_headers)

    return result
