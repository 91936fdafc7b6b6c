# src/api_client/core/client.py
import copy
import itertools
import json
import logging
import time
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from .builder import REQUEST_ID_HEADER, RequestBuilder
from .config import ApiClientConfig
from .events import REQUEST_FAIL, REQUEST_POST, REQUEST_PRE, EventManager
from .exceptions import BadResponseError, ConfigurationError, RequestFailure, classify_transport_exception
from .logging.filters import get_correlation_id, set_correlation_id
from .message import Headers, HeaderValue, Request, Response
from .resource import ApiResource
from .transforms import merge_headers, merge_options
from .transport import RequestsTransport, Transport
from ..utils.sanitizer import mask_headers, mask_sensitive_data

if TYPE_CHECKING:
    from ..cache.base import CacheInterface
    from .logging import ApiClientLogger

logger = logging.getLogger(__name__)

RESPONSE_TIME_HEADER = "X-Response-Time"
_logger_ids = itertools.count(1)

ResourceFactory = Callable[[Response], Any]


class ApiClient:
    """
    Клиент HTTP API с immutable конфигурацией.

    Все ``with_*`` методы возвращают новый клиент; исходный не меняется.
    Кэш и EventManager намеренно разделяются между копиями, транспорт
    копируется.

    Features:
        - Слияние default options клиента с options вызова
        - Типизированные ошибки (ConnectionError, ClientError, ServerError,
          BadResponseError, RuntimeError)
        - События request.pre / request.post / request.fail
        - Кэширование GET ответов по ключу (get_cached)

    Example:
        >>> client = ApiClient("https://api.test/", {"headers": {"X-Api-Key": "k"}})
        >>> item = client.get("/items/1")
        >>> created = client.post("/items", {"body": {"name": "x"}})
        >>> items = client.with_cache(MemoryCache()).get_cached("/items", "items", ttl=60)
    """

    # Поля, которые можно менять после __init__
    _MUTABLE_FIELDS = frozenset({'_response', '_extra'})

    def __init__(
        self,
        root_url: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
        cache: Optional['CacheInterface'] = None,
        *,
        config: Optional[ApiClientConfig] = None,
        transport: Optional[Transport] = None,
        events: Optional[EventManager] = None,
        resource_factory: Optional[ResourceFactory] = None,
        id_generator: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize API client.

        Args:
            root_url: Корневой URL API
            options: Options конструктора: default_ttl, headers, request_id;
                     остальные ключи - default options всех вызовов
            cache: Хранилище для get_cached()
            config: Готовый ApiClientConfig (вместо root_url/options)
            transport: Транспорт (по умолчанию RequestsTransport)
            events: EventManager для событий жизненного цикла
            resource_factory: Функция Response -> ресурс (по умолчанию ApiResource.from_response)
            id_generator: Генератор X-Request-Id (по умолчанию uuid4)
        """
        if config is None:
            config = ApiClientConfig.from_options(root_url or "", options)
        else:
            if root_url is not None:
                config = config.with_root_url(root_url)
            if options:
                extra = ApiClientConfig.from_options(config.root_url, options)
                config = replace(
                    config.with_headers(extra.headers),
                    default_options={**config.default_options, **extra.default_options},
                    default_ttl=extra.default_ttl if "default_ttl" in options else config.default_ttl,
                    request_id=extra.request_id if "request_id" in options else config.request_id,
                )

        if transport is None:
            transport = RequestsTransport(
                timeout=config.timeout,
                verify_ssl=config.verify_ssl,
                allow_redirects=config.allow_redirects,
            )

        default_headers = merge_headers(
            {
                "User-Agent": config.user_agent,
                "Accept": ", ".join(config.accept),
            },
            config.headers,
        )
        default_headers = {name: value for name, value in default_headers.items() if value is not None}

        object.__setattr__(self, '_config', config)
        object.__setattr__(self, '_cache', cache)
        object.__setattr__(self, '_transport', transport)
        object.__setattr__(self, '_events', events or EventManager())
        object.__setattr__(self, '_resource_factory', resource_factory or ApiResource.from_response)
        object.__setattr__(self, '_id_generator', id_generator)
        object.__setattr__(self, '_default_request', Request("GET", config.root_url, Headers(default_headers)))
        object.__setattr__(self, '_logger', self._create_logger(config))
        object.__setattr__(self, '_owns_logger', self._logger is not None)
        object.__setattr__(self, '_response', None)
        object.__setattr__(self, '_extra', None)
        object.__setattr__(self, '_initialized', True)

    @staticmethod
    def _create_logger(config: ApiClientConfig) -> Optional['ApiClientLogger']:
        if not config.logging:
            return None

        from .logging import ApiClientLogger

        name = "api_client"
        netloc = urlsplit(config.root_url).netloc
        if netloc:
            name = f"api_client.{netloc}"
        # у каждого клиента свой logging.Logger, иначе handlers перетираются
        return ApiClientLogger(config=config.logging, name=f"{name}.{next(_logger_ids)}")

    def __setattr__(self, name, value):
        """Запретить изменение после init (immutability)."""
        if hasattr(self, '_initialized') and name not in self._MUTABLE_FIELDS:
            raise AttributeError(
                f"Cannot modify '{name}' - ApiClient is immutable. "
                f"Use the with_* methods to derive a new client."
            )
        object.__setattr__(self, name, value)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self):
        """Закрыть транспорт и логгер клиента (логгер закрывает только создавший его клиент)."""
        self._transport.close()
        if self._owns_logger:
            self._logger.close()

    def _clone(self, **overrides: Any) -> 'ApiClient':
        """
        Copy-on-write копия клиента.

        Шаблонный запрос immutable и может разделяться; транспорт
        копируется, если не передан явно.
        """
        instance = copy.copy(self)
        overrides.setdefault('_owns_logger', False)
        if '_transport' not in overrides:
            overrides['_transport'] = self._transport.clone()
        for name, value in overrides.items():
            object.__setattr__(instance, name, value)
        return instance

    # ==================== Конфигурация ====================

    @property
    def config(self) -> ApiClientConfig:
        return self._config

    @property
    def root_url(self) -> str:
        return self._default_request.uri

    def with_root_url(self, root_url: str) -> 'ApiClient':
        """Новый клиент с другим корневым URL."""
        return self._clone(
            _config=self._config.with_root_url(root_url),
            _default_request=self._default_request.with_uri(str(root_url)),
        )

    def get_header(self, name: str) -> List[str]:
        """Значения заголовка по умолчанию (без учета регистра)."""
        return self._default_request.get_header(name)

    def with_header(self, name: str, value: HeaderValue) -> 'ApiClient':
        """Новый клиент, где заголовок по умолчанию заменен на value."""
        return self._clone(_default_request=self._default_request.with_header(name, value))

    @property
    def transport(self) -> Transport:
        return self._transport

    def with_transport(self, transport: Transport) -> 'ApiClient':
        return self._clone(_transport=transport)

    @property
    def cache(self) -> Optional['CacheInterface']:
        return self._cache

    def with_cache(self, cache: Optional['CacheInterface']) -> 'ApiClient':
        return self._clone(_cache=cache)

    @property
    def events(self) -> EventManager:
        return self._events

    @property
    def extra(self) -> Any:
        """Произвольные данные, прикрепленные вызывающим кодом."""
        return self._extra

    def set_extra(self, extra: Any) -> 'ApiClient':
        self._extra = extra
        return self

    @property
    def response(self) -> Optional[Response]:
        """
        Последний полученный ответ.

        Диагностический снимок: перезаписывается каждым вызовом и не
        стабилен при одновременном использовании клиента из разных потоков.
        """
        return self._response

    # ==================== HTTP методы ====================

    def get(self, uri: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Выполняет GET запрос.

        Args:
            uri: Путь относительно root url или абсолютный URL
            options: query, headers, body, add_request_id, add_request_depth,
                     add_request_time, request_name, http_errors, raw_response

        Returns:
            Ресурс (или None при raw_response=True)
        """
        return self.request("GET", uri, options)

    def post(self, uri: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("POST", uri, options)

    def put(self, uri: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("PUT", uri, options)

    def patch(self, uri: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        """Отправляет PUT: patch и put используют один и тот же метод."""
        return self.request("PUT", uri, options)

    def delete(self, uri: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("DELETE", uri, options)

    def get_cached(
        self,
        uri: str,
        cache_key: str,
        options: Optional[Mapping[str, Any]] = None,
        ttl: Optional[int] = None,
    ) -> Any:
        """
        GET с кэшированием тела по ключу.

        Попадание в кэш не делает сетевой запрос. Промах делает ровно
        один запрос и не более одной записи в кэш: тело сохраняется,
        только если ресурс не является ошибкой и не пуст.

        Args:
            uri: Путь ресурса
            cache_key: Ключ кэша (не зависит от содержимого запроса)
            options: Options вызова
            ttl: Время жизни записи (по умолчанию default_ttl клиента)

        Raises:
            ConfigurationError: кэш не задан
            InvalidCacheKeyError: невалидный ключ
        """
        if ttl is None:
            ttl = self._config.default_ttl

        if self._cache is None:
            raise ConfigurationError("No cache defined.")

        if self._cache.has(cache_key):
            cached = self._cache.get(cache_key)
            if cached is not None:
                self._log(logging.DEBUG, "Cache hit", cache_key=cache_key)
                return self._resource_factory(Response(200, body=cached))

        self._log(logging.DEBUG, "Cache miss", cache_key=cache_key)

        resource = self.get(uri, {**(options or {}), "raw_response": False})

        data = resource.to_array()
        if not resource.is_error_resource() and data:
            self._cache.set(cache_key, json.dumps(data), ttl)

        return resource

    def request(
        self,
        method: str,
        uri: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Построить, отправить и обработать запрос.

        Built -> Sent -> Succeeded | BadResponse | TransportFailed.
        Ретраев нет.

        Raises:
            ConnectionError: цель недоступна
            ClientError: транспорт сообщил о 4xx
            ServerError: транспорт сообщил о 5xx
            BadResponseError: статус вне [200, 400) при http_errors=True
            RuntimeError: любая другая ошибка отправки
        """
        options = merge_options(self._config.default_options, options or {})
        request, http_errors = self._build(method, uri, options)

        previous_correlation_id = get_correlation_id()
        set_correlation_id(request.get_header_line(REQUEST_ID_HEADER) or None)
        try:
            return self._dispatch(request, http_errors, options)
        finally:
            set_correlation_id(previous_correlation_id)

    def create_request(
        self,
        method: str,
        uri: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Request:
        """
        Построить запрос, который отправил бы request() (без отправки).

        Default options клиента сливаются с options.
        """
        options = merge_options(self._config.default_options, options or {})
        request, _ = self._build(method, uri, options)
        return request

    # ==================== Внутренние методы ====================

    def _builder(self) -> RequestBuilder:
        return RequestBuilder(
            self._default_request,
            request_id=self._config.request_id,
            id_generator=self._id_generator,
        )

    def _build(self, method: str, uri: str, options: Mapping[str, Any]) -> Tuple[Request, bool]:
        return self._builder().create_request(method, uri, options)

    def _log(self, level: int, message: str, **fields: Any) -> None:
        if self._logger is not None:
            self._logger.log(level, message, **fields)
        elif logger.isEnabledFor(level):
            logger.log(level, message, extra=mask_sensitive_data(fields))

    def _dispatch(self, request: Request, http_errors: bool, options: Mapping[str, Any]) -> Any:
        self._events.trigger(REQUEST_PRE, self, request=request)
        self._log(
            logging.DEBUG,
            "Request started",
            method=request.method,
            url=request.uri,
            headers=mask_headers(request.headers.to_dict()),
        )

        start_time = time.perf_counter()

        try:
            response = self._transport.send(request)
        except Exception as exc:
            error = classify_transport_exception(exc, request)
            self._fail(request, error, start_time)
            if error is exc:
                raise
            raise error from exc

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        if options.get("add_request_time") is True:
            response = self.add_response_time(response, duration_ms)

        self._response = response
        self._events.trigger(REQUEST_POST, self, request=request, response=response)
        self._log(
            logging.INFO,
            "Request completed",
            method=request.method,
            url=request.uri,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        return self._handle_response(request, response, http_errors, bool(options.get("raw_response", False)), start_time)

    def _handle_response(
        self,
        request: Request,
        response: Response,
        http_errors: bool,
        raw_response: bool,
        start_time: float,
    ) -> Any:
        status_code = response.status_code

        if http_errors and (status_code < 200 or status_code >= 400):
            error = BadResponseError.create(response, request)
            self._fail(request, error, start_time)
            raise error

        if raw_response:
            return None

        return self._resource_factory(response)

    def _fail(self, request: Request, error: RequestFailure, start_time: float) -> None:
        self._events.trigger(REQUEST_FAIL, self, request=request, response=error.response, error=error)
        self._log(
            logging.ERROR,
            "Request failed",
            method=request.method,
            url=request.uri,
            error=str(error),
            error_type=type(error).__name__,
            status_code=error.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

    # ==================== Служебные заголовки ====================

    def add_request_id(self, request: Request, request_id: Optional[str] = None) -> Request:
        return self._builder().add_request_id(request, request_id)

    @staticmethod
    def add_request_name(request: Request, name: Optional[str] = None) -> Request:
        return RequestBuilder.add_request_name(request, name)

    @staticmethod
    def add_request_depth(request: Request, depth: int = 0) -> Request:
        return RequestBuilder.add_request_depth(request, depth)

    @staticmethod
    def increment_request_depth(request: Request) -> Request:
        return RequestBuilder.increment_request_depth(request)

    @staticmethod
    def add_response_time(response: Response, time_ms: float) -> Response:
        """Выставить X-Response-Time (например, '12.34ms'), заменив прежнее значение."""
        return response.with_header(RESPONSE_TIME_HEADER, f"{time_ms:.2f}ms")

    def __repr__(self) -> str:
        return f"ApiClient(root_url={self.root_url!r})"
