"""
Система конфигурации для API Client.

Все конфиги immutable (frozen dataclasses) для потокобезопасности.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple, Union

from .transforms import merge_headers

if TYPE_CHECKING:
    from .logging import LoggingConfig

DEFAULT_TTL = 600
DEFAULT_USER_AGENT = "ApiClient"

# Media types, которые клиент умеет разбирать (уходят в Accept)
VALID_CONTENT_TYPES: Tuple[str, ...] = (
    "application/hal+json",
    "application/json",
    "application/vnd.error+json",
)

# Ключи options конструктора, которые относятся к клиенту, а не к вызову
CLIENT_OPTION_KEYS = frozenset({"default_ttl", "headers", "request_id"})

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TIMEOUT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TimeoutConfig:
    """
    Конфигурация таймаутов транспорта.

    Args:
        connect: Таймаут подключения (сек)
        read: Таймаут чтения данных (сек)

    Examples:
        >>> TimeoutConfig(connect=5, read=30)
    """
    connect: float = 5
    read: float = 30

    def __post_init__(self):
        """Валидация."""
        if self.connect <= 0:
            raise ValueError("connect timeout must be positive")
        if self.read <= 0:
            raise ValueError("read timeout must be positive")

    def as_tuple(self) -> Tuple[float, float]:
        """Вернуть как (connect, read) для requests."""
        return (self.connect, self.read)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _freeze(d: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if d is None:
        return MappingProxyType({})
    return MappingProxyType(dict(d))


@dataclass(frozen=True)
class ApiClientConfig:
    """
    Главная конфигурация ApiClient.

    Args:
        root_url: Корневой URL API (относительные пути разрешаются от него)
        headers: Дополнительные заголовки по умолчанию
        default_options: Options, которые сливаются с options каждого вызова
        default_ttl: TTL кэша по умолчанию (сек)
        request_id: Фиксированный X-Request-Id процесса (перекрывает генерацию)
        user_agent: Значение User-Agent
        accept: Поддерживаемые media types (заголовок Accept)
        timeout: Таймауты транспорта
        verify_ssl: Проверять SSL сертификаты
        allow_redirects: Следовать редиректам
        logging: Конфигурация логирования (None = без логгера клиента)

    Examples:
        >>> config = ApiClientConfig(root_url="https://api.example.com/")
        >>> config = ApiClientConfig.create("https://api.example.com/", default_ttl=60)
    """
    root_url: str = ""
    headers: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    default_options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    default_ttl: int = DEFAULT_TTL
    request_id: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    accept: Tuple[str, ...] = VALID_CONTENT_TYPES
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    verify_ssl: bool = True
    allow_redirects: bool = True
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Валидация и заморозка словарей."""
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, 'headers', _freeze(self.headers))
        if not isinstance(self.default_options, MappingProxyType):
            object.__setattr__(self, 'default_options', _freeze(self.default_options))
        object.__setattr__(self, 'root_url', str(self.root_url))
        object.__setattr__(self, 'accept', tuple(self.accept))

        if self.default_ttl < 0:
            raise ValueError("default_ttl must be non-negative")

    @classmethod
    def create(
        cls,
        root_url: str = "",
        headers: Optional[Dict[str, Any]] = None,
        default_ttl: int = DEFAULT_TTL,
        request_id: Optional[str] = None,
        timeout: Union[float, Tuple[float, float], TimeoutConfig] = 30,
        verify_ssl: bool = True,
        logging: Optional['LoggingConfig'] = None,
        **default_options: Any
    ) -> 'ApiClientConfig':
        """
        Удобный конструктор конфигурации.

        Неизвестные keyword аргументы становятся default options вызовов
        (например, add_request_id=True).

        Examples:
            >>> config = ApiClientConfig.create("https://api.test/", timeout=(3, 10))
            >>> config = ApiClientConfig.create("https://api.test/", add_request_id=True)
        """
        if isinstance(timeout, TimeoutConfig):
            timeout_cfg = timeout
        elif isinstance(timeout, tuple):
            timeout_cfg = TimeoutConfig(connect=timeout[0], read=timeout[1])
        else:
            timeout_cfg = TimeoutConfig(connect=5, read=timeout)

        return cls(
            root_url=root_url,
            headers=headers or {},
            default_options=default_options,
            default_ttl=default_ttl,
            request_id=request_id,
            timeout=timeout_cfg,
            verify_ssl=verify_ssl,
            logging=logging,
        )

    @classmethod
    def from_options(
        cls,
        root_url: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> 'ApiClientConfig':
        """
        Конфиг из options конструктора клиента.

        Распознаются default_ttl, headers и request_id; все остальные
        ключи становятся default options вызовов.

        Example:
            >>> config = ApiClientConfig.from_options(
            ...     "https://api.test/",
            ...     {"default_ttl": 60, "headers": {"X-Api-Key": "k"}, "http_errors": False},
            ... )
            >>> config.default_options
            mappingproxy({'http_errors': False})
        """
        options = dict(options or {})
        ttl = options.get("default_ttl")

        return cls(
            root_url=root_url,
            headers=options.get("headers") or {},
            default_options={k: v for k, v in options.items() if k not in CLIENT_OPTION_KEYS},
            default_ttl=DEFAULT_TTL if ttl is None else int(ttl),
            request_id=options.get("request_id"),
        )

    def with_root_url(self, root_url: str) -> 'ApiClientConfig':
        return replace(self, root_url=str(root_url))

    def with_headers(self, headers: Dict[str, Any]) -> 'ApiClientConfig':
        """
        Создать новый конфиг с дополнительными заголовками.

        Значения добавляются к уже заданным (см. merge_headers), None
        отменяет заголовок.

        Example:
            >>> new_config = config.with_headers({"X-API-Key": "secret"})
        """
        return replace(self, headers=merge_headers(self.headers, headers))
