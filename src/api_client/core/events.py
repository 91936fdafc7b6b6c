# src/api_client/core/events.py
"""Lifecycle notifications for ApiClient (observer pattern)."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

REQUEST_PRE = "request.pre"
REQUEST_POST = "request.post"
REQUEST_FAIL = "request.fail"


class ListenerPriority:
    """
    Константы приоритетов для слушателей.

    Слушатели с меньшим приоритетом вызываются раньше.
    """
    FIRST = 0
    HIGH = 25
    NORMAL = 50
    LOW = 75
    LAST = 100


@dataclass
class Event:
    """
    Событие жизненного цикла запроса.

    Attributes:
        name: Имя события (request.pre, request.post, request.fail)
        target: Источник события (обычно ApiClient)
        params: Данные события (request, response, error)
    """

    name: str
    target: Any = None
    params: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[Event], Any]


class EventManager:
    """
    Простой диспетчер событий.

    Слушатели только наблюдают: возвращаемые значения игнорируются,
    а исключения слушателей логируются и не прерывают запрос.

    Example:
        >>> events = EventManager()
        >>> events.attach(REQUEST_FAIL, lambda e: print(e.params["error"]))
        >>> client = ApiClient("https://api.test/", events=events)
    """

    def __init__(self):
        self._listeners: Dict[str, List[Tuple[int, int, Listener]]] = {}
        self._counter = 0
        self._lock = threading.Lock()

    def attach(self, name: str, listener: Listener, priority: int = ListenerPriority.NORMAL) -> Listener:
        """Подписать слушателя на событие. Возвращает слушателя (для detach)."""
        with self._lock:
            self._counter += 1
            entries = self._listeners.setdefault(name, [])
            entries.append((priority, self._counter, listener))
            entries.sort(key=lambda entry: (entry[0], entry[1]))
        return listener

    def detach(self, listener: Listener, name: Optional[str] = None) -> bool:
        """Отписать слушателя (от одного события или от всех)."""
        removed = False
        with self._lock:
            names = [name] if name is not None else list(self._listeners)
            for event_name in names:
                entries = self._listeners.get(event_name, [])
                kept = [entry for entry in entries if entry[2] is not listener]
                removed = removed or len(kept) != len(entries)
                self._listeners[event_name] = kept
        return removed

    def listeners(self, name: str) -> List[Listener]:
        with self._lock:
            return [entry[2] for entry in self._listeners.get(name, [])]

    def trigger(self, name: str, target: Any = None, **params: Any) -> Event:
        """
        Оповестить слушателей.

        Args:
            name: Имя события
            target: Источник события
            **params: Данные события

        Returns:
            Созданный Event
        """
        event = Event(name=name, target=target, params=params)
        for listener in self.listeners(name):
            try:
                listener(event)
            except Exception as listener_error:
                logger.warning(
                    "Listener %r failed on %s: %s",
                    listener, name, listener_error,
                )
        return event
