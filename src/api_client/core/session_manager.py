# src/api_client/core/session_manager.py
"""
Thread-local requests.Session management for RequestsTransport.

Each thread gets its own Session; all of them are tracked so the
transport can close every session on shutdown.
"""
import threading
import weakref
from typing import Callable, Set

import requests


class ThreadSafeSessionManager:
    """
    Выдает каждому потоку собственный requests.Session.

    Сессии создаются лениво при первом обращении из потока.

    Example:
        >>> manager = ThreadSafeSessionManager(requests.Session)
        >>> session = manager.get_session()
        >>> manager.close_all()
    """

    def __init__(self, session_factory: Callable[[], requests.Session]):
        self._session_factory = session_factory
        self._local = threading.local()
        self._all_sessions: Set[weakref.ref] = set()
        self._sessions_lock = threading.Lock()

    def get_session(self) -> requests.Session:
        """Сессия текущего потока (создается при первом вызове)."""
        session = getattr(self._local, 'session', None)
        if session is None:
            session = self._session_factory()
            self._local.session = session

            with self._sessions_lock:
                self._all_sessions.add(weakref.ref(session, self._discard_ref))

        return session

    def _discard_ref(self, ref: weakref.ref):
        with self._sessions_lock:
            self._all_sessions.discard(ref)

    def close_all(self):
        """
        Закрыть сессии всех потоков.

        Повторный вызов безопасен.
        """
        self._local.session = None

        with self._sessions_lock:
            refs = list(self._all_sessions)
            self._all_sessions.clear()

        for ref in refs:
            session = ref()
            if session is not None:
                session.close()

    def get_active_sessions_count(self) -> int:
        """Количество живых сессий во всех потоках."""
        with self._sessions_lock:
            return sum(1 for ref in self._all_sessions if ref() is not None)
