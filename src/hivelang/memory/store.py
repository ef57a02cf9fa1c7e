"""
In-process shared memory backends for the CLI, dev server and tests.
"""

from __future__ import annotations

import copy
import threading
from collections import OrderedDict
from typing import Any, Dict, List

DEFAULT_MAX_SESSIONS = 256


class InMemorySharedMemory:
    """Dict-backed store; values are copied on the way in and out."""

    def __init__(self, initial: Dict[str, Any] | None = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        with self._lock:
            return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def append(self, key: str, value: Any) -> None:
        with self._lock:
            existing = self._data.get(key)
            if existing is None:
                self._data[key] = [copy.deepcopy(value)]
            elif isinstance(existing, list):
                existing.append(copy.deepcopy(value))
            else:
                self._data[key] = [existing, copy.deepcopy(value)]

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._data)


class SessionMemoryStore:
    """
    One InMemorySharedMemory per session id, capped at `max_sessions`; the
    least recently used session is evicted first.
    """

    def __init__(self, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, InMemorySharedMemory]" = OrderedDict()
        self._lock = threading.Lock()

    def for_session(self, session_id: str) -> InMemorySharedMemory:
        with self._lock:
            store = self._sessions.get(session_id)
            if store is None:
                store = self._sessions[session_id] = InMemorySharedMemory()
                while len(self._sessions) > self.max_sessions:
                    self._sessions.popitem(last=False)
            else:
                self._sessions.move_to_end(session_id)
            return store

    def drop(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)
