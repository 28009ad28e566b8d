"""Concrete implementations for session stores."""

import threading
import time
from abc import ABC, abstractmethod
from collections import Counter, OrderedDict
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from .models import ASSISTANT_ROLE, SYSTEM_ROLE, USER_ROLE, ChatMessage, ConversationStats


class Store(ABC):
    """Interface for keeping per-session message history.

    Implementations own the history sequences exclusively. Every ``append``
    applies a sliding window so a session never holds more than
    ``max_history`` messages, and system messages are never stored.
    """

    def __init__(self, max_history: int = 20):
        if max_history < 1:
            raise ValueError(f"max_history must be positive, got {max_history}")
        self.max_history = max_history

    @abstractmethod
    def get_history(self, session_id: str) -> List[ChatMessage]:
        """Returns the session's messages in order, creating it if absent."""
        pass

    @abstractmethod
    def append(self, session_id: str, message: ChatMessage) -> None:
        """Appends a message and drops the oldest ones beyond ``max_history``."""
        pass

    @abstractmethod
    def clear(self, session_id: str) -> None:
        """Removes all history for a session. Unknown sessions are ignored."""
        pass

    def stats(self, session_id: str) -> ConversationStats:
        history = self.get_history(session_id)
        return ConversationStats(
            session_id=session_id,
            total_messages=len(history),
            user_messages=sum(1 for msg in history if msg.role == USER_ROLE),
            assistant_messages=sum(
                1 for msg in history if msg.role == ASSISTANT_ROLE
            ),
        )

    @contextmanager
    def holding(self, session_id: str) -> Iterator[None]:
        """Keeps a session alive while a turn for it is in flight."""
        yield

    def _trim(self, history: List[ChatMessage]) -> None:
        if len(history) > self.max_history:
            del history[: len(history) - self.max_history]

    @staticmethod
    def _check_role(message: ChatMessage) -> None:
        if message.role == SYSTEM_ROLE:
            raise ValueError("System messages are composed per request, not stored")


class InMemory(Store):
    """Keeps sessions in a process-wide dictionary with no expiry."""

    def __init__(self, max_history: int = 20):
        super().__init__(max_history)
        self._sessions: Dict[str, List[ChatMessage]] = {}
        self._lock = threading.Lock()

    def get_history(self, session_id: str) -> List[ChatMessage]:
        with self._lock:
            return list(self._sessions.setdefault(session_id, []))

    def append(self, session_id: str, message: ChatMessage) -> None:
        self._check_role(message)
        with self._lock:
            history = self._sessions.setdefault(session_id, [])
            history.append(message)
            self._trim(history)

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


class Bounded(Store):
    """Keeps at most ``max_sessions`` sessions, least recently used first out.

    Sessions idle for longer than ``ttl_seconds`` are dropped on the next
    access. A ``ttl_seconds`` of ``None`` disables expiry. Sessions held with
    ``holding`` are neither evicted nor expired until released, so the store
    may briefly exceed ``max_sessions`` while turns are in flight.
    """

    def __init__(
        self,
        max_history: int = 20,
        max_sessions: int = 1000,
        ttl_seconds: Optional[float] = 3600.0,
        clock=time.monotonic,
    ):
        super().__init__(max_history)
        if max_sessions < 1:
            raise ValueError(f"max_sessions must be positive, got {max_sessions}")
        self.max_sessions = max_sessions
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: "OrderedDict[str, List[ChatMessage]]" = OrderedDict()
        self._last_seen: Dict[str, float] = {}
        self._pinned: Counter = Counter()
        self._lock = threading.Lock()

    @contextmanager
    def holding(self, session_id: str) -> Iterator[None]:
        with self._lock:
            self._pinned[session_id] += 1
        try:
            yield
        finally:
            with self._lock:
                self._pinned[session_id] -= 1
                if not self._pinned[session_id]:
                    del self._pinned[session_id]
                if session_id in self._sessions:
                    self._sessions.move_to_end(session_id)
                    self._last_seen[session_id] = self._clock()

    def _expire(self, now: float) -> None:
        if self.ttl_seconds is None:
            return
        # Least recently used sessions sit at the front.
        for session_id in list(self._sessions):
            if now - self._last_seen[session_id] <= self.ttl_seconds:
                break
            if session_id not in self._pinned:
                self._drop(session_id)

    def _evict(self, keep: str) -> None:
        excess = len(self._sessions) - self.max_sessions
        if excess <= 0:
            return
        victims = [
            session_id
            for session_id in self._sessions
            if session_id != keep and session_id not in self._pinned
        ]
        for session_id in victims[:excess]:
            self._drop(session_id)

    def _drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)

    def _touch(self, session_id: str) -> List[ChatMessage]:
        now = self._clock()
        self._expire(now)
        history = self._sessions.get(session_id)
        if history is None:
            history = self._sessions[session_id] = []
        else:
            self._sessions.move_to_end(session_id)
        self._last_seen[session_id] = now
        self._evict(keep=session_id)
        return history

    def get_history(self, session_id: str) -> List[ChatMessage]:
        with self._lock:
            return list(self._touch(session_id))

    def append(self, session_id: str, message: ChatMessage) -> None:
        self._check_role(message)
        with self._lock:
            history = self._touch(session_id)
            history.append(message)
            self._trim(history)

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._drop(session_id)

    def __len__(self) -> int:
        return len(self._sessions)
