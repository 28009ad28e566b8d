"""Engines that run a single conversation turn against the app's pillars."""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Iterator, Optional

from .errors import ChatRelayError, ValidationError
from .models import ChatOptions, CompletionResult

if TYPE_CHECKING:
    from . import ChatRelay

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "Message cannot be empty"
MISSING_SESSION = "Session ID is required"
PROCESSING_FAILED = "Failed to process chat message"


class Engine(ABC):
    """Interface for processing one user message into a result.

    The engine may be created before the app and bound later through the
    ``app`` attribute.
    """

    def __init__(self, app: Optional["ChatRelay"] = None):
        self.app = app

    @abstractmethod
    def process_message(
        self,
        user_text: Optional[str],
        session_id: Optional[str],
        options: Optional[ChatOptions] = None,
    ) -> CompletionResult:
        """Runs one turn. Never raises; failures come back as results."""
        pass


class _SessionLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class Synchronous(Engine):
    """Runs turns on the calling thread, one turn per session at a time.

    Turns for the same session are serialized with a per-session lock so
    concurrent requests cannot interleave their history updates. Turns for
    different sessions run in parallel. A session's lock is discarded once no
    turn holds or waits on it.
    """

    def __init__(self, app: Optional["ChatRelay"] = None):
        super().__init__(app)
        self._locks: Dict[str, _SessionLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def session_lock(self, session_id: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.get(session_id)
            if entry is None:
                entry = self._locks[session_id] = _SessionLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if not entry.users:
                    del self._locks[session_id]

    def validate(self, user_text: Optional[str], session_id: Optional[str]) -> None:
        if not user_text or not user_text.strip():
            raise ValidationError(EMPTY_MESSAGE, field="message")
        if not session_id:
            raise ValidationError(MISSING_SESSION, field="sessionId")

    def process_message(
        self,
        user_text: Optional[str],
        session_id: Optional[str],
        options: Optional[ChatOptions] = None,
    ) -> CompletionResult:
        try:
            self.validate(user_text, session_id)
        except ValidationError as e:
            return CompletionResult.fail(e.kind, e.message, e.details)

        with self.session_lock(session_id), self.app.store.holding(session_id):
            try:
                return self._run_turn(user_text, session_id, options)
            except ChatRelayError as e:
                logger.warning("Turn failed for session %s: %s", session_id, e.message)
                return CompletionResult.fail(e.kind, e.message, e.details)
            except Exception:
                logger.exception("Chat processing error for session %s", session_id)
                return CompletionResult.fail(ChatRelayError.kind, PROCESSING_FAILED)

    def _run_turn(
        self, user_text: str, session_id: str, options: Optional[ChatOptions]
    ) -> CompletionResult:
        app = self.app
        request = app.builder.build_request(user_text, session_id, options)
        response = app.llm.generate_response(request)
        assistant_message = app.llm.extract_message(response)
        app.store.append(session_id, assistant_message)

        conversation_length = len(app.store.get_history(session_id))
        usage = response.get("usage")
        logger.info(
            "Session %s answered by %s, %d messages retained",
            session_id,
            response.get("model"),
            conversation_length,
        )
        return CompletionResult.ok(
            message=assistant_message.content,
            usage=usage if isinstance(usage, dict) else None,
            model=response.get("model"),
            conversation_length=conversation_length,
        )
