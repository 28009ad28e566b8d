"""Assembles chat-completions requests from session history."""

import logging
from typing import Optional

from .models import USER_ROLE, ChatMessage, ChatOptions, CompletionRequest
from .prompts import Composer
from .store import Store

logger = logging.getLogger(__name__)


class RequestBuilder:
    """Combines system prompt, stored history and the new user turn.

    Building a request records the user's message in the store. This happens
    before the request is sent and is never rolled back.
    """

    def __init__(
        self,
        store: Store,
        composer: Composer,
        model: str,
        default_context: str = "travel",
        default_temperature: float = 0.7,
        default_max_tokens: int = 500,
        history_enabled: bool = True,
    ):
        self.store = store
        self.composer = composer
        self.model = model
        self.default_context = default_context
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.history_enabled = history_enabled

    def build_request(
        self,
        user_text: str,
        session_id: str,
        options: Optional[ChatOptions] = None,
    ) -> CompletionRequest:
        options = options or ChatOptions()

        messages = [
            self.composer.build_system_message(
                options.context or self.default_context, options.user_info
            )
        ]

        if options.include_history and self.history_enabled:
            messages.extend(self.store.get_history(session_id))

        user_message = ChatMessage(role=USER_ROLE, content=user_text.strip())
        messages.append(user_message)
        self.store.append(session_id, user_message)

        logger.debug(
            "Built request for session %s with %d messages", session_id, len(messages)
        )

        return CompletionRequest(
            model=self.model,
            messages=messages,
            temperature=(
                options.temperature
                if options.temperature is not None
                else self.default_temperature
            ),
            max_tokens=options.max_tokens or self.default_max_tokens,
        )
