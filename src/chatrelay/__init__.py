"""
The main entrypoint for the chatrelay package.

This module contains the ChatRelay orchestrator, which wires together the
pluggable pillars (store, prompt composer, request builder, completion gateway
and engine) that mediate between a web front end and a chat-completions API.
"""

from typing import Any, Dict, List, Optional

from . import builder, config, engine, llm, prompts, store
from .models import ChatMessage, ChatOptions, CompletionResult, ConversationStats

__all__ = [
    "ChatRelay",
    "ChatMessage",
    "ChatOptions",
    "CompletionResult",
    "ConversationStats",
]


class ChatRelay:
    """
    The central orchestrator for conversation turns.

    The constructor uses concrete default implementations built from the
    application settings, while every pillar remains injectable.
    """

    def __init__(
        self,
        llm: Optional[llm.LLM] = None,
        store: Optional[store.Store] = None,
        composer: Optional[prompts.Composer] = None,
        engine: Optional[engine.Engine] = None,
        settings: Optional[config.Settings] = None,
    ) -> None:
        """
        Initialize the relay with configurable pillars.

        Parameters
        ----------
        llm : llm.LLM, optional
            Completion gateway. Defaults to llm.OpenAI() pointed at
            ``CHAT_API_ENDPOINT``.
        store : store.Store, optional
            Session store. Defaults to store.InMemory() keeping
            ``CHAT_MAX_HISTORY`` messages per session.
        composer : prompts.Composer, optional
            System prompt composer. Defaults to the built-in templates.
        engine : engine.Engine, optional
            Turn engine. Defaults to engine.Synchronous(). An engine created
            without an app reference is bound to this relay.
        settings : config.Settings, optional
            Settings to build defaults from. Defaults to config.get_settings().

        Examples
        --------
        Basic usage with defaults:

        >>> relay = ChatRelay()

        Offline usage:

        >>> relay = ChatRelay(llm=llm.Echo(), store=store.Bounded(max_history=10))
        """
        llm_module = globals()["llm"]
        store_module = globals()["store"]
        prompts_module = globals()["prompts"]
        engine_module = globals()["engine"]

        self.settings = settings if settings is not None else config.get_settings()

        if llm is not None:
            self.llm = llm
        else:
            self.llm = llm_module.OpenAI(
                endpoint=self.settings.CHAT_API_ENDPOINT,
                api_key=self.settings.CHAT_API_KEY,
                default_model=self.settings.CHAT_MODEL,
                timeout=self.settings.api_timeout_seconds,
            )

        self.store = (
            store
            if store is not None
            else store_module.InMemory(max_history=self.settings.CHAT_MAX_HISTORY)
        )
        self.composer = (
            composer
            if composer is not None
            else prompts_module.Composer(
                default_language=self.settings.CHAT_DEFAULT_LANGUAGE,
                user_context=self.settings.CHAT_USER_CONTEXT_ENABLED,
            )
        )
        self.builder = builder.RequestBuilder(
            store=self.store,
            composer=self.composer,
            model=getattr(self.llm, "model", None) or self.settings.CHAT_MODEL,
            default_context=self.settings.CHAT_DEFAULT_CONTEXT,
            default_temperature=self.settings.CHAT_TEMPERATURE,
            default_max_tokens=self.settings.CHAT_MAX_TOKENS,
            history_enabled=self.settings.CHAT_HISTORY_ENABLED,
        )

        self.engine = engine if engine is not None else engine_module.Synchronous()
        if self.engine.app is None:
            self.engine.app = self

    def process_message(
        self,
        user_text: Optional[str],
        session_id: Optional[str],
        options: Optional[ChatOptions] = None,
    ) -> CompletionResult:
        return self.engine.process_message(user_text, session_id, options)

    def get_history(self, session_id: str) -> List[ChatMessage]:
        return self.store.get_history(session_id)

    def clear_conversation(self, session_id: str) -> None:
        self.store.clear(session_id)

    def stats(self, session_id: str) -> ConversationStats:
        return self.store.stats(session_id)

    def health(self) -> Dict[str, Any]:
        return {
            "endpoint": getattr(self.llm, "endpoint", None),
            "model": self.builder.model,
        }
