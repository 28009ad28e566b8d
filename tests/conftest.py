"""
Core pytest configuration and fixtures for chatrelay testing.

This module provides shared test fixtures, configuration, and utilities
that support the pillar-based testing architecture.
"""

from typing import Any, Dict, List, Optional

import pytest
from chatrelay.config import Settings
from chatrelay.llm import LLM
from chatrelay.models import ASSISTANT_ROLE, USER_ROLE, ChatMessage, CompletionRequest

# ===== TEST DATA FIXTURES =====


@pytest.fixture
def sample_messages() -> List[ChatMessage]:
    """Sample chat messages for testing."""
    return [
        ChatMessage(role=USER_ROLE, content="Hello, how are you?"),
        ChatMessage(
            role=ASSISTANT_ROLE,
            content="I'm doing well, thank you! How can I help you today?",
        ),
        ChatMessage(role=USER_ROLE, content="Can I change my flight to Lisbon?"),
        ChatMessage(
            role=ASSISTANT_ROLE,
            content="Of course, let me walk you through the options...",
        ),
    ]


def completion_body(content: Any = "Mock LLM response", model: str = "test-model-v1"):
    """An OpenAI-shaped chat completion body."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": ASSISTANT_ROLE, "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
    }


@pytest.fixture
def make_completion():
    """Factory for OpenAI-shaped completion bodies."""
    return completion_body


# ===== GATEWAY DOUBLES =====


class ScriptedLLM(LLM):
    """Gateway that replays queued replies and records every request.

    Queued items are either response bodies or exceptions to raise.
    """

    def __init__(self, replies: Optional[List[Any]] = None, model: str = "test-model-v1"):
        self.model = model
        self.replies = list(replies or [])
        self.requests: List[CompletionRequest] = []

    def generate_response(self, request: CompletionRequest) -> Dict[str, Any]:
        self.requests.append(request)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return completion_body(reply, model=self.model)
        return reply


@pytest.fixture
def scripted_llm():
    """Factory for ScriptedLLM instances."""
    return ScriptedLLM


# ===== SETTINGS FIXTURES =====


@pytest.fixture
def settings(monkeypatch) -> Settings:
    """Settings isolated from the caller's environment and .env file."""
    for name in list(Settings.model_fields):
        monkeypatch.delenv(name, raising=False)
    return Settings(_env_file=None)


# ===== APP FIXTURES =====


@pytest.fixture
def test_relay(settings):
    """
    Provides a ChatRelay with simple, predictable pillars.

    This fixture is ideal for integration tests where we need a working relay
    but want to avoid network access to a real completions API.
    """
    from chatrelay import ChatRelay
    from chatrelay.llm import Echo
    from chatrelay.store import InMemory

    return ChatRelay(llm=Echo(), store=InMemory(max_history=20), settings=settings)


# ===== CONFIGURATION =====


def pytest_configure(config):
    """Pytest configuration."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
