"""Unit tests for request assembly."""

import pytest
from chatrelay.builder import RequestBuilder
from chatrelay.models import (
    ASSISTANT_ROLE,
    SYSTEM_ROLE,
    USER_ROLE,
    ChatMessage,
    ChatOptions,
    UserInfo,
)
from chatrelay.prompts import PROMPT_TEMPLATES, Composer
from chatrelay.store import InMemory


@pytest.fixture
def store():
    return InMemory(max_history=20)


@pytest.fixture
def builder(store):
    return RequestBuilder(store=store, composer=Composer(), model="gpt-test")


class TestBuildRequest:
    def test_first_turn_layout(self, builder):
        request = builder.build_request("  Hello there  ", "s1")

        assert [m.role for m in request.messages] == [SYSTEM_ROLE, USER_ROLE]
        assert request.messages[0].content == PROMPT_TEMPLATES["travel"].content
        assert request.messages[1].content == "Hello there"

    def test_history_sits_between_system_and_new_message(
        self, builder, store, sample_messages
    ):
        for msg in sample_messages:
            store.append("s1", msg)

        request = builder.build_request("Next question", "s1")

        assert request.messages[0].role == SYSTEM_ROLE
        assert request.messages[1:-1] == sample_messages
        assert request.messages[-1] == ChatMessage(role=USER_ROLE, content="Next question")

    def test_user_message_is_recorded_in_store(self, builder, store):
        builder.build_request("  Hi  ", "s1")
        assert store.get_history("s1") == [ChatMessage(role=USER_ROLE, content="Hi")]

    def test_request_uses_history_before_eviction(self):
        store = InMemory(max_history=2)
        builder = RequestBuilder(store=store, composer=Composer(), model="m")
        store.append("s1", ChatMessage(role=USER_ROLE, content="hi"))
        store.append("s1", ChatMessage(role=ASSISTANT_ROLE, content="hello"))

        request = builder.build_request("bye", "s1")

        assert [m.content for m in request.messages[1:]] == ["hi", "hello", "bye"]
        assert [m.content for m in store.get_history("s1")] == ["hello", "bye"]

    def test_include_history_false(self, builder, store, sample_messages):
        for msg in sample_messages:
            store.append("s1", msg)

        request = builder.build_request(
            "Fresh start", "s1", ChatOptions(include_history=False)
        )

        assert [m.role for m in request.messages] == [SYSTEM_ROLE, USER_ROLE]
        # the turn is still recorded
        assert store.get_history("s1")[-1].content == "Fresh start"

    def test_history_disabled_globally(self, store, sample_messages):
        builder = RequestBuilder(
            store=store, composer=Composer(), model="m", history_enabled=False
        )
        for msg in sample_messages:
            store.append("s1", msg)

        request = builder.build_request("Hi", "s1")

        assert len(request.messages) == 2

    def test_system_message_never_stored(self, builder, store):
        for text in ("one", "two", "three"):
            builder.build_request(text, "s1")

        assert all(m.role != SYSTEM_ROLE for m in store.get_history("s1"))


class TestRequestParameters:
    def test_defaults(self, builder):
        request = builder.build_request("Hi", "s1")

        assert request.model == "gpt-test"
        assert request.temperature == 0.7
        assert request.max_tokens == 500
        assert (request.top_p, request.frequency_penalty, request.presence_penalty) == (
            1,
            0,
            0,
        )

    def test_caller_overrides_take_precedence(self, builder):
        request = builder.build_request(
            "Hi", "s1", ChatOptions(temperature=0.0, max_tokens=42)
        )

        assert request.temperature == 0.0
        assert request.max_tokens == 42

    def test_configured_defaults(self, store):
        builder = RequestBuilder(
            store=store,
            composer=Composer(),
            model="m",
            default_context="support",
            default_temperature=0.2,
            default_max_tokens=64,
        )

        request = builder.build_request("Hi", "s1")

        assert request.messages[0].content == PROMPT_TEMPLATES["support"].content
        assert request.temperature == 0.2
        assert request.max_tokens == 64

    def test_context_and_user_info_reach_the_composer(self, builder):
        request = builder.build_request(
            "Hi",
            "s1",
            ChatOptions(context="booking", user_info=UserInfo(name="Ada")),
        )

        system = request.messages[0].content
        assert system.startswith(PROMPT_TEMPLATES["booking"].content)
        assert system.endswith("The customer's name is Ada.")
