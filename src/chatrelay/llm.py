"""Concrete implementations for completion gateways."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from .errors import MalformedResponseError, TransportError, UpstreamProtocolError
from .models import ASSISTANT_ROLE, USER_ROLE, ChatMessage, CompletionRequest

logger = logging.getLogger(__name__)

COMPLETIONS_PATH = "/chat/completions"


class LLM(ABC):
    """Abstract Base Class for all completion gateways."""

    model: str

    @abstractmethod
    def generate_response(self, request: CompletionRequest) -> Dict[str, Any]:
        """Sends a single completion request upstream.

        Exactly one attempt is made; nothing is retried.

        Parameters
        ----------
        request : CompletionRequest
            The fully assembled request for this turn.

        Returns
        -------
        Dict[str, Any]
            The decoded JSON body of a successful response.

        Raises
        ------
        TransportError
            If no response was received at all.
        UpstreamProtocolError
            If the response status indicates an error.
        MalformedResponseError
            If a successful response could not be decoded.
        """
        pass

    def extract_message(self, response: Dict[str, Any]) -> ChatMessage:
        """Extracts the assistant message from the first choice of a response.

        Raises
        ------
        MalformedResponseError
            If the response lacks ``choices[0].message`` with text content.
        """
        try:
            message = response["choices"][0]["message"]
        except (KeyError, IndexError, TypeError):
            raise MalformedResponseError(
                "Invalid response format from chat API",
                details={"reason": "missing choices[0].message"},
            ) from None

        if not isinstance(message, dict) or not isinstance(
            message.get("content"), str
        ):
            raise MalformedResponseError(
                "Invalid response format from chat API",
                details={"reason": "assistant message has no text content"},
            )
        if message.get("role", ASSISTANT_ROLE) != ASSISTANT_ROLE:
            raise MalformedResponseError(
                "Invalid response format from chat API",
                details={"reason": f"unexpected role {message.get('role')!r}"},
            )
        return ChatMessage(role=ASSISTANT_ROLE, content=message["content"])


def split_endpoint(endpoint: str) -> Tuple[str, Optional[Dict[str, str]]]:
    """Splits a full completions URL into an SDK base URL and query params.

    ``https://host/v1/chat/completions?api-version=x`` becomes
    ``("https://host/v1", {"api-version": "x"})``. URLs without the
    completions suffix are used as the base URL unchanged.
    """
    parts = urlsplit(endpoint)
    path = parts.path.rstrip("/")
    if path.endswith(COMPLETIONS_PATH):
        path = path[: -len(COMPLETIONS_PATH)]
    base_url = urlunsplit((parts.scheme, parts.netloc, path, "", ""))
    query = dict(parse_qsl(parts.query)) or None
    return base_url, query


class OpenAI(LLM):
    """Gateway to any OpenAI-compatible chat-completions endpoint."""

    def __init__(
        self,
        endpoint: str = "https://api.openai.com/v1/chat/completions",
        api_key: Optional[str] = None,
        default_model: str = "gpt-3.5-turbo",
        timeout: float = 30.0,
        http_client=None,
    ):
        from openai import OpenAI

        base_url, query = split_endpoint(endpoint)
        self.endpoint = endpoint
        self.model = default_model
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            default_query=query,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    def generate_response(self, request: CompletionRequest) -> Dict[str, Any]:
        import openai

        try:
            raw = self.client.chat.completions.with_raw_response.create(
                **request.to_payload()
            )
        except openai.APIStatusError as e:
            logger.error("Chat API Error: %s - %s", e.status_code, e.message)
            raise UpstreamProtocolError(status=e.status_code, body=e.body) from e
        except openai.APIConnectionError as e:
            logger.error("Chat API unreachable: %s", e)
            raise TransportError(details={"reason": str(e)}) from e

        try:
            return raw.http_response.json()
        except ValueError as e:
            logger.warning("Chat API returned a non-JSON body")
            raise MalformedResponseError(details={"reason": str(e)}) from e


class Echo(LLM):
    """Offline gateway that answers with the last user message."""

    def __init__(self, default_model: str = "echo-v1"):
        self.model = default_model

    def generate_response(self, request: CompletionRequest) -> Dict[str, Any]:
        user_prompt = next(
            (
                msg.content
                for msg in reversed(request.messages)
                if msg.role == USER_ROLE
            ),
            "No message provided",
        )
        content = f"**Echo LLM - static response for testing**\n\n_Your prompt:_\n\n{user_prompt}"
        prompt_tokens = sum(len(msg.content.split()) for msg in request.messages)
        completion_tokens = len(content.split())

        return {
            "id": "echo-completion",
            "object": "chat.completion",
            "model": request.model or self.model,
            "choices": [
                {
                    "index": 0,
                    "message": {"role": ASSISTANT_ROLE, "content": content},
                    "finish_reason": "stop",
                }
            ],
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
        }
