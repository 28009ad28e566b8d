"""
Defines the core Pydantic data models for the application.

These models serve as the formal, validated data contract between all other pillars,
aligning with the message shapes of OpenAI-compatible chat-completions APIs.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- Constants ---
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
SYSTEM_ROLE = "system"
Role = Literal[USER_ROLE, ASSISTANT_ROLE, SYSTEM_ROLE]

TOP_P = 1
FREQUENCY_PENALTY = 0
PRESENCE_PENALTY = 0


# --- Models ---
class ChatMessage(BaseModel):
    """Represents a single message within a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class UserInfo(BaseModel):
    """Optional caller attributes used to personalize the system prompt."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    location: Optional[str] = None
    preferred_language: Optional[str] = Field(default=None, alias="preferredLanguage")


class PromptTemplate(BaseModel):
    """A named system prompt with its advisory sampling defaults."""

    model_config = ConfigDict(frozen=True)

    content: str
    temperature: float = Field(ge=0.0, le=1.0)
    max_tokens: int = Field(gt=0)


class ChatOptions(BaseModel):
    """Per-call options for a conversation turn.

    Unset ``context``, ``temperature`` and ``max_tokens`` are resolved against
    the configured defaults by the request builder.
    """

    model_config = ConfigDict(populate_by_name=True)

    context: Optional[str] = None
    user_info: UserInfo = Field(default_factory=UserInfo, alias="userInfo")
    temperature: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    max_tokens: Optional[int] = Field(default=None, gt=0, alias="maxTokens")
    include_history: bool = Field(default=True, alias="includeHistory")


class CompletionRequest(BaseModel):
    """The body sent to the chat-completions endpoint."""

    model: str
    messages: List[ChatMessage]
    temperature: float
    max_tokens: int
    top_p: float = TOP_P
    frequency_penalty: float = FREQUENCY_PENALTY
    presence_penalty: float = PRESENCE_PENALTY

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(exclude={"messages"})
        payload["messages"] = [msg.to_payload() for msg in self.messages]
        return payload


class ConversationStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    total_messages: int = 0
    user_messages: int = 0
    assistant_messages: int = 0


class CompletionResult(BaseModel):
    """Outcome of a single conversation turn, successful or not."""

    success: bool
    message: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None
    model: Optional[str] = None
    conversation_length: Optional[int] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        message: str,
        usage: Optional[Dict[str, Any]],
        model: Optional[str],
        conversation_length: int,
    ) -> "CompletionResult":
        return cls(
            success=True,
            message=message,
            usage=usage,
            model=model,
            conversation_length=conversation_length,
        )

    @classmethod
    def fail(
        cls, error_kind: str, error: str, details: Optional[Dict[str, Any]] = None
    ) -> "CompletionResult":
        return cls(
            success=False, error_kind=error_kind, error=error, details=details or {}
        )
