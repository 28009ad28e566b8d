"""
Chat Router

HTTP endpoints that expose a ChatRelay to a web front end.

Endpoints:
    POST   /api/chat/message                    - Process a chat message
    GET    /api/chat/conversation/{session_id}  - Get conversation history
    DELETE /api/chat/conversation/{session_id}  - Clear conversation history
    POST   /api/chat/test                       - Run a message on a throwaway session
    GET    /api/chat/health                     - Service health and upstream settings
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import ChatRelay
from .config import Settings
from .errors import (
    ChatRelayError,
    MalformedResponseError,
    TransportError,
    UpstreamProtocolError,
    ValidationError,
)
from .log import setup_logging
from .models import ChatOptions, CompletionResult, UserInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["Chat"])

STATUS_BY_KIND = {
    ValidationError.kind: 400,
    TransportError.kind: 503,
    UpstreamProtocolError.kind: 502,
    MalformedResponseError.kind: 502,
    ChatRelayError.kind: 500,
}

DEFAULT_TEST_MESSAGE = "Hello, I need help with booking a flight"


# =============================================================================
# Pydantic Models
# =============================================================================


class MessageRequest(BaseModel):
    """Request to process a user message."""

    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    context: Optional[str] = None
    user_info: Optional[UserInfo] = Field(default=None, alias="userInfo")


class SelfTestRequest(BaseModel):
    message: Optional[str] = None


# =============================================================================
# Helpers
# =============================================================================


def get_relay(request: Request) -> ChatRelay:
    return request.app.state.relay


def new_session_id(prefix: str = "session") -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def failure_response(result: CompletionResult) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_KIND.get(result.error_kind, 500),
        content={
            "success": False,
            "error": result.error,
            "errorKind": result.error_kind,
            "details": result.details,
        },
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/message")
def post_message(payload: MessageRequest, relay: ChatRelay = Depends(get_relay)):
    """Process a chat message and return the assistant's reply."""
    if not payload.message:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Message is required",
                "errorKind": ValidationError.kind,
            },
        )

    session_id = payload.session_id or new_session_id()
    options = ChatOptions(
        context=payload.context,
        user_info=payload.user_info or UserInfo(),
    )
    result = relay.process_message(payload.message, session_id, options)

    if not result.success:
        return failure_response(result)

    return {
        "success": True,
        "response": result.message,
        "sessionId": session_id,
        "usage": result.usage,
        "model": result.model,
        "conversationStats": relay.stats(session_id).model_dump(by_alias=True),
    }


@router.get("/conversation/{session_id}")
def get_conversation(session_id: str, relay: ChatRelay = Depends(get_relay)):
    """Get conversation history for a session."""
    history = relay.get_history(session_id)
    return {
        "success": True,
        "history": [msg.to_payload() for msg in history],
        "stats": relay.stats(session_id).model_dump(by_alias=True),
    }


@router.delete("/conversation/{session_id}")
def delete_conversation(session_id: str, relay: ChatRelay = Depends(get_relay)):
    """Clear conversation history for a session."""
    relay.clear_conversation(session_id)
    logger.info("Cleared conversation %s", session_id)
    return {"success": True, "message": "Conversation cleared successfully"}


@router.post("/test")
def post_test(
    payload: Optional[SelfTestRequest] = None, relay: ChatRelay = Depends(get_relay)
):
    """Run a message through the relay on a fresh session."""
    test_message = (payload.message if payload else None) or DEFAULT_TEST_MESSAGE
    test_session_id = f"test_{int(time.time() * 1000)}"
    result = relay.process_message(
        test_message, test_session_id, ChatOptions(context="travel")
    )
    return {
        "success": True,
        "testMessage": test_message,
        "testSessionId": test_session_id,
        "response": result.model_dump(),
    }


@router.get("/health")
def health(relay: ChatRelay = Depends(get_relay)) -> Dict[str, Any]:
    """Health check for the chat service."""
    return {
        "success": True,
        "service": "Chat API",
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **relay.health(),
    }


def create_app(
    relay: Optional[ChatRelay] = None, settings: Optional[Settings] = None
) -> FastAPI:
    """Build the FastAPI application around a relay.

    A relay built from ``settings`` (or the environment) is created when none
    is given.
    """
    relay = relay if relay is not None else ChatRelay(settings=settings)
    setup_logging(relay.settings.CHAT_LOG_LEVEL)

    app = FastAPI(title="chatrelay", version="0.1.0")
    app.state.relay = relay
    app.include_router(router)
    logger.info("Chat API ready, model=%s", relay.builder.model)
    return app
