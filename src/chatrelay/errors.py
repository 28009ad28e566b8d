"""
Error taxonomy for a single conversation turn.

Every failure the engine can report inherits from ChatRelayError, which carries
a stable ``kind``, a human-readable message, optional details and the HTTP
status the transport layer should map it to. None of these are retried.
"""

from typing import Any, Dict, Optional


class ChatRelayError(Exception):
    """Base exception for all chatrelay errors."""

    kind = "internal"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "errorKind": self.kind,
            "error": self.message,
            "details": self.details,
        }


class ValidationError(ChatRelayError):
    """Raised before any state change when the caller's input is unusable.

    Common causes:
        - Empty or whitespace-only message
        - Missing session id
    """

    kind = "validation"

    def __init__(
        self,
        message: str = "Invalid request",
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            details={"field": field, **(details or {})},
            status_code=400,
        )


class TransportError(ChatRelayError):
    """Raised when no response was received from the completions endpoint.

    Common causes:
        - DNS or connection failure
        - Request timeout
    """

    kind = "transport"

    def __init__(
        self,
        message: str = "Network error: Unable to reach chat service",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, status_code=503)


class UpstreamProtocolError(ChatRelayError):
    """Raised when the completions endpoint answered with an error status."""

    kind = "upstream_protocol"

    def __init__(
        self,
        status: int,
        body: Any = None,
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message or f"API Error: {status}",
            details={"status": status, "body": body},
            status_code=502,
        )
        self.status = status
        self.body = body


class MalformedResponseError(ChatRelayError):
    """Raised when a successful response lacks the assistant message shape."""

    kind = "malformed_response"

    def __init__(
        self,
        message: str = "Invalid response from chat service",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, status_code=502)
