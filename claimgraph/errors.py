"""Typed errors raised at the I/O boundary (AI service, graph document store).

The engine itself never raises these for missing data; they describe
failures of the collaborators around it and tell callers whether retrying
makes sense.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AIErrorCode(str, Enum):
    NO_API_KEY = "NO_API_KEY"
    NETWORK_OFFLINE = "NETWORK_OFFLINE"
    TIMEOUT = "TIMEOUT"
    RATE_LIMIT = "RATE_LIMIT"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    SAFETY_BLOCKED = "SAFETY_BLOCKED"
    SERVER_ERROR = "SERVER_ERROR"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class _ErrorInfo:
    user_message: str
    internal: str
    retryable: bool


ERROR_INFO: dict[AIErrorCode, _ErrorInfo] = {
    AIErrorCode.NO_API_KEY: _ErrorInfo(
        "The AI assistant is not configured. An API key is required.",
        "AI API key is missing",
        False,
    ),
    AIErrorCode.NETWORK_OFFLINE: _ErrorInfo(
        "No internet connection. Check your connection and try again.",
        "Device is offline",
        True,
    ),
    AIErrorCode.TIMEOUT: _ErrorInfo(
        "The request took too long. Please try again.",
        "Request timed out",
        True,
    ),
    AIErrorCode.RATE_LIMIT: _ErrorInfo(
        "Too many requests. Try again in a few seconds.",
        "Rate limited by AI API",
        True,
    ),
    AIErrorCode.INVALID_RESPONSE: _ErrorInfo(
        "There was a problem reading the answer. We'll try again.",
        "Failed to parse AI response as valid JSON",
        True,
    ),
    AIErrorCode.SAFETY_BLOCKED: _ErrorInfo(
        "The content was blocked by the safety system. Try rephrasing.",
        "Response blocked by safety filters",
        False,
    ),
    AIErrorCode.SERVER_ERROR: _ErrorInfo(
        "Server error. We'll try again in a moment.",
        "AI server error (5xx)",
        True,
    ),
    AIErrorCode.UNKNOWN: _ErrorInfo(
        "Something went wrong. Please try again.",
        "Unknown error",
        True,
    ),
}


class AIError(Exception):
    """Error from the external text-generation / extraction service."""

    def __init__(self, code: AIErrorCode, original: Optional[BaseException | str] = None):
        info = ERROR_INFO[code]
        if isinstance(original, BaseException):
            message = str(original) or info.internal
        else:
            message = original or info.internal
        super().__init__(message)
        self.code = code
        self.user_message = info.user_message
        self.retryable = info.retryable


# Checked in order; first match wins
_CLASSIFIERS: tuple[tuple[AIErrorCode, tuple[str, ...]], ...] = (
    (AIErrorCode.NO_API_KEY, ("api key",)),
    (AIErrorCode.NETWORK_OFFLINE, ("network", "fetch failed", "failed to fetch", "connection refused")),
    (AIErrorCode.TIMEOUT, ("abort", "timeout", "timed out")),
    (AIErrorCode.RATE_LIMIT, ("429", "rate limit", "too many requests", "quota")),
    (AIErrorCode.SAFETY_BLOCKED, ("safety", "blocked")),
    (AIErrorCode.SERVER_ERROR, ("500", "502", "503")),
    (AIErrorCode.INVALID_RESPONSE, ("json", "parse", "unexpected token")),
)


def classify_error(err: BaseException | str) -> AIError:
    """Classify a raw error into a typed AIError."""
    if isinstance(err, AIError):
        return err
    if isinstance(err, TimeoutError):
        return AIError(AIErrorCode.TIMEOUT, err)
    if isinstance(err, ConnectionError):
        return AIError(AIErrorCode.NETWORK_OFFLINE, err)

    message = str(err)
    lowered = message.lower()
    for code, needles in _CLASSIFIERS:
        if any(needle in lowered for needle in needles):
            return AIError(code, message)
    return AIError(AIErrorCode.UNKNOWN, message)


class GraphStoreError(Exception):
    """A graph document could not be read or written."""

    retryable = False


class GraphConflictError(GraphStoreError):
    """The stored graph changed since it was loaded (optimistic check failed).

    Reload, re-apply the edit and save again.
    """

    retryable = True

    def __init__(self, claim_id: str, expected_updated_at: int, actual_updated_at: Optional[int]):
        super().__init__(
            f"Graph for claim {claim_id} was modified concurrently "
            f"(expected updatedAt={expected_updated_at}, found {actual_updated_at})"
        )
        self.claim_id = claim_id
        self.expected_updated_at = expected_updated_at
        self.actual_updated_at = actual_updated_at
