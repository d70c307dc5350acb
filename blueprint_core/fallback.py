"""Fallback policy for the blueprint generation cascade.

Decides whether a failure of the primary Claude model justifies trying the
fallback model. Transport, quota and malformed-output failures do; structural
blueprint failures and unknown application errors do not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests

from blueprint_core.errors import PARSE_FAILURE_CODES, BlueprintValidationError
from blueprint_core.llm.claude_client import ClaudeApiError


class FallbackTrigger(str, Enum):
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    INVALID_API_KEY = "invalid_api_key"
    API_ERROR_4XX = "api_error_4xx"
    API_ERROR_5XX = "api_error_5xx"
    NETWORK_ERROR = "network_error"
    JSON_PARSE_ERROR = "json_parse_error"


@dataclass(frozen=True)
class FallbackDecision:
    should_fallback: bool
    original_error: BaseException
    trigger: Optional[FallbackTrigger] = None
    reason: Optional[str] = None


_NETWORK_HINTS = ("network", "fetch", "connection", "econnrefused", "econnreset", "socket")

# Error types reported in API bodies or stream error events.
_ERROR_TYPE_TRIGGERS = {
    "timeout": FallbackTrigger.TIMEOUT,
    "rate_limit_error": FallbackTrigger.RATE_LIMIT,
    "network_error": FallbackTrigger.NETWORK_ERROR,
    "parse_error": FallbackTrigger.JSON_PARSE_ERROR,
    "overloaded_error": FallbackTrigger.API_ERROR_5XX,
    "api_error": FallbackTrigger.API_ERROR_5XX,
}


def _fallback(error: BaseException, trigger: FallbackTrigger, reason: str) -> FallbackDecision:
    return FallbackDecision(should_fallback=True, original_error=error, trigger=trigger, reason=reason)


def _claude_api_decision(error: ClaudeApiError) -> FallbackDecision:
    status = error.status_code

    # Error type wins over status code.
    trigger = _ERROR_TYPE_TRIGGERS.get(error.error_type or "")
    if trigger is not None:
        return _fallback(error, trigger, f"Claude API {trigger.value} ({error.error_type})")

    if status == 408:
        return _fallback(error, FallbackTrigger.TIMEOUT, "Claude API request timeout (408)")
    if status == 429:
        return _fallback(error, FallbackTrigger.RATE_LIMIT, "Claude API rate limit (429)")
    if status in (401, 403):
        return _fallback(error, FallbackTrigger.INVALID_API_KEY, f"Claude API authentication failed ({status})")
    if status is not None and 400 <= status < 500:
        return _fallback(error, FallbackTrigger.API_ERROR_4XX, f"Claude API client error ({status})")
    if status is not None and status >= 500:
        return _fallback(error, FallbackTrigger.API_ERROR_5XX, f"Claude API server error ({status})")

    return FallbackDecision(should_fallback=False, original_error=error)


def should_fallback_to_secondary(error: BaseException) -> FallbackDecision:
    """Classify a primary-model failure."""
    if isinstance(error, ClaudeApiError):
        return _claude_api_decision(error)

    if isinstance(error, BlueprintValidationError):
        if error.code in PARSE_FAILURE_CODES:
            return _fallback(error, FallbackTrigger.JSON_PARSE_ERROR, f"Model output unusable ({error.code.value})")
        return FallbackDecision(should_fallback=False, original_error=error)

    if isinstance(error, (requests.Timeout, TimeoutError)):
        return _fallback(error, FallbackTrigger.TIMEOUT, f"Request timeout: {error}")
    if isinstance(error, (requests.ConnectionError, ConnectionError)):
        return _fallback(error, FallbackTrigger.NETWORK_ERROR, f"Network error: {error}")

    message = str(error).lower()
    if any(hint in message for hint in _NETWORK_HINTS):
        return _fallback(error, FallbackTrigger.NETWORK_ERROR, f"Network error: {error}")

    return FallbackDecision(should_fallback=False, original_error=error)


def should_fallback_to_ollama(primary_error: BaseException, secondary_error: BaseException) -> bool:
    """Both Claude tiers failed; the local model is always worth a try."""
    return True


def log_fallback_decision(decision: FallbackDecision, **context: Any) -> None:
    if decision.should_fallback:
        logging.warning(
            "Fallback decided trigger=%s reason=%s context=%s",
            decision.trigger.value if decision.trigger else None,
            decision.reason,
            context,
        )
    else:
        logging.info(
            "No fallback for error=%s: %s context=%s",
            type(decision.original_error).__name__,
            decision.original_error,
            context,
        )
