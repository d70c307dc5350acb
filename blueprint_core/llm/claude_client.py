"""Claude Messages API client.

Retries transient failures with exponential backoff and grows the output token
budget when a response stops at `max_tokens`, since a truncated blueprint can
never pass the recovery pipeline.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable, Dict, Optional, TypeVar

import requests

from blueprint_core import product_config
from blueprint_core.stream import StreamError, accumulate_claude_stream

T = TypeVar("T")


class ClaudeApiError(Exception):
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
        original_error: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type
        self.original_error = original_error


def _is_retryable(error: Exception) -> bool:
    # Transport failures arrive as ClaudeApiError; anything else is a bug.
    if not isinstance(error, ClaudeApiError):
        return False
    if error.error_type == "max_tokens_exceeded":
        return False
    status = error.status_code
    return status is None or status in (408, 429) or status >= 500


def with_retry(
    fn: Callable[[], T],
    max_retries: int,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call fn, retrying up to max_retries times with base_delay * 2**attempt waits."""
    attempt = 0
    while True:
        try:
            return fn()
        except Exception as e:
            if attempt >= max_retries or not _is_retryable(e):
                raise
            delay = base_delay * (2 ** attempt)
            logging.warning(
                "Claude request failed, retrying attempt=%s max_retries=%s delay=%.1fs error=%s",
                attempt + 1,
                max_retries,
                delay,
                e,
            )
            sleep(delay)
            attempt += 1


class ClaudeClient:
    """Thin client over POST /v1/messages."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        version: Optional[str] = None,
        timeout_sec: Optional[float] = None,
        retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
        stream: Optional[bool] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key if api_key is not None else product_config.ANTHROPIC_API_KEY
        self.base_url = (base_url or product_config.ANTHROPIC_BASE_URL).rstrip("/")
        self.version = version or product_config.ANTHROPIC_VERSION
        self.timeout_sec = timeout_sec if timeout_sec is not None else product_config.CLAUDE_TIMEOUT_SEC
        self.retries = retries if retries is not None else product_config.CLAUDE_RETRIES
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else product_config.CLAUDE_RETRY_BASE_DELAY_SEC
        )
        self.stream = product_config.BLUEPRINT_STREAMING if stream is None else stream
        self.session = session or requests.Session()
        self._sleep = sleep

    def generate(
        self,
        *,
        system: str,
        user_prompt: str,
        model: str,
        max_tokens: int,
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Create a message, growing max_tokens when the output gets truncated.

        Raises:
            ClaudeApiError: transport/API failures, or `max_tokens_exceeded`
                when the budget cannot grow any further.
        """
        started_at = time.time()
        current_max_tokens = int(max_tokens)
        temperature = product_config.BLUEPRINT_TEMPERATURE if temperature is None else temperature
        max_attempts = product_config.CLAUDE_MAX_TRUNCATION_ATTEMPTS

        logging.info(
            "Calling Claude model=%s max_tokens=%s temperature=%s stream=%s",
            model,
            current_max_tokens,
            temperature,
            self.stream,
        )

        for attempt in range(1, max_attempts + 1):
            body = {
                "model": model,
                "max_tokens": current_max_tokens,
                "temperature": temperature,
                "system": system,
                "messages": [{"role": "user", "content": user_prompt}],
            }
            send = self._make_streaming_request if self.stream else self._make_request
            response = with_retry(lambda: send(body), self.retries, self.retry_base_delay, sleep=self._sleep)

            usage = response.get("usage") or {}
            if response.get("stop_reason") != "max_tokens":
                logging.info(
                    "Claude success model=%s input_tokens=%s output_tokens=%s stop_reason=%s duration=%.2fs token_adjustments=%s",
                    response.get("model") or model,
                    usage.get("input_tokens"),
                    usage.get("output_tokens"),
                    response.get("stop_reason"),
                    time.time() - started_at,
                    attempt - 1,
                )
                return response

            new_max_tokens = min(
                math.ceil(current_max_tokens * product_config.TRUNCATION_GROWTH_FACTOR),
                product_config.CLAUDE_MAX_ALLOWED_TOKENS,
            )
            if new_max_tokens <= current_max_tokens or attempt >= max_attempts:
                logging.error(
                    "Claude response truncated at token ceiling model=%s max_tokens=%s output_tokens=%s",
                    model,
                    current_max_tokens,
                    usage.get("output_tokens"),
                )
                break

            logging.warning(
                "Claude response truncated, retrying with higher limit model=%s current=%s new=%s attempt=%s",
                model,
                current_max_tokens,
                new_max_tokens,
                attempt,
            )
            current_max_tokens = new_max_tokens

        raise ClaudeApiError(
            f"Response was truncated at max_tokens ({current_max_tokens}). The response is incomplete. "
            "Consider simplifying the prompt or breaking it into smaller requests.",
            429,
            "max_tokens_exceeded",
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "content-type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.version,
        }

    def _raise_for_status(self, resp: requests.Response) -> None:
        if resp.ok:
            return
        try:
            data = resp.json()
        except ValueError:
            data = None
        err = data.get("error") if isinstance(data, dict) else None
        err = err if isinstance(err, dict) else {}
        raise ClaudeApiError(
            str(err.get("message") or f"HTTP {resp.status_code}: {resp.reason}"),
            resp.status_code,
            err.get("type"),
            data,
        )

    def _make_request(self, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self.session.post(
                f"{self.base_url}/v1/messages",
                json=body,
                headers=self._headers(),
                timeout=self.timeout_sec,
            )
        except requests.Timeout as e:
            raise ClaudeApiError(f"Request timeout after {self.timeout_sec}s", 408, "timeout", e) from e
        except requests.RequestException as e:
            raise ClaudeApiError(f"Network error: {e}", None, "network_error", e) from e

        self._raise_for_status(resp)
        try:
            return resp.json()
        except ValueError as e:
            raise ClaudeApiError("Claude returned a non-JSON body", resp.status_code, "parse_error", e) from e

    def _make_streaming_request(self, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            with self.session.post(
                f"{self.base_url}/v1/messages",
                json=dict(body, stream=True),
                headers=self._headers(),
                timeout=self.timeout_sec,
                stream=True,
            ) as resp:
                self._raise_for_status(resp)
                message = accumulate_claude_stream(resp.iter_lines(decode_unicode=True))
        except requests.Timeout as e:
            raise ClaudeApiError(f"Request timeout after {self.timeout_sec}s", 408, "timeout", e) from e
        except requests.RequestException as e:
            raise ClaudeApiError(f"Network error: {e}", None, "network_error", e) from e
        except StreamError as e:
            raise ClaudeApiError(str(e), None, e.error_type or "stream_error", e) from e

        return message.to_response()

    @staticmethod
    def extract_text(response: Dict[str, Any]) -> str:
        """Join all text content blocks of a Messages API response."""
        blocks = response.get("content") or []
        return "\n".join(
            str(block.get("text") or "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        )
