"""Ollama client for the emergency fallback tier.

Talks to Ollama's OpenAI-compatible `/v1` endpoint through the OpenAI SDK and
returns the raw completion text; the caller runs it through the same recovery
pipeline as Claude output.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Optional

import requests
from openai import OpenAI

from blueprint_core import product_config
from blueprint_core.stream import accumulate_chat_chunks


class OllamaServiceError(Exception):
    """Ollama is unreachable or returned nothing usable."""


class OllamaClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout_sec: Optional[float] = None,
        retries: Optional[int] = None,
        stream: Optional[bool] = None,
        client: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = (base_url or product_config.OLLAMA_BASE_URL).rstrip("/")
        self.model = model or product_config.OLLAMA_MODEL
        self.temperature = product_config.BLUEPRINT_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or product_config.OLLAMA_MAX_TOKENS
        self.timeout_sec = timeout_sec if timeout_sec is not None else product_config.OLLAMA_TIMEOUT_SEC
        self.retries = max(1, retries if retries is not None else product_config.OLLAMA_RETRIES)
        self.stream = product_config.BLUEPRINT_STREAMING if stream is None else stream
        # Ollama ignores the key but the SDK requires one.
        self.client = client or OpenAI(
            base_url=f"{self.base_url}/v1",
            api_key="ollama",
            timeout=self.timeout_sec,
            max_retries=0,
        )
        self._sleep = sleep

    def health(self) -> bool:
        try:
            resp = requests.get(f"{self.base_url}/api/tags", timeout=5.0)
        except requests.RequestException:
            return False
        return resp.ok

    def _complete_once(self, system_prompt: str, user_prompt: str) -> str:
        resp = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
            stream=self.stream,
        )
        if self.stream:
            content = accumulate_chat_chunks(resp)
        else:
            choices = getattr(resp, "choices", None) or []
            message = getattr(choices[0], "message", None) if choices else None
            content = getattr(message, "content", None) or ""

        if not isinstance(content, str) or not content.strip():
            raise OllamaServiceError("Empty blueprint response from Ollama")
        return content

    def generate_blueprint(self, system_prompt: str, user_prompt: str) -> str:
        """Return the raw completion text, retrying with 2**i s backoff plus jitter."""
        logging.info("Calling Ollama model=%s max_tokens=%s stream=%s", self.model, self.max_tokens, self.stream)

        last_error: Optional[Exception] = None
        for attempt in range(self.retries):
            try:
                return self._complete_once(system_prompt, user_prompt)
            except Exception as e:
                last_error = e
                if attempt + 1 >= self.retries:
                    break
                delay = (1 << attempt) + random.uniform(0, 0.2)
                logging.warning(
                    "Ollama request failed attempt=%s/%s delay=%.2fs error=%s",
                    attempt + 1,
                    self.retries,
                    delay,
                    e,
                )
                self._sleep(delay)

        if isinstance(last_error, OllamaServiceError):
            raise last_error
        raise OllamaServiceError(f"Ollama chat failed: {last_error}") from last_error
