"""
Product configuration: centralized limits, model settings, toggles and retry policies.

- Hard limits are NOT configurable (response preview sizes, token ceilings).
- Model names, retries and toggles CAN be overridden via env vars.
- Defaults are production-ready.

Environment vars (optional overrides):
  ANTHROPIC_API_KEY=<str>
  ANTHROPIC_BASE_URL=<url>
  ANTHROPIC_VERSION=<str>
  BLUEPRINT_PRIMARY_MODEL=<str>
  BLUEPRINT_FALLBACK_MODEL=<str>
  BLUEPRINT_PRIMARY_MAX_TOKENS=<int>
  BLUEPRINT_FALLBACK_MAX_TOKENS=<int>
  BLUEPRINT_TEMPERATURE=<float>
  BLUEPRINT_STREAMING=0/1
  BLUEPRINT_ENABLE_OLLAMA_FALLBACK=0/1
  CLAUDE_TIMEOUT_SEC=<float>
  CLAUDE_RETRIES=<int>
  CLAUDE_RETRY_BASE_DELAY_SEC=<float>
  OLLAMA_BASE_URL=<url>
  OLLAMA_MODEL=<str>
  OLLAMA_MAX_TOKENS=<int>
  OLLAMA_TIMEOUT_SEC=<float>
  OLLAMA_RETRIES=<int>
"""

import os
from typing import Callable, Optional, TypeVar

N = TypeVar("N", int, float)

_TRUE_VALUES = {"1", "true", "yes", "on"}


# ============================================================================
# HARD LIMITS (non-configurable)
# ============================================================================

# Characters of cleaned/original text carried in INVALID_JSON error details.
RESPONSE_PREVIEW_CHARS: int = 1000

# Characters of removed preamble/trailing text included in diagnostics.
LOG_PREVIEW_CHARS: int = 200

# Claude output token ceiling when growing the budget after truncation.
CLAUDE_MAX_ALLOWED_TOKENS: int = 20000

# Attempts at increasing max_tokens after a `max_tokens` stop reason.
CLAUDE_MAX_TRUNCATION_ATTEMPTS: int = 3

# Budget multiplier applied on each truncation retry.
TRUNCATION_GROWTH_FACTOR: float = 1.5


# ============================================================================
# CONFIGURABLE (env vars with sensible defaults)
# ============================================================================

def _env(env_key: str) -> str:
    return str(os.environ.get(env_key) or "").strip()


def _get_bool_config(env_key: str, default: bool) -> bool:
    """1/true/yes/on enable, anything else disables; unset keeps the default."""
    val = _env(env_key)
    if not val:
        return default
    return val.lower() in _TRUE_VALUES


def _get_number_config(env_key: str, default: N, cast: Callable[[str], N], min_val: Optional[N] = None) -> N:
    val = _env(env_key)
    if not val:
        return default
    try:
        result = cast(val)
    except ValueError:
        return default
    return result if min_val is None else max(result, min_val)


def _get_int_config(env_key: str, default: int, min_val: Optional[int] = None) -> int:
    return _get_number_config(env_key, default, int, min_val)


def _get_float_config(env_key: str, default: float, min_val: Optional[float] = None) -> float:
    return _get_number_config(env_key, default, float, min_val)


def _get_str_config(env_key: str, default: str) -> str:
    return _env(env_key) or default


# Anthropic
ANTHROPIC_API_KEY: str = _get_str_config("ANTHROPIC_API_KEY", "")
ANTHROPIC_BASE_URL: str = _get_str_config("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
ANTHROPIC_VERSION: str = _get_str_config("ANTHROPIC_VERSION", "2023-06-01")

# Blueprint generation
BLUEPRINT_PRIMARY_MODEL: str = _get_str_config("BLUEPRINT_PRIMARY_MODEL", "claude-sonnet-4-20250514")
BLUEPRINT_FALLBACK_MODEL: str = _get_str_config("BLUEPRINT_FALLBACK_MODEL", "claude-opus-4-20250514")
BLUEPRINT_PRIMARY_MAX_TOKENS: int = _get_int_config("BLUEPRINT_PRIMARY_MAX_TOKENS", 12000, min_val=1)
BLUEPRINT_FALLBACK_MAX_TOKENS: int = _get_int_config("BLUEPRINT_FALLBACK_MAX_TOKENS", 16000, min_val=1)
BLUEPRINT_TEMPERATURE: float = _get_float_config("BLUEPRINT_TEMPERATURE", 0.2, min_val=0.0)
BLUEPRINT_STREAMING: bool = _get_bool_config("BLUEPRINT_STREAMING", False)
BLUEPRINT_ENABLE_OLLAMA_FALLBACK: bool = _get_bool_config("BLUEPRINT_ENABLE_OLLAMA_FALLBACK", True)

# Claude transport
CLAUDE_TIMEOUT_SEC: float = _get_float_config("CLAUDE_TIMEOUT_SEC", 120.0, min_val=1.0)
CLAUDE_RETRIES: int = _get_int_config("CLAUDE_RETRIES", 2, min_val=0)
CLAUDE_RETRY_BASE_DELAY_SEC: float = _get_float_config("CLAUDE_RETRY_BASE_DELAY_SEC", 1.0, min_val=0.0)

# Ollama (emergency fallback)
OLLAMA_BASE_URL: str = _get_str_config("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL: str = _get_str_config("OLLAMA_MODEL", "qwen3:30b-a3b")
OLLAMA_MAX_TOKENS: int = _get_int_config("OLLAMA_MAX_TOKENS", 16384, min_val=1)
OLLAMA_TIMEOUT_SEC: float = _get_float_config("OLLAMA_TIMEOUT_SEC", 120.0, min_val=1.0)
OLLAMA_RETRIES: int = _get_int_config("OLLAMA_RETRIES", 3, min_val=1)
