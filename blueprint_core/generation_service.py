"""Blueprint generation orchestrator.

Cascade: primary Claude model -> fallback Claude model -> Ollama.
Every tier's raw completion goes through the same recovery pipeline; the
service never retries a tier itself beyond what the clients do.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from blueprint_core import product_config
from blueprint_core.fallback import log_fallback_decision, should_fallback_to_ollama, should_fallback_to_secondary
from blueprint_core.generation_models import (
    BlueprintContext,
    GenerationMetadata,
    GenerationModel,
    GenerationResult,
    TokenUsage,
)
from blueprint_core.llm.claude_client import ClaudeClient
from blueprint_core.llm.ollama_client import OllamaClient
from blueprint_core.pipeline import validate_and_normalize_blueprint
from blueprint_core.prompt_builder import build_blueprint_prompt, system_prompt


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BlueprintGenerationService:
    def __init__(
        self,
        claude_client: Optional[ClaudeClient] = None,
        ollama_client: Optional[OllamaClient] = None,
        primary_model: Optional[str] = None,
        fallback_model: Optional[str] = None,
        enable_ollama_fallback: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.claude_client = claude_client or ClaudeClient()
        self._ollama_client = ollama_client
        self.primary_model = primary_model or product_config.BLUEPRINT_PRIMARY_MODEL
        self.fallback_model = fallback_model or product_config.BLUEPRINT_FALLBACK_MODEL
        self.enable_ollama_fallback = (
            product_config.BLUEPRINT_ENABLE_OLLAMA_FALLBACK if enable_ollama_fallback is None else enable_ollama_fallback
        )
        self._clock = clock

    @property
    def ollama_client(self) -> OllamaClient:
        if self._ollama_client is None:
            self._ollama_client = OllamaClient()
        return self._ollama_client

    def generate(self, context: BlueprintContext) -> GenerationResult:
        started = self._clock()
        logging.info(
            "Blueprint generation started blueprint_id=%s user_id=%s organization=%s industry=%s",
            context.blueprint_id,
            context.user_id,
            context.organization,
            context.industry,
        )

        system = system_prompt()
        user_prompt = build_blueprint_prompt(context)

        def _result(model: GenerationModel, attempts: int, **kwargs: Any) -> GenerationResult:
            return GenerationResult(
                metadata=GenerationMetadata(
                    model=model,
                    duration_ms=int((self._clock() - started) * 1000),
                    timestamp=_now_iso(),
                    fallback_used=attempts > 1,
                    attempts=attempts,
                ),
                **kwargs,
            )

        try:
            blueprint, usage = self._generate_with_claude(
                self.primary_model, system, user_prompt, product_config.BLUEPRINT_PRIMARY_MAX_TOKENS
            )
            logging.info("Blueprint generation success blueprint_id=%s model=%s", context.blueprint_id, self.primary_model)
            return _result(GenerationModel.CLAUDE_PRIMARY, 1, success=True, blueprint=blueprint, usage=usage)
        except Exception as e:
            primary_error = e

        logging.warning(
            "Primary model failed blueprint_id=%s error=%s", context.blueprint_id, primary_error
        )
        decision = should_fallback_to_secondary(primary_error)
        log_fallback_decision(decision, blueprint_id=context.blueprint_id, model=self.primary_model, attempt=1)
        if not decision.should_fallback:
            return _result(GenerationModel.CLAUDE_PRIMARY, 1, success=False, error=str(primary_error))

        try:
            blueprint, usage = self._generate_with_claude(
                self.fallback_model, system, user_prompt, product_config.BLUEPRINT_FALLBACK_MAX_TOKENS
            )
            logging.info(
                "Blueprint generation fallback success blueprint_id=%s model=%s trigger=%s",
                context.blueprint_id,
                self.fallback_model,
                decision.trigger.value if decision.trigger else None,
            )
            return _result(GenerationModel.CLAUDE_FALLBACK, 2, success=True, blueprint=blueprint, usage=usage)
        except Exception as e:
            secondary_error = e

        logging.error(
            "Fallback model failed blueprint_id=%s primary_error=%s fallback_error=%s",
            context.blueprint_id,
            primary_error,
            secondary_error,
        )
        if not (self.enable_ollama_fallback and should_fallback_to_ollama(primary_error, secondary_error)):
            return _result(GenerationModel.CLAUDE_FALLBACK, 2, success=False, error=str(secondary_error))

        try:
            blueprint = self._generate_with_ollama(system, user_prompt)
        except Exception as e:
            logging.error(
                "All blueprint generation methods failed blueprint_id=%s ollama_error=%s",
                context.blueprint_id,
                e,
            )
            return _result(GenerationModel.OLLAMA, 3, success=False, error="All blueprint generation methods failed")

        logging.info("Blueprint generation emergency fallback success blueprint_id=%s", context.blueprint_id)
        return _result(GenerationModel.OLLAMA, 3, success=True, blueprint=blueprint)

    def _generate_with_claude(
        self, model: str, system: str, user_prompt: str, max_tokens: int
    ) -> Tuple[Dict[str, Any], TokenUsage]:
        response = self.claude_client.generate(
            system=system,
            user_prompt=user_prompt,
            model=model,
            max_tokens=max_tokens,
        )
        text = ClaudeClient.extract_text(response)
        blueprint = validate_and_normalize_blueprint(text)
        usage = response.get("usage") or {}
        return blueprint, TokenUsage(
            input_tokens=int(usage.get("input_tokens") or 0),
            output_tokens=int(usage.get("output_tokens") or 0),
        )

    def _generate_with_ollama(self, system: str, user_prompt: str) -> Dict[str, Any]:
        text = self.ollama_client.generate_blueprint(system, user_prompt)
        blueprint = validate_and_normalize_blueprint(text)
        blueprint["_generation_metadata"] = {"model": GenerationModel.OLLAMA.value, "timestamp": _now_iso()}
        return blueprint
