"""
Request/response models for blueprint generation.

`BlueprintContext` is what the questionnaire layer hands over; `GenerationResult`
is what the generation service returns to the HTTP layer.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class GenerationModel(str, Enum):
    """Which tier of the fallback cascade produced the blueprint."""

    CLAUDE_PRIMARY = "claude-sonnet-4"
    CLAUDE_FALLBACK = "claude-opus-4"
    OLLAMA = "ollama"


class BlueprintContext(BaseModel):
    """Questionnaire answers and organization context for one blueprint."""

    blueprint_id: str = Field(..., description="Blueprint identifier")
    user_id: str = Field(..., description="Requesting user")
    organization: str = Field(..., description="Organization name")
    role: str = Field(..., description="Target role")
    industry: str = Field("", description="Industry of the organization")
    static_answers: Dict[str, Any] = Field(default_factory=dict, description="Static questionnaire answers")
    dynamic_answers: Dict[str, Any] = Field(default_factory=dict, description="Dynamic questionnaire answers")
    learning_objectives: List[str] = Field(default_factory=list, description="Primary learning objectives")

    @field_validator("static_answers", "dynamic_answers", mode="before")
    @classmethod
    def _coerce_answers(cls, v):
        if v is None:
            return {}
        return v

    @field_validator("learning_objectives", mode="before")
    @classmethod
    def _coerce_objectives(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class GenerationMetadata(BaseModel):
    """How the blueprint was produced."""

    model: GenerationModel = Field(..., description="Cascade tier that produced (or last attempted) the blueprint")
    duration_ms: int = Field(..., description="Wall time of the whole cascade")
    timestamp: str = Field(..., description="Completion timestamp (ISO 8601)")
    fallback_used: bool = Field(False, description="Whether a fallback tier was used")
    attempts: int = Field(1, description="Number of cascade tiers tried")


class GenerationResult(BaseModel):
    success: bool
    blueprint: Optional[Dict[str, Any]] = None
    metadata: GenerationMetadata
    usage: Optional[TokenUsage] = None
    error: Optional[str] = None
