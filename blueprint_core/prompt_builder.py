"""Blueprint prompt assembly from questionnaire context."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from blueprint_core.generation_models import BlueprintContext
from blueprint_core.prompt_registry import get_prompt, get_prompt_registry

DEFAULT_LEARNING_OBJECTIVES = ["Improve team performance and skills"]

# Keys under which the dynamic questionnaire may store objectives, by priority.
OBJECTIVE_ANSWER_KEYS = ("learning_objectives", "objectives", "goals", "learning_goals", "target_outcomes")

_OBJECTIVE_SPLIT_RE = re.compile(r"[,\n]")

CRITICAL_REQUIREMENTS = """CRITICAL REQUIREMENTS:
1. Return ONLY valid JSON (no markdown code fences, no explanatory text)
2. Include displayType for EVERY top-level section (except metadata)
3. Use specific, contextual content (not generic templates)
4. Include chartConfig when displayType is "chart" or "infographic" with charts
5. Ensure all dates are ISO format strings
6. All monetary amounts should be numbers
7. Percentages should be numbers (0-100)
8. Be comprehensive but avoid unnecessary verbosity"""


def system_prompt() -> str:
    return get_prompt("blueprint_system")


def extract_learning_objectives(dynamic_answers: Dict[str, Any]) -> List[str]:
    """Pull learning objectives out of dynamic questionnaire answers.

    Accepts a list, or a comma/newline separated string, under the first
    populated key of OBJECTIVE_ANSWER_KEYS.
    """
    objectives: List[str] = []

    for key in OBJECTIVE_ANSWER_KEYS:
        value = (dynamic_answers or {}).get(key)
        if not value:
            continue
        if isinstance(value, list):
            objectives.extend(str(v) for v in value)
            break
        if isinstance(value, str):
            objectives.extend(part.strip() for part in _OBJECTIVE_SPLIT_RE.split(value) if part.strip())
            break

    if not objectives:
        return list(DEFAULT_LEARNING_OBJECTIVES)
    return objectives


def build_blueprint_prompt(context: BlueprintContext, now_iso: Optional[str] = None) -> str:
    """Build the user prompt for one blueprint generation."""
    generated_at = now_iso or datetime.now(timezone.utc).isoformat()
    objectives = context.learning_objectives or extract_learning_objectives(context.dynamic_answers)

    output_schema = get_prompt_registry().render(
        "blueprint_output_schema",
        organization=context.organization,
        role=context.role,
        generated_at=generated_at,
    )

    parts = [
        "Generate a comprehensive learning blueprint based on the following inputs:",
        "",
        "ORGANIZATION CONTEXT:",
        f"- Organization: {context.organization}",
        f"- Industry: {context.industry}",
        f"- Role: {context.role}",
        "",
        "STATIC QUESTIONNAIRE ANSWERS:",
        json.dumps(context.static_answers, indent=2, ensure_ascii=False),
        "",
        "DYNAMIC QUESTIONNAIRE ANSWERS:",
        json.dumps(context.dynamic_answers, indent=2, ensure_ascii=False),
        "",
        "PRIMARY LEARNING OBJECTIVES:",
        "\n".join(f"{i}. {obj}" for i, obj in enumerate(objectives, start=1)),
        "",
        "OUTPUT SCHEMA:",
        output_schema,
        "",
        CRITICAL_REQUIREMENTS,
    ]
    return "\n".join(parts)
