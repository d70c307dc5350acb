"""Full recovery pipeline: parse model text, validate structure, normalize display types."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from blueprint_core.diagnostics import DiagnosticSink, emit
from blueprint_core.normalize import normalize_blueprint_structure
from blueprint_core.response_parser import parse_and_validate_json
from blueprint_core.schema_validator import section_keys, validate_blueprint_structure


def validate_and_normalize_blueprint(text: Any, sink: Optional[DiagnosticSink] = None) -> Dict[str, Any]:
    """Turn a raw completion into a normalized blueprint document.

    Raises:
        BlueprintValidationError: on any parse or structural failure. Retrying
            (re-prompting the model) is up to the caller.
    """
    blueprint = parse_and_validate_json(text, sink=sink)
    validate_blueprint_structure(blueprint, sink=sink)
    normalized = normalize_blueprint_structure(blueprint, sink=sink)

    emit(
        sink,
        logging.INFO,
        "blueprint.validation.success",
        has_metadata=True,
        section_count=len(section_keys(normalized)),
    )
    return normalized
