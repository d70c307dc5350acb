"""
Structure validation for parsed blueprint documents.
Enforces the load-bearing fields and reports missing presentation hints.
"""

import logging
from typing import Any, Dict, List, Optional

from blueprint_core.diagnostics import DiagnosticSink, emit
from blueprint_core.errors import BlueprintValidationError, ValidationCode


METADATA_KEY = "metadata"
DISPLAY_TYPE_KEY = "displayType"

# Checked in this order; the first missing one is reported.
REQUIRED_METADATA_FIELDS = ("title", "organization", "role", "generated_at")


def _is_blank(value: Any) -> bool:
    """None, false, zero, whitespace-only strings and empty containers are blank."""
    if isinstance(value, str):
        return not value.strip()
    return not value


def section_keys(blueprint: Dict[str, Any]) -> List[str]:
    """All top-level keys except metadata, in document order."""
    return [key for key in blueprint.keys() if key != METADATA_KEY]


def validate_blueprint_structure(blueprint: Any, sink: Optional[DiagnosticSink] = None) -> List[str]:
    """
    Validate a parsed blueprint document

    Args:
        blueprint: Value returned by the response parser
        sink: Optional diagnostic sink

    Returns:
        Keys of object sections that carry no displayType (repaired later by
        the normalizer, never fatal)

    Raises:
        BlueprintValidationError: INVALID_STRUCTURE, MISSING_METADATA,
            MISSING_METADATA_FIELD or NO_SECTIONS
    """
    if not isinstance(blueprint, dict):
        raise BlueprintValidationError(
            "Blueprint is not an object",
            ValidationCode.INVALID_STRUCTURE,
            {"received_type": type(blueprint).__name__},
        )

    metadata = blueprint.get(METADATA_KEY)
    if not isinstance(metadata, dict):
        raise BlueprintValidationError(
            "Blueprint missing required metadata section",
            ValidationCode.MISSING_METADATA,
            {"keys": list(blueprint.keys())},
        )

    for field in REQUIRED_METADATA_FIELDS:
        if _is_blank(metadata.get(field)):
            raise BlueprintValidationError(
                f"Blueprint metadata missing required field: {field}",
                ValidationCode.MISSING_METADATA_FIELD,
                {"field": field, "metadata": metadata},
            )

    sections = section_keys(blueprint)
    if not sections:
        raise BlueprintValidationError(
            "Blueprint has no content sections",
            ValidationCode.NO_SECTIONS,
            {"keys": list(blueprint.keys())},
        )

    missing_display_type = []
    for key in sections:
        section = blueprint[key]
        if isinstance(section, dict) and _is_blank(section.get(DISPLAY_TYPE_KEY)):
            missing_display_type.append(key)
            emit(sink, logging.WARNING, "blueprint.validation.missing_display_type", section=key)

    if missing_display_type:
        emit(
            sink,
            logging.INFO,
            "blueprint.validation.sections_missing_display_type",
            count=len(missing_display_type),
            sections=missing_display_type,
        )

    return missing_display_type
