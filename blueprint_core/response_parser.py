"""Parse untrusted model output into a JSON value.

Composition: trim/fence strip -> preamble and trailing removal -> json.loads,
then two repair attempts before giving up with INVALID_JSON:
  1. escape literal newlines inside strings;
  2. greedy {...}/[...] extraction, only when the structural cleanup found
     nothing to remove (a more exotic malformation).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from blueprint_core import product_config
from blueprint_core.diagnostics import DiagnosticSink, emit
from blueprint_core.errors import BlueprintValidationError, ValidationCode
from blueprint_core.json_repair import desperate_extract, extract_json_text, sanitize_json_text


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _loads(text: str) -> Any:
    # NaN/Infinity are not JSON; reject them like a browser JSON.parse would.
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except RecursionError as e:
        raise ValueError("JSON nesting too deep") from e


def parse_and_validate_json(text: Any, sink: Optional[DiagnosticSink] = None) -> Any:
    """Return the JSON value embedded in a model response.

    Args:
        text: Full completion text (already accumulated from any stream).
        sink: Optional diagnostic sink; defaults to `logging`.

    Returns:
        The parsed value (any JSON type).

    Raises:
        BlueprintValidationError: EMPTY_RESPONSE or INVALID_JSON.
    """
    if not isinstance(text, str) or not text.strip():
        raise BlueprintValidationError(
            "Response text is empty or not a string",
            ValidationCode.EMPTY_RESPONSE,
            {"text_type": type(text).__name__, "text_length": len(text) if isinstance(text, str) else None},
        )

    extraction = extract_json_text(text, sink=sink)
    cleaned = extraction.text

    try:
        parsed = _loads(cleaned)
    except ValueError as e:
        parse_error = e
    else:
        emit(
            sink,
            logging.INFO,
            "blueprint.json.parse_success",
            original_length=len(text),
            cleaned_length=len(cleaned),
            removed_characters=len(text) - len(cleaned),
        )
        return parsed

    preview = product_config.LOG_PREVIEW_CHARS
    emit(
        sink,
        logging.ERROR,
        "blueprint.json.parse_error",
        text_length=len(cleaned),
        original_text_length=len(text),
        text_start=cleaned[:preview],
        text_end=cleaned[-preview:],
        error=str(parse_error),
        has_code_fences=extraction.has_code_fences,
        preamble_removed=extraction.preamble_removed,
        trailing_removed=extraction.trailing_removed,
    )

    newline_repair_attempted = False
    repaired = sanitize_json_text(cleaned)
    if repaired != cleaned:
        newline_repair_attempted = True
        try:
            parsed = _loads(repaired)
        except ValueError as e:
            emit(sink, logging.WARNING, "blueprint.json.newline_repair_failed", error=str(e))
        else:
            emit(sink, logging.WARNING, "blueprint.json.newline_repair_success", cleaned_length=len(repaired))
            return parsed

    desperate_attempted = False
    if extraction.untouched:
        candidate = desperate_extract(cleaned)
        if candidate is not None:
            desperate_attempted = True
            emit(sink, logging.WARNING, "blueprint.json.desperate_attempt", extracted_length=len(candidate))
            try:
                return _loads(candidate)
            except ValueError as e:
                emit(sink, logging.ERROR, "blueprint.json.desperate_failed", error=str(e))

    limit = product_config.RESPONSE_PREVIEW_CHARS
    raise BlueprintValidationError(
        "Response is not valid JSON",
        ValidationCode.INVALID_JSON,
        {
            "text_preview": cleaned[:limit],
            "original_text_preview": text[:limit],
            "error": str(parse_error),
            "cleanup_steps": {
                "has_code_fences": extraction.has_code_fences,
                "preamble_removed": extraction.preamble_removed,
                "trailing_removed": extraction.trailing_removed,
                "newline_repair_attempted": newline_repair_attempted,
                "desperate_attempted": desperate_attempted,
                "final_length": len(cleaned),
            },
        },
    )
