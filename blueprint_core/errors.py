"""Error taxonomy for blueprint response recovery.

Every failure of the recovery pipeline is a single exception type carrying a
discriminating code and a details bag for operator diagnostics.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ValidationCode(str, Enum):
    """Failure codes surfaced to callers of the recovery pipeline."""

    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    INVALID_JSON = "INVALID_JSON"
    INVALID_STRUCTURE = "INVALID_STRUCTURE"
    MISSING_METADATA = "MISSING_METADATA"
    MISSING_METADATA_FIELD = "MISSING_METADATA_FIELD"
    NO_SECTIONS = "NO_SECTIONS"


# Codes meaning the model produced no usable JSON at all (re-prompting may help).
PARSE_FAILURE_CODES = frozenset({ValidationCode.EMPTY_RESPONSE, ValidationCode.INVALID_JSON})


class BlueprintValidationError(Exception):
    """Raised when model output cannot be turned into a blueprint document"""

    def __init__(self, message: str, code: ValidationCode, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = ValidationCode(code)
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code.value, "details": self.details}

    def __repr__(self) -> str:
        return f"BlueprintValidationError(code={self.code.value!r}, message={self.message!r})"
