"""
Azure Functions app for blueprint response recovery and generation.

Public surface area (intentionally minimal):
  - GET  /api/health
  - POST /api/blueprints/validate
  - POST /api/blueprints/generate

Authentication, billing and rate limiting sit in front of this app and are not handled here.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import azure.functions as func
from pydantic import ValidationError as ModelValidationError

from blueprint_core.diagnostics import DiagnosticRecorder
from blueprint_core.errors import BlueprintValidationError
from blueprint_core.generation_models import BlueprintContext
from blueprint_core.generation_service import BlueprintGenerationService
from blueprint_core.pipeline import validate_and_normalize_blueprint


def _json_response(payload: dict, *, status_code: int = 200) -> func.HttpResponse:
    # Escaped output: model text may carry lone surrogates that UTF-8 cannot encode.
    return func.HttpResponse(
        json.dumps(payload, ensure_ascii=True),
        mimetype="application/json; charset=utf-8",
        status_code=status_code,
    )


_service: Optional[BlueprintGenerationService] = None


def _get_generation_service() -> BlueprintGenerationService:
    global _service
    if _service is None:
        _service = BlueprintGenerationService()
    return _service


def _handle_validate(body: Any) -> tuple[int, dict]:
    """Run the recovery pipeline over a raw model completion.

    Accepts {"text": "...", "include_diagnostics": bool} or a bare string.
    """
    include_diagnostics = False
    if isinstance(body, dict):
        text = body.get("text")
        include_diagnostics = bool(body.get("include_diagnostics", False))
    else:
        text = body

    recorder = DiagnosticRecorder(forward_to_logging=True)
    try:
        blueprint = validate_and_normalize_blueprint(text, sink=recorder)
    except BlueprintValidationError as e:
        logging.warning("Blueprint validation failed code=%s message=%s", e.code.value, e.message)
        payload = e.to_dict()
        if include_diagnostics:
            payload["diagnostics"] = recorder.names()
        return 422, payload

    payload = {"success": True, "blueprint": blueprint}
    if include_diagnostics:
        payload["diagnostics"] = recorder.names()
    return 200, payload


def _handle_generate(body: Any) -> tuple[int, dict]:
    if not isinstance(body, dict):
        return 400, {"error": "Request body must be an object"}
    try:
        context = BlueprintContext.model_validate(body)
    except ModelValidationError as e:
        return 400, {"error": "Invalid blueprint context", "details": json.loads(e.json())}

    result = _get_generation_service().generate(context)
    status = 200 if result.success else 502
    return status, result.model_dump(mode="json")


app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)


@app.route(route="health", methods=["GET"])
def health(req: func.HttpRequest) -> func.HttpResponse:
    logging.info("Health check requested")
    return _json_response({"status": "healthy", "service": "Blueprint API", "version": "1.0"}, status_code=200)


@app.route(route="blueprints/validate", methods=["POST"])
def blueprints_validate(req: func.HttpRequest) -> func.HttpResponse:
    """
    Request:
      {"text": "<raw model completion>", "include_diagnostics": false}
    or the raw completion as a text/plain body.
    """
    raw = req.get_body().decode("utf-8", errors="replace")
    try:
        body = req.get_json()
    except ValueError:
        body = raw
    if not isinstance(body, dict) or "text" not in body:
        # A completion posted as-is, even when it happens to be valid JSON.
        body = raw

    status, payload = _handle_validate(body)
    return _json_response(payload, status_code=status)


@app.route(route="blueprints/generate", methods=["POST"])
def blueprints_generate(req: func.HttpRequest) -> func.HttpResponse:
    try:
        body = req.get_json()
    except ValueError:
        return _json_response({"error": "Invalid JSON"}, status_code=400)

    status, payload = _handle_generate(body)
    return _json_response(payload, status_code=status)
