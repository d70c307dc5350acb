import json

import function_app
from function_app import _handle_generate, _handle_validate, _json_response
from blueprint_core.generation_models import BlueprintContext, GenerationMetadata, GenerationModel, GenerationResult


def test_handle_validate_accepts_text_field(valid_blueprint_text):
    status, payload = _handle_validate({"text": f"Sure!\n{valid_blueprint_text}\nCheers"})

    assert status == 200
    assert payload["success"] is True
    assert payload["blueprint"]["metadata"]["organization"] == "Acme"
    assert "diagnostics" not in payload


def test_handle_validate_accepts_raw_string(valid_blueprint_text):
    status, payload = _handle_validate(f"```json\n{valid_blueprint_text}\n```")
    assert status == 200
    assert payload["blueprint"]["executive_summary"]["displayType"] == "markdown"


def test_handle_validate_reports_diagnostics_on_request(valid_blueprint_text):
    status, payload = _handle_validate({"text": f"Here:\n{valid_blueprint_text}", "include_diagnostics": True})
    assert status == 200
    assert "blueprint.json.removing_preamble" in payload["diagnostics"]


def test_handle_validate_error_payload():
    status, payload = _handle_validate({"text": "no json here", "include_diagnostics": True})

    assert status == 422
    assert payload["code"] == "INVALID_JSON"
    assert payload["error"] == "Response is not valid JSON"
    assert "cleanup_steps" in payload["details"]
    assert "blueprint.json.parse_error" in payload["diagnostics"]
    json.dumps(payload)


def test_handle_validate_missing_text():
    status, payload = _handle_validate({})
    assert status == 422
    assert payload["code"] == "EMPTY_RESPONSE"


class _FakeService:
    def __init__(self):
        self.contexts = []

    def generate(self, context: BlueprintContext) -> GenerationResult:
        self.contexts.append(context)
        return GenerationResult(
            success=False,
            metadata=GenerationMetadata(model=GenerationModel.OLLAMA, duration_ms=5, timestamp="2025-01-01T00:00:00+00:00", attempts=3, fallback_used=True),
            error="All blueprint generation methods failed",
        )


def test_handle_generate_validates_context(monkeypatch):
    monkeypatch.setattr(function_app, "_get_generation_service", lambda: _FakeService())

    status, payload = _handle_generate({"blueprint_id": "bp-1"})
    assert status == 400
    assert payload["error"] == "Invalid blueprint context"

    status, payload = _handle_generate(["not", "an", "object"])
    assert status == 400


def test_handle_generate_returns_result(monkeypatch):
    service = _FakeService()
    monkeypatch.setattr(function_app, "_get_generation_service", lambda: service)

    status, payload = _handle_generate(
        {"blueprint_id": "bp-1", "user_id": "u-1", "organization": "Acme", "role": "AE", "learning_objectives": "Close faster"}
    )

    assert status == 502
    assert payload["success"] is False
    assert payload["metadata"]["model"] == "ollama"
    assert service.contexts[0].learning_objectives == ["Close faster"]


def test_validate_response_survives_truncated_surrogate_escape():
    text = (
        '{"metadata": {"title": "T", "organization": "O", "role": "R", "generated_at": "2025-01-01"},'
        ' "summary": {"content": "Great job \\ud83d", "displayType": "markdown"}}'
    )
    status, payload = _handle_validate({"text": text})
    assert status == 200

    resp = _json_response(payload, status_code=status)
    body = json.loads(resp.get_body().decode("utf-8"))
    assert body["blueprint"]["summary"]["content"] == "Great job \ud83d"
