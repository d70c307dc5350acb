import pytest

from blueprint_core.diagnostics import DiagnosticRecorder
from blueprint_core.errors import BlueprintValidationError, ValidationCode
from blueprint_core.pipeline import validate_and_normalize_blueprint


def test_chatty_fenced_response_end_to_end():
    text = (
        "Here is your result:\n```json\n"
        '{"metadata":{"title":"T","organization":"O","role":"R","generated_at":"2025-01-01"},'
        '"risks":[{"risk":"x"}]}'
        "\n```\nLet me know if you need changes."
    )
    recorder = DiagnosticRecorder()

    out = validate_and_normalize_blueprint(text, sink=recorder)

    assert out["metadata"] == {"title": "T", "organization": "O", "role": "R", "generated_at": "2025-01-01"}
    # Array sections carry no displayType slot and pass through as-is.
    assert out["risks"] == [{"risk": "x"}]
    names = recorder.names()
    assert "blueprint.json.removing_preamble" in names
    assert "blueprint.json.removing_trailing" in names
    assert names[-1] == "blueprint.validation.success"


def test_sections_get_display_types(valid_blueprint_text):
    text = valid_blueprint_text.replace('"displayType": "markdown"', '"displayType": "slides"')
    out = validate_and_normalize_blueprint(text)

    assert out["executive_summary"]["displayType"] == "markdown"
    assert out["learning_objectives"]["displayType"] == "infographic"


def test_success_event_counts_sections(valid_blueprint_text):
    recorder = DiagnosticRecorder()
    validate_and_normalize_blueprint(valid_blueprint_text, sink=recorder)
    assert recorder.find("blueprint.validation.success")[0].fields["section_count"] == 2


@pytest.mark.parametrize(
    "text,code",
    [
        ("", ValidationCode.EMPTY_RESPONSE),
        ("I cannot help with that.", ValidationCode.INVALID_JSON),
        ("[1, 2]", ValidationCode.INVALID_STRUCTURE),
        ('{"executive_summary": {}}', ValidationCode.MISSING_METADATA),
        ('{"metadata": {"title": "T", "organization": "O", "role": "R"}, "a": {}}', ValidationCode.MISSING_METADATA_FIELD),
        ('{"metadata": {"title": "T", "organization": "O", "role": "R", "generated_at": "x"}}', ValidationCode.NO_SECTIONS),
    ],
)
def test_failure_codes(text, code):
    with pytest.raises(BlueprintValidationError) as exc:
        validate_and_normalize_blueprint(text)
    assert exc.value.code == code
