import pytest

from blueprint_core.diagnostics import DiagnosticRecorder
from blueprint_core.errors import BlueprintValidationError, ValidationCode
from blueprint_core.schema_validator import section_keys, validate_blueprint_structure


def _code(blueprint):
    with pytest.raises(BlueprintValidationError) as exc:
        validate_blueprint_structure(blueprint)
    return exc.value


def test_valid_blueprint_passes(valid_blueprint):
    assert validate_blueprint_structure(valid_blueprint) == []


@pytest.mark.parametrize("value", [[1, 2], "text", 3, None])
def test_non_object_is_invalid_structure(value):
    err = _code(value)
    assert err.code == ValidationCode.INVALID_STRUCTURE
    assert err.details["received_type"] == type(value).__name__


def test_missing_metadata(valid_blueprint):
    del valid_blueprint["metadata"]
    err = _code(valid_blueprint)
    assert err.code == ValidationCode.MISSING_METADATA
    assert "executive_summary" in err.details["keys"]


def test_metadata_must_be_an_object(valid_blueprint):
    valid_blueprint["metadata"] = ["title"]
    assert _code(valid_blueprint).code == ValidationCode.MISSING_METADATA


def test_missing_generated_at(valid_blueprint):
    del valid_blueprint["metadata"]["generated_at"]
    err = _code(valid_blueprint)
    assert err.code == ValidationCode.MISSING_METADATA_FIELD
    assert err.details["field"] == "generated_at"


def test_blank_metadata_field_counts_as_missing(valid_blueprint):
    valid_blueprint["metadata"]["title"] = "   "
    err = _code(valid_blueprint)
    assert err.code == ValidationCode.MISSING_METADATA_FIELD
    assert err.details["field"] == "title"


def test_first_missing_metadata_field_is_reported(valid_blueprint):
    valid_blueprint["metadata"] = {"title": "T"}
    assert _code(valid_blueprint).details["field"] == "organization"


def test_metadata_only_has_no_sections(valid_blueprint):
    blueprint = {"metadata": valid_blueprint["metadata"]}
    err = _code(blueprint)
    assert err.code == ValidationCode.NO_SECTIONS
    assert err.details["keys"] == ["metadata"]


def test_missing_display_type_is_reported_not_raised(valid_blueprint):
    recorder = DiagnosticRecorder()
    del valid_blueprint["executive_summary"]["displayType"]
    valid_blueprint["risks"] = [{"risk": "x"}]

    missing = validate_blueprint_structure(valid_blueprint, sink=recorder)

    assert missing == ["executive_summary"]
    assert recorder.find("blueprint.validation.missing_display_type")[0].fields["section"] == "executive_summary"
    assert recorder.find("blueprint.validation.sections_missing_display_type")[0].fields["count"] == 1


def test_section_keys_preserve_document_order(valid_blueprint):
    assert section_keys(valid_blueprint) == ["executive_summary", "learning_objectives"]


@pytest.mark.parametrize("value", [False, 0, 0.0, None, [], {}])
def test_falsy_metadata_values_count_as_missing(valid_blueprint, value):
    valid_blueprint["metadata"]["generated_at"] = value
    err = _code(valid_blueprint)
    assert err.code == ValidationCode.MISSING_METADATA_FIELD
    assert err.details["field"] == "generated_at"


def test_truthy_non_string_metadata_values_are_accepted(valid_blueprint):
    valid_blueprint["metadata"]["generated_at"] = 1735689600
    assert validate_blueprint_structure(valid_blueprint) == []
