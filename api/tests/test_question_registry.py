import pytest

from dmgt_assessment import question_loader
from dmgt_assessment.question_loader import (
    QuestionRegistryError,
    check_question_registry,
    get_file_question_registry,
    get_question_set,
    get_questions,
)
from dmgt_assessment.services.validation import validate_question_definitions


def _codes(errors):
    return [e["code"] for e in errors]


def test_shipped_registry_is_valid():
    assert check_question_registry(get_file_question_registry()) == []


def test_registry_loads_both_assessment_types():
    company = get_question_set("Company")
    employee = get_question_set("Employee")
    assert company is not None and employee is not None
    assert company.version == "2.0"
    assert {q.id for q in company.questions} >= {"company_name", "industry_other", "supporting_documents"}
    assert get_questions("Employee")[0].id == "employee_name"


def test_unknown_assessment_type_has_no_questions():
    assert get_question_set("Contractor") is None
    assert get_questions("Contractor") == []


def test_string_options_are_expanded():
    industry = next(q for q in get_questions("Company") if q.id == "industry")
    assert industry.options[0].value == industry.options[0].label == "Media & Publishing"


def test_definition_checks_report_structured_errors():
    errors = validate_question_definitions(
        [
            {"id": "a", "title": "A", "type": "text"},
            {"id": "a", "title": "Again", "type": "text"},
            {"id": "b", "title": "", "type": "select"},
            {"id": "c", "title": "C", "type": "slider"},
            {"id": "d", "title": "D", "type": "number", "validation": {"min": 10, "max": 1}},
            {"id": "e", "title": "E", "type": "text", "validation": {"pattern": "("}},
            {"id": "f", "title": "F", "type": "text", "dependsOn": "missing"},
            {"title": "no id", "type": "text"},
        ]
    )
    assert _codes(errors) == [
        "duplicate_question_id",
        "missing_title",
        "missing_options",
        "invalid_question_type",
        "inverted_bounds",
        "invalid_pattern",
        "missing_question_id",
        "unknown_depends_on",
    ]
    assert errors[0]["path"] == "questions[1].id"


def test_non_list_questions_are_rejected():
    assert _codes(validate_question_definitions({"id": "a"})) == ["invalid_schema"]


def test_missing_question_set_is_reported_with_type_prefix():
    errors = check_question_registry({"Company": {"questions": [{"id": "x", "title": "X", "type": "radio"}]}})
    assert ("Company.questions[0].options", "missing_options") in [(e["path"], e["code"]) for e in errors]
    assert ("Employee", "missing_question_set") in [(e["path"], e["code"]) for e in errors]


def test_broken_registry_fails_to_load(monkeypatch):
    monkeypatch.setattr(question_loader, "get_file_question_registry", lambda: {"Company": {"questions": []}})
    question_loader.load_question_registry.cache_clear()
    try:
        with pytest.raises(QuestionRegistryError) as excinfo:
            question_loader.load_question_registry()
        assert _codes(excinfo.value.errors) == ["missing_question_set"]
    finally:
        question_loader.load_question_registry.cache_clear()
