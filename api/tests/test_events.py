import json

import pytest

from dmgt_assessment.services.events import log_assessment_event


class FakeDB:
    def __init__(self):
        self.calls = []

    def execute(self, stmt, params):
        self.calls.append((str(stmt), params))


def test_log_assessment_event_inserts_expected_payload_shape():
    db = FakeDB()
    log_assessment_event(
        db,
        event_name="assessment_saved",
        assessment_type="Employee",
        company_id="acme",
        employee_id="e-100",
        properties={"status": "in-progress"},
    )
    assert len(db.calls) == 1
    sql, params = db.calls[0]
    assert "INSERT INTO assessment_event" in sql
    assert params["event_name"] == "assessment_saved"
    assert params["employee_id"] == "e-100"
    assert json.loads(params["properties"]) == {"status": "in-progress"}


def test_company_events_store_null_employee():
    db = FakeDB()
    log_assessment_event(db, event_name="file_uploaded", assessment_type="Company", company_id="acme", employee_id="", question_id="docs")
    _, params = db.calls[0]
    assert params["employee_id"] is None
    assert params["question_id"] == "docs"


def test_unknown_event_name_is_rejected():
    with pytest.raises(ValueError):
        log_assessment_event(FakeDB(), event_name="page_viewed", assessment_type="Company", company_id="acme")
