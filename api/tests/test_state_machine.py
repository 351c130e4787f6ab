from dmgt_assessment.client.navigation import transition_page
from dmgt_assessment.services.state_machine import transition_status


def test_save_moves_through_draft_in_progress_completed():
    assert transition_status("draft", "save", has_responses=False, is_complete=False) == "draft"
    assert transition_status("draft", "save", has_responses=True, is_complete=False) == "in-progress"
    assert transition_status("in-progress", "save", has_responses=True, is_complete=True) == "completed"
    assert transition_status("completed", "save", has_responses=True, is_complete=False) == "in-progress"


def test_submit_is_terminal():
    for status in ("draft", "in-progress", "completed"):
        assert transition_status(status, "submit", has_responses=True, is_complete=True) == "submitted"
    assert transition_status("submitted", "save", has_responses=False, is_complete=False) == "submitted"
    assert transition_status("submitted", "reset", has_responses=False, is_complete=False) == "submitted"


def test_unknown_action_keeps_status():
    assert transition_status("in-progress", "view", has_responses=True, is_complete=False) == "in-progress"


def test_page_transitions():
    assert transition_page("welcome", "start_company") == "company-form"
    assert transition_page("welcome", "start_employee") == "employee-form"
    assert transition_page("welcome", "submit") == "welcome"
    assert transition_page("company-form", "save") == "company-form"
    assert transition_page("employee-form", "submit") == "completion"
    assert transition_page("completion", "submit") == "completion"
    assert transition_page("completion", "reset") == "welcome"
