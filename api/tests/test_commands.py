from dmgt_assessment.client import commands
from dmgt_assessment.client.commands import (
    BackupEffect,
    LoadEffect,
    NavigateEffect,
    SaveEffect,
    ScheduleAutosaveEffect,
    UploadEffect,
)
from dmgt_assessment.client.errors import NetworkError
from dmgt_assessment.client.form_state import FormState
from dmgt_assessment.client.navigation import NavigationState
from dmgt_assessment.schemas import FileReference, Question

QUESTIONS = [
    Question(id="company_name", title="Company name", type="text", required=True),
    Question(id="notes", title="Notes", type="textarea"),
    Question(id="docs", title="Documents", type="file"),
]
ACK = {"message": "ok", "status": "in-progress", "lastUpdated": "2026-03-01T10:00:00+00:00"}


def _started(assessment_type="Company"):
    form = {"assessmentType": assessment_type, "companyId": "acme", "employeeId": "e1"}
    result = commands.start_assessment(FormState(), NavigationState(), form)
    loaded = commands.load_completed(result.state, result.navigation, QUESTIONS, None, None)
    return loaded.state, loaded.navigation


def test_start_with_invalid_form_only_reports_errors():
    result = commands.start_assessment(FormState(), NavigationState(), {"assessmentType": "Company", "companyId": "!"})
    assert result.effects == []
    assert "companyId" in result.form_errors
    assert result.navigation == NavigationState()


def test_start_employee_assessment():
    form = {"assessmentType": "Employee", "companyId": " acme ", "employeeId": "e1", "employeeName": "Ann"}
    result = commands.start_assessment(FormState(), NavigationState(), form)
    nav = result.navigation
    assert nav.current_page == "employee-form"
    assert nav.company_info.id == "acme"
    assert nav.employee_info.name == "Ann"
    assert result.state.is_loading
    assert result.effects == [LoadEffect("Employee", "acme", "e1"), NavigateEffect("/employee/acme/e1")]


def test_load_prefers_remote_responses():
    result = commands.start_assessment(FormState(), NavigationState(), {"assessmentType": "Company", "companyId": "acme"})
    remote = {"responses": {"company_name": "Remote"}, "status": "in-progress", "lastUpdated": "2026-03-01T09:00:00+00:00"}
    loaded = commands.load_completed(result.state, result.navigation, QUESTIONS, remote, {"company_name": "Local"})
    assert loaded.state.responses == {"company_name": "Remote"}
    assert loaded.state.last_saved == remote["lastUpdated"]
    assert not loaded.state.has_unsaved_changes
    assert not loaded.state.is_loading
    assert loaded.effects == []


def test_load_falls_back_to_backup_and_marks_dirty():
    result = commands.start_assessment(FormState(), NavigationState(), {"assessmentType": "Company", "companyId": "acme"})
    loaded = commands.load_completed(result.state, result.navigation, QUESTIONS, None, {"company_name": "Local"})
    assert loaded.state.responses == {"company_name": "Local"}
    assert loaded.state.has_unsaved_changes
    assert loaded.effects == [ScheduleAutosaveEffect()]


def test_load_of_submitted_record_keeps_status():
    result = commands.start_assessment(FormState(), NavigationState(), {"assessmentType": "Company", "companyId": "acme"})
    remote = {"responses": {"company_name": "Acme"}, "status": "submitted", "lastUpdated": "t"}
    loaded = commands.load_completed(result.state, result.navigation, QUESTIONS, remote, None)
    assert loaded.state.status == "submitted"
    assert commands.update_response(loaded.state, loaded.navigation, "notes", "x").state.responses == {"company_name": "Acme"}


def test_update_response_schedules_autosave():
    state, nav = _started()
    result = commands.update_response(state, nav, "company_name", "Acme")
    assert result.state.responses == {"company_name": "Acme"}
    assert result.effects == [ScheduleAutosaveEffect()]


def test_manual_save_builds_request_and_sets_saving():
    state, nav = _started()
    state = commands.update_response(state, nav, "company_name", "Acme").state
    result = commands.save(state, nav, manual=True)
    (effect,) = result.effects
    assert isinstance(effect, SaveEffect) and effect.manual and not effect.submit
    assert effect.request.company_id == "acme"
    assert effect.request.employee_id is None
    assert effect.request.responses == {"company_name": "Acme"}
    assert result.state.is_saving
    assert commands.save(result.state, nav, manual=True).effects == []


def test_autosave_tick_only_saves_when_due_and_dirty():
    state, nav = _started()
    assert commands.autosave_tick(state, nav, due=True).effects == []
    state = commands.update_response(state, nav, "company_name", "Acme").state
    assert commands.autosave_tick(state, nav, due=False).effects == []
    (effect,) = commands.autosave_tick(state, nav, due=True).effects
    assert not effect.manual


def test_submit_with_errors_has_no_effects():
    state, nav = _started()
    result = commands.submit(state, nav)
    assert result.effects == []
    assert result.state.errors["company_name"].code == "REQUIRED"
    assert result.state.banner == commands.SUBMIT_BLOCKED_BANNER


def test_submit_then_success_navigates_to_completion():
    state, nav = _started()
    state = commands.update_response(state, nav, "company_name", "Acme").state
    result = commands.submit(state, nav)
    (effect,) = result.effects
    assert effect.submit and effect.request.submit

    done = commands.save_succeeded(result.state, result.navigation, effect, {**ACK, "status": "submitted"})
    assert done.state.status == "submitted"
    assert done.navigation.current_page == "completion"
    assert done.effects[-1] == NavigateEffect("/complete/Company/acme")
    assert isinstance(done.effects[0], BackupEffect)


def test_save_success_while_edited_stays_dirty():
    state, nav = _started()
    state = commands.update_response(state, nav, "company_name", "Acme").state
    result = commands.save(state, nav)
    edited = commands.update_response(result.state, result.navigation, "notes", "more").state
    done = commands.save_succeeded(edited, result.navigation, result.effects[0], ACK)
    assert done.state.has_unsaved_changes
    assert done.state.last_saved == ACK["lastUpdated"]
    assert done.state.banner is None


def test_manual_save_failure_sets_banner_and_keeps_responses():
    state, nav = _started()
    state = commands.update_response(state, nav, "company_name", "Acme").state
    result = commands.save(state, nav, manual=True)
    failed = commands.save_failed(result.state, result.navigation, result.effects[0], NetworkError("boom", status_code=500))
    assert failed.state.banner == commands.SAVE_FAILED_BANNER
    assert failed.state.responses == {"company_name": "Acme"}
    assert failed.state.has_unsaved_changes
    assert not failed.state.is_saving
    assert failed.effects == [BackupEffect("Company", "acme", None, {"company_name": "Acme"})]


def test_autosave_failure_has_no_banner():
    state, nav = _started()
    state = commands.update_response(state, nav, "company_name", "Acme").state
    result = commands.save(state, nav, manual=False)
    failed = commands.save_failed(result.state, result.navigation, result.effects[0], NetworkError("boom"))
    assert failed.state.banner is None


def test_server_validation_errors_on_submit_are_shown_per_field():
    state, nav = _started()
    state = commands.update_response(state, nav, "company_name", "Acme").state
    result = commands.submit(state, nav)
    detail = {"message": "Assessment has validation errors", "errors": [{"field": "notes", "code": "REQUIRED", "message": "This field is required"}]}
    failed = commands.save_failed(result.state, result.navigation, result.effects[0], NetworkError("bad", status_code=400, detail=detail))
    assert failed.state.errors["notes"].code == "REQUIRED"
    assert failed.state.status != "submitted"


def test_upload_lifecycle():
    state, nav = _started()
    started = commands.upload_started(state, nav, "docs", b"%PDF", file_name="a.pdf", content_type="application/pdf")
    assert started.state.is_uploading("docs")
    assert started.effects == [UploadEffect("docs", b"%PDF", "a.pdf", "application/pdf")]
    assert commands.upload_started(started.state, nav, "docs", b"again").effects == []

    ref = FileReference(file_name="a.pdf", file_key="acme_docs_1_a.pdf", download_url="http://x/uploads/k", file_size=4)
    finished = commands.upload_finished(started.state, nav, "docs", ref)
    assert not finished.state.is_uploading("docs")
    assert finished.state.responses["docs"][0]["fileKey"] == "acme_docs_1_a.pdf"
    assert finished.effects == [ScheduleAutosaveEffect()]


def test_upload_failure_and_disabled_uploads_are_field_errors():
    state, nav = _started()
    started = commands.upload_started(state, nav, "docs", b"x", file_name="a.exe")
    failed = commands.upload_failed(started.state, nav, "docs", RuntimeError("File type not allowed"))
    assert failed.state.errors["docs"].code == "UPLOAD_FAILED"
    assert not failed.state.is_uploading("docs")

    disabled = commands.upload_started(state, nav, "docs", b"x", uploads_enabled=False)
    assert disabled.effects == []
    assert disabled.state.errors["docs"].code == "UPLOAD_DISABLED"


def test_upload_effect_carries_question_file_rules():
    deck = Question(
        id="deck",
        title="Pitch deck",
        type="file",
        validation={"fileTypes": ["application/pdf"], "maxFileSize": 2},
    )
    state, nav = _started()
    state = commands.load_completed(state, nav, [*QUESTIONS, deck], None, None).state
    effect = commands.upload_started(state, nav, "deck", b"%PDF", file_name="a.pdf").effects[0]
    assert effect.file_types == ("application/pdf",)
    assert effect.max_size == 2 * 1024 * 1024


def test_upload_over_file_limit_has_no_effects():
    state, nav = _started()
    ref = {"fileName": "a.pdf", "fileKey": "k"}
    state = commands.update_response(state, nav, "docs", [ref] * 5).state
    result = commands.upload_started(state, nav, "docs", b"%PDF", file_name="b.pdf")
    assert result.effects == []
    assert not result.state.is_uploading("docs")
    assert result.state.errors["docs"].code == "MAX_FILES"
    assert result.state.errors["docs"].message == "Maximum 5 files allowed. You currently have 5 files."


def test_reset_and_dismiss_banner():
    state, nav = _started()
    state = commands.submit(state, nav).state
    assert commands.dismiss_banner(state, nav).state.banner is None
    result = commands.reset(state, nav)
    assert result.state == FormState()
    assert result.navigation == NavigationState()
    assert result.effects == [NavigateEffect("/")]
