"""Command handlers for the assessment form.

Each handler takes the current form and navigation state and returns a
``CommandResult``: the next states plus the side effects the caller should
perform (save, load, back up, upload, navigate). Handlers do no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ..config import MAX_FILES_PER_QUESTION
from ..schemas import FileReference, Question, SaveResponseRequest, ValidationError
from ..services.validation import validate_responses
from .form_state import FormState, reduce
from .navigation import (
    CompanyInfo,
    EmployeeInfo,
    NavigationState,
    completion_path,
    form_path,
    set_assessment_type,
    set_company_info,
    set_employee_info,
    transition_page,
    validate_welcome_form,
)

SAVE_FAILED_BANNER = "Failed to save your progress. Your answers are kept locally; please try again."
SUBMIT_BLOCKED_BANNER = "Please complete all required fields before submitting."
SAVED_BANNER = "Progress saved"
LOAD_FAILED_BANNER = "Failed to load assessment questions"


@dataclass(frozen=True)
class LoadEffect:
    assessment_type: str
    company_id: str
    employee_id: str | None = None


@dataclass(frozen=True)
class SaveEffect:
    request: SaveResponseRequest
    manual: bool = False
    submit: bool = False


@dataclass(frozen=True)
class BackupEffect:
    assessment_type: str
    company_id: str
    employee_id: str | None
    responses: dict[str, Any]


@dataclass(frozen=True)
class UploadEffect:
    question_id: str
    source: str | Path | bytes
    file_name: str | None = None
    content_type: str | None = None
    file_types: tuple[str, ...] | None = None
    max_size: int | None = None


@dataclass(frozen=True)
class NavigateEffect:
    path: str


@dataclass(frozen=True)
class ScheduleAutosaveEffect:
    pass


Effect = LoadEffect | SaveEffect | BackupEffect | UploadEffect | NavigateEffect | ScheduleAutosaveEffect


@dataclass(frozen=True)
class CommandResult:
    state: FormState
    navigation: NavigationState
    effects: list = field(default_factory=list)
    form_errors: dict[str, str] = field(default_factory=dict)


def _owner(nav: NavigationState) -> tuple[str, str, str | None] | None:
    if not nav.assessment_type or not nav.company_info:
        return None
    employee_id = nav.employee_info.id if nav.assessment_type == "Employee" and nav.employee_info else None
    return nav.assessment_type, nav.company_info.id, employee_id


def _backup(state: FormState, nav: NavigationState) -> list:
    owner = _owner(nav)
    if owner is None:
        return []
    return [BackupEffect(owner[0], owner[1], owner[2], dict(state.responses))]


def start_assessment(state: FormState, nav: NavigationState, form_data: dict[str, Any]) -> CommandResult:
    errors = validate_welcome_form(form_data)
    if errors:
        return CommandResult(state, nav, [], form_errors=errors)

    assessment_type = form_data["assessmentType"]
    company_id = str(form_data["companyId"]).strip()
    nav = set_assessment_type(nav, assessment_type)
    nav = set_company_info(nav, CompanyInfo(id=company_id, name=form_data.get("companyName")))
    employee_id = None
    if assessment_type == "Employee":
        employee_id = str(form_data["employeeId"]).strip()
        nav = set_employee_info(nav, EmployeeInfo(id=employee_id, name=form_data.get("employeeName")))

    action = "start_employee" if assessment_type == "Employee" else "start_company"
    nav = replace(nav, current_page=transition_page(nav.current_page, action))
    state = reduce(FormState(), "SET_LOADING", True)
    return CommandResult(
        state,
        nav,
        [LoadEffect(assessment_type, company_id, employee_id), NavigateEffect(form_path(nav))],
    )


def load_completed(
    state: FormState,
    nav: NavigationState,
    questions: list[Question],
    remote: dict[str, Any] | None,
    backup: dict[str, Any] | None,
) -> CommandResult:
    """Reconcile server and local copies: the server wins, the backup fills gaps."""
    state = reduce(state, "SET_QUESTIONS", questions)
    effects: list = []
    remote_responses = (remote or {}).get("responses")
    if isinstance(remote_responses, dict) and remote_responses:
        state = reduce(state, "SET_RESPONSES", remote_responses)
        state = reduce(state, "SET_LAST_SAVED", remote.get("lastUpdated"))
        if remote.get("status") == "submitted":
            state = reduce(state, "SET_STATUS", "submitted")
    elif backup:
        state = reduce(state, "SET_RESPONSES", backup)
        # Recovered answers never reached the server.
        state = reduce(state, "SET_UNSAVED_CHANGES", True)
        effects.append(ScheduleAutosaveEffect())
    state = reduce(state, "SET_LOADING", False)
    return CommandResult(state, nav, effects)


def load_failed(state: FormState, nav: NavigationState, error: Exception) -> CommandResult:
    state = reduce(state, "SET_LOADING", False)
    return CommandResult(reduce(state, "SET_BANNER", f"{LOAD_FAILED_BANNER}: {error}"), nav, [])


def update_response(state: FormState, nav: NavigationState, question_id: str, value: Any) -> CommandResult:
    if state.status == "submitted":
        return CommandResult(state, nav, [])
    state = reduce(state, "UPDATE_RESPONSE", (question_id, value))
    return CommandResult(state, nav, [ScheduleAutosaveEffect()])


def save(state: FormState, nav: NavigationState, *, manual: bool = False) -> CommandResult:
    owner = _owner(nav)
    if owner is None or state.is_saving or state.status == "submitted":
        return CommandResult(state, nav, [])
    request = SaveResponseRequest(
        assessment_type=owner[0],
        company_id=owner[1],
        employee_id=owner[2],
        responses=dict(state.responses),
    )
    state = reduce(state, "SET_SAVING", True)
    nav = replace(nav, current_page=transition_page(nav.current_page, "save"))
    return CommandResult(state, nav, [SaveEffect(request, manual=manual)])


def autosave_tick(state: FormState, nav: NavigationState, *, due: bool) -> CommandResult:
    if not due or not state.has_unsaved_changes:
        return CommandResult(state, nav, [])
    return save(state, nav, manual=False)


def submit(state: FormState, nav: NavigationState) -> CommandResult:
    owner = _owner(nav)
    if owner is None or state.is_saving or state.status == "submitted":
        return CommandResult(state, nav, [])
    errors = validate_responses(state.questions, state.responses)
    if errors:
        state = reduce(state, "SET_ERRORS", errors)
        state = reduce(state, "SET_BANNER", SUBMIT_BLOCKED_BANNER)
        return CommandResult(state, nav, [])
    request = SaveResponseRequest(
        assessment_type=owner[0],
        company_id=owner[1],
        employee_id=owner[2],
        responses=dict(state.responses),
        submit=True,
    )
    state = reduce(state, "SET_ERRORS", [])
    state = reduce(state, "SET_SAVING", True)
    return CommandResult(state, nav, [SaveEffect(request, manual=True, submit=True)])


def save_succeeded(state: FormState, nav: NavigationState, effect: SaveEffect, ack: dict[str, Any]) -> CommandResult:
    edited_meanwhile = state.responses != effect.request.responses
    state = reduce(state, "SET_SAVING", False)
    state = reduce(state, "SET_LAST_SAVED", ack.get("lastUpdated"))
    if edited_meanwhile:
        state = reduce(state, "SET_UNSAVED_CHANGES", True)
    effects: list = _backup(state, nav)

    if effect.submit:
        state = reduce(state, "SET_STATUS", "submitted")
        state = reduce(state, "CLEAR_BANNER")
        nav = replace(nav, current_page=transition_page(nav.current_page, "submit"))
        effects.append(NavigateEffect(completion_path(nav)))
    elif effect.manual:
        state = reduce(state, "SET_BANNER", SAVED_BANNER)
    return CommandResult(state, nav, effects)


def save_failed(state: FormState, nav: NavigationState, effect: SaveEffect, error: Exception) -> CommandResult:
    state = reduce(state, "SET_SAVING", False)
    state = reduce(state, "SET_UNSAVED_CHANGES", True)
    detail = getattr(error, "detail", None)
    server_errors = detail.get("errors") if isinstance(detail, dict) else None
    if effect.submit and isinstance(server_errors, list) and server_errors:
        state = reduce(state, "SET_ERRORS", [ValidationError.model_validate(e) for e in server_errors])
        state = reduce(state, "SET_BANNER", SUBMIT_BLOCKED_BANNER)
    elif effect.manual:
        state = reduce(state, "SET_BANNER", SAVE_FAILED_BANNER)
    return CommandResult(state, nav, _backup(state, nav))


def upload_started(
    state: FormState,
    nav: NavigationState,
    question_id: str,
    source: str | Path | bytes,
    *,
    file_name: str | None = None,
    content_type: str | None = None,
    uploads_enabled: bool = True,
) -> CommandResult:
    if not uploads_enabled:
        err = ValidationError(field=question_id, code="UPLOAD_DISABLED", message="File uploads are disabled")
        return CommandResult(reduce(state, "SET_ERRORS", {**state.errors, question_id: err}), nav, [])
    if nav.company_info is None or state.is_uploading(question_id):
        return CommandResult(state, nav, [])

    question = state.question(question_id)
    rules = question.validation if question else None
    existing = state.responses.get(question_id)
    count = len(existing) if isinstance(existing, list) else 0
    limit = rules.max_items if rules and rules.max_items is not None else MAX_FILES_PER_QUESTION
    if count >= limit:
        err = ValidationError(
            field=question_id,
            code="MAX_FILES",
            message=f"Maximum {limit} files allowed. You currently have {count} files.",
        )
        return CommandResult(reduce(state, "SET_ERRORS", {**state.errors, question_id: err}), nav, [])

    effect = UploadEffect(
        question_id,
        source,
        file_name,
        content_type,
        file_types=tuple(rules.file_types) if rules and rules.file_types else None,
        max_size=int(rules.max_file_size * 1024 * 1024) if rules and rules.max_file_size is not None else None,
    )
    state = reduce(state, "ADD_UPLOADING_FILE", question_id)
    return CommandResult(state, nav, [effect])


def upload_finished(state: FormState, nav: NavigationState, question_id: str, ref: FileReference) -> CommandResult:
    state = reduce(state, "REMOVE_UPLOADING_FILE", question_id)
    existing = state.responses.get(question_id)
    files = list(existing) if isinstance(existing, list) else []
    files.append(ref.to_wire())
    return update_response(state, nav, question_id, files)


def upload_failed(state: FormState, nav: NavigationState, question_id: str, error: Exception) -> CommandResult:
    state = reduce(state, "REMOVE_UPLOADING_FILE", question_id)
    err = ValidationError(field=question_id, code="UPLOAD_FAILED", message=str(error))
    return CommandResult(reduce(state, "SET_ERRORS", {**state.errors, question_id: err}), nav, [])


def dismiss_banner(state: FormState, nav: NavigationState) -> CommandResult:
    return CommandResult(reduce(state, "CLEAR_BANNER"), nav, [])


def reset(state: FormState, nav: NavigationState) -> CommandResult:
    return CommandResult(reduce(state, "RESET_FORM"), NavigationState(), [NavigateEffect("/")])
