from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable

from ..schemas import ProgressInfo, Question, ValidationError
from ..services.progress import calculate_progress, is_answered, is_complete
from ..services.state_machine import transition_status


@dataclass(frozen=True)
class FormState:
    questions: tuple[Question, ...] = ()
    responses: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, ValidationError] = field(default_factory=dict)
    is_loading: bool = False
    is_saving: bool = False
    has_unsaved_changes: bool = False
    last_saved: str | None = None
    uploading_files: frozenset[str] = frozenset()
    banner: str | None = None
    status: str = "draft"

    @property
    def progress(self) -> ProgressInfo:
        return calculate_progress(self.responses, self.questions)

    def question(self, question_id: str) -> Question | None:
        return next((q for q in self.questions if q.id == question_id), None)

    def is_uploading(self, question_id: str) -> bool:
        return question_id in self.uploading_files


def _status_for(state: FormState, responses: dict[str, Any]) -> str:
    return transition_status(
        state.status,
        "save",
        has_responses=any(is_answered(v) for v in responses.values()),
        is_complete=is_complete(responses, state.questions),
    )


def _errors_by_field(errors: Iterable[ValidationError] | dict[str, ValidationError]) -> dict[str, ValidationError]:
    if isinstance(errors, dict):
        return dict(errors)
    return {e.field: e for e in errors}


def reduce(state: FormState, action: str, payload: Any = None) -> FormState:
    if action == "SET_LOADING":
        return replace(state, is_loading=bool(payload))

    if action == "SET_SAVING":
        return replace(state, is_saving=bool(payload))

    if action == "SET_QUESTIONS":
        return replace(state, questions=tuple(payload or ()))

    if action == "UPDATE_RESPONSE":
        question_id, value = payload
        responses = {**state.responses, question_id: value}
        errors = {k: v for k, v in state.errors.items() if k != question_id}
        return replace(
            state,
            responses=responses,
            errors=errors,
            has_unsaved_changes=True,
            status=_status_for(state, responses),
        )

    if action == "SET_RESPONSES":
        responses = dict(payload or {})
        return replace(state, responses=responses, has_unsaved_changes=False, status=_status_for(state, responses))

    if action == "SET_ERRORS":
        return replace(state, errors=_errors_by_field(payload or ()))

    if action == "CLEAR_ERROR":
        return replace(state, errors={k: v for k, v in state.errors.items() if k != payload})

    if action == "SET_LAST_SAVED":
        return replace(state, last_saved=payload, has_unsaved_changes=False)

    if action == "SET_UNSAVED_CHANGES":
        return replace(state, has_unsaved_changes=bool(payload))

    if action == "SET_BANNER":
        return replace(state, banner=payload)

    if action == "CLEAR_BANNER":
        return replace(state, banner=None)

    if action == "ADD_UPLOADING_FILE":
        return replace(state, uploading_files=state.uploading_files | {payload})

    if action == "REMOVE_UPLOADING_FILE":
        return replace(state, uploading_files=state.uploading_files - {payload})

    if action == "SET_STATUS":
        return replace(state, status=payload)

    if action == "RESET_FORM":
        return FormState()

    return state


def update_response(state: FormState, question_id: str, value: Any) -> FormState:
    return reduce(state, "UPDATE_RESPONSE", (question_id, value))
