from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .form_state import FormState
from .navigation import NavigationState


@dataclass(frozen=True)
class CompletionSummary:
    assessment_type: str | None
    company_id: str | None
    employee_id: str | None
    answered: int
    total: int
    percentage: int
    submitted: bool
    submitted_at: str | None
    uploaded_files: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "assessmentType": self.assessment_type,
            "companyId": self.company_id,
            "employeeId": self.employee_id,
            "answered": self.answered,
            "total": self.total,
            "percentage": self.percentage,
            "submitted": self.submitted,
            "submittedAt": self.submitted_at,
            "uploadedFiles": self.uploaded_files,
        }


def _count_files(state: FormState) -> int:
    count = 0
    for question in state.questions:
        if question.type != "file":
            continue
        value = state.responses.get(question.id)
        if isinstance(value, list):
            count += len(value)
        elif value:
            count += 1
    return count


def build_completion_summary(state: FormState, nav: NavigationState) -> CompletionSummary:
    progress = state.progress
    submitted = state.status == "submitted"
    employee_id = nav.employee_info.id if nav.assessment_type == "Employee" and nav.employee_info else None
    return CompletionSummary(
        assessment_type=nav.assessment_type,
        company_id=nav.company_info.id if nav.company_info else None,
        employee_id=employee_id,
        answered=progress.completed,
        total=progress.total,
        percentage=progress.percentage,
        submitted=submitted,
        submitted_at=state.last_saved if submitted else None,
        uploaded_files=_count_files(state),
    )
