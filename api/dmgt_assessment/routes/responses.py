import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from .. import repo
from ..config import ASSESSMENT_TYPES, ENABLE_ANALYTICS
from ..http_helpers import validate_company_id, validate_employee_id
from ..question_loader import get_questions
from ..schemas import SaveResponseRequest
from ..services.progress import calculate_progress, is_answered, is_complete
from ..services.state_machine import transition_status
from ..services.validation import validate_responses

logger = logging.getLogger(__name__)

router = APIRouter()


def _owner(assessment_type: str, company_id: str | None, employee_id: str | None) -> tuple[str, str | None]:
    if assessment_type not in ASSESSMENT_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown assessment type '{assessment_type}'")
    cid = validate_company_id(company_id)
    if assessment_type == "Employee":
        return cid, validate_employee_id(employee_id)
    return cid, None


def _public_record(record: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in record.items() if k != "id"}


@router.post("/responses")
def save_responses(payload: SaveResponseRequest) -> dict[str, Any]:
    company_id, employee_id = _owner(payload.assessment_type, payload.company_id, payload.employee_id)
    existing = repo.get_assessment(payload.assessment_type, company_id, employee_id)
    if existing and existing["status"] == "submitted":
        raise HTTPException(status_code=409, detail="Assessment already submitted")

    questions = get_questions(payload.assessment_type)
    responses = payload.responses
    if payload.submit:
        errors = validate_responses(questions, responses)
        if errors:
            raise HTTPException(
                status_code=400,
                detail={"message": "Assessment has validation errors", "errors": [e.to_wire() for e in errors]},
            )

    status = transition_status(
        existing["status"] if existing else "draft",
        "submit" if payload.submit else "save",
        has_responses=any(is_answered(v) for v in responses.values()),
        is_complete=is_complete(responses, questions),
    )

    events: list[str] = []
    if ENABLE_ANALYTICS:
        if not existing:
            events.append("assessment_started")
        events.append("assessment_submitted" if payload.submit else "assessment_saved")

    record = repo.save_assessment(payload.assessment_type, company_id, employee_id, responses, status, events=events)
    logger.info(
        "[responses] saved %s/%s%s status=%s answered=%d",
        payload.assessment_type,
        company_id,
        f"/{employee_id}" if employee_id else "",
        status,
        len(responses),
    )
    return {
        "message": "Assessment response saved successfully",
        "status": record["status"],
        "lastUpdated": record["lastUpdated"],
        "progress": calculate_progress(responses, questions).to_wire(),
    }


@router.get("/responses/{assessment_type}/{company_id}")
def get_company_responses(assessment_type: str, company_id: str) -> dict[str, Any]:
    if assessment_type == "Employee":
        raise HTTPException(status_code=400, detail="Employee ID is required for employee assessments")
    return _load_record(assessment_type, company_id, None)


@router.get("/responses/{assessment_type}/{company_id}/{employee_id}")
def get_employee_responses(assessment_type: str, company_id: str, employee_id: str) -> dict[str, Any]:
    return _load_record(assessment_type, company_id, employee_id)


def _load_record(assessment_type: str, company_id: str, employee_id: str | None) -> dict[str, Any]:
    cid, eid = _owner(assessment_type, company_id, employee_id)
    record = repo.get_assessment(assessment_type, cid, eid)
    if not record:
        raise HTTPException(status_code=404, detail="No saved responses found")
    return _public_record(record)
