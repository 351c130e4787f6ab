import json
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import text

from dmgt_assessment.database import SessionLocal
from dmgt_assessment.services.events import log_assessment_event


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_record(row: Any) -> dict[str, Any]:
    record = dict(row)
    try:
        responses = json.loads(record.pop("responses_json") or "{}")
    except json.JSONDecodeError:
        responses = {}
    return {
        "id": record["id"],
        "assessmentType": record["assessment_type"],
        "companyId": record["company_id"],
        "employeeId": record["employee_id"] or None,
        "responses": responses if isinstance(responses, dict) else {},
        "status": record["status"],
        "startedAt": record["started_at"],
        "lastUpdated": record["last_updated"],
        "submittedAt": record.get("submitted_at"),
    }


def get_assessment(assessment_type: str, company_id: str, employee_id: str | None = None) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text(
                """
                SELECT id, assessment_type, company_id, employee_id, responses_json, status,
                       started_at, last_updated, submitted_at
                FROM assessment_record
                WHERE assessment_type=:assessment_type AND company_id=:company_id AND employee_id=:employee_id
                """
            ),
            {"assessment_type": assessment_type, "company_id": company_id, "employee_id": employee_id or ""},
        ).mappings().first()
    return _row_to_record(row) if row else None


def save_assessment(
    assessment_type: str,
    company_id: str,
    employee_id: str | None,
    responses: dict[str, Any],
    status: str,
    events: Iterable[str] = (),
) -> dict[str, Any]:
    """Upsert the record for (type, company, employee); last write wins."""
    now = _now_iso()
    params = {
        "assessment_type": assessment_type,
        "company_id": company_id,
        "employee_id": employee_id or "",
        "responses_json": json.dumps(responses),
        "status": status,
        "now": now,
        "submitted_at": now if status == "submitted" else None,
    }
    with SessionLocal() as db:
        # Concurrent first saves for one owner collapse onto the unique key.
        db.execute(
            text(
                """
                INSERT INTO assessment_record
                  (id, assessment_type, company_id, employee_id, responses_json, status, started_at, last_updated, submitted_at)
                VALUES
                  (:id, :assessment_type, :company_id, :employee_id, :responses_json, :status, :now, :now, :submitted_at)
                ON CONFLICT (assessment_type, company_id, employee_id)
                DO UPDATE SET
                  responses_json = EXCLUDED.responses_json,
                  status = EXCLUDED.status,
                  last_updated = EXCLUDED.last_updated,
                  submitted_at = COALESCE(EXCLUDED.submitted_at, assessment_record.submitted_at)
                """
            ),
            {**params, "id": str(uuid.uuid4())},
        )
        for event_name in events:
            log_assessment_event(
                db,
                event_name=event_name,
                assessment_type=assessment_type,
                company_id=company_id,
                employee_id=employee_id,
                properties={"status": status, "answered": len(responses)},
            )
        db.commit()
    saved = get_assessment(assessment_type, company_id, employee_id)
    if saved is None:
        raise RuntimeError(f"assessment {assessment_type}/{company_id} vanished after save")
    return saved


def record_uploaded_file(
    *,
    file_key: str,
    company_id: str,
    question_id: str,
    file_name: str,
    content_type: str,
    file_size: int,
    assessment_type: str | None = None,
    log_event: bool = False,
) -> dict[str, Any]:
    now = _now_iso()
    with SessionLocal() as db:
        db.execute(
            text(
                """
                INSERT INTO uploaded_file (file_key, company_id, question_id, file_name, content_type, file_size, uploaded_at)
                VALUES (:file_key, :company_id, :question_id, :file_name, :content_type, :file_size, :uploaded_at)
                """
            ),
            {
                "file_key": file_key,
                "company_id": company_id,
                "question_id": question_id,
                "file_name": file_name,
                "content_type": content_type,
                "file_size": file_size,
                "uploaded_at": now,
            },
        )
        if log_event:
            log_assessment_event(
                db,
                event_name="file_uploaded",
                assessment_type=assessment_type,
                company_id=company_id,
                question_id=question_id,
                properties={"file_key": file_key, "file_size": file_size, "content_type": content_type},
            )
        db.commit()
    return {
        "fileKey": file_key,
        "companyId": company_id,
        "questionId": question_id,
        "fileName": file_name,
        "contentType": content_type,
        "fileSize": file_size,
        "uploadedAt": now,
    }


def list_uploaded_files(company_id: str, question_id: str | None = None) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(
                """
                SELECT file_key, company_id, question_id, file_name, content_type, file_size, uploaded_at
                FROM uploaded_file
                WHERE company_id=:company_id AND (:question_id IS NULL OR question_id=:question_id)
                ORDER BY uploaded_at
                """
            ),
            {"company_id": company_id, "question_id": question_id},
        ).mappings().all()
    return [
        {
            "fileKey": r["file_key"],
            "companyId": r["company_id"],
            "questionId": r["question_id"],
            "fileName": r["file_name"],
            "contentType": r["content_type"],
            "fileSize": r["file_size"],
            "uploadedAt": r["uploaded_at"],
        }
        for r in rows
    ]
