import json
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

EVENT_NAMES = {"assessment_started", "assessment_saved", "assessment_submitted", "file_uploaded"}


def log_assessment_event(
    db,
    *,
    event_name: str,
    assessment_type: str | None,
    company_id: str,
    employee_id: str | None = None,
    question_id: str | None = None,
    properties: dict[str, Any] | None = None,
) -> None:
    if event_name not in EVENT_NAMES:
        raise ValueError(f"unknown assessment event '{event_name}'")
    properties = properties or {}
    db.execute(
        text(
            """
            INSERT INTO assessment_event (id, event_name, assessment_type, company_id, employee_id, question_id, properties, created_at)
            VALUES (:id, :event_name, :assessment_type, :company_id, :employee_id, :question_id, :properties, :created_at)
            """
        ),
        {
            "id": str(uuid.uuid4()),
            "event_name": event_name,
            "assessment_type": assessment_type,
            "company_id": company_id,
            "employee_id": employee_id or None,
            "question_id": question_id,
            "properties": json.dumps(properties),
            "created_at": datetime.now(timezone.utc).isoformat(),
        },
    )
