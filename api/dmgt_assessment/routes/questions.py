from typing import Any

from fastapi import APIRouter, HTTPException

from ..question_loader import get_question_set

router = APIRouter()


@router.get("/questions/{assessment_type}")
def get_questions(assessment_type: str) -> dict[str, Any]:
    question_set = get_question_set(assessment_type)
    if question_set is None:
        raise HTTPException(status_code=404, detail=f"Unknown assessment type '{assessment_type}'")
    return question_set.to_wire()
