from __future__ import annotations

import math
from typing import Any, Sequence

from ..schemas import ProgressInfo, Question
from .rules import visible_questions


def is_answered(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True


def calculate_progress(responses: dict[str, Any], questions: Sequence[Question]) -> ProgressInfo:
    """Derive completion from the response map.

    Every visible question counts toward the total, required or not. Keys in
    ``responses`` that do not belong to a visible question are ignored, so the
    percentage stays within 0..100.
    """
    shown = visible_questions(questions, responses)
    total = len(shown)
    completed = sum(1 for q in shown if is_answered(responses.get(q.id)))
    # Half-up rounding; round() would send 12.5 to 12.
    percentage = math.floor(completed / total * 100 + 0.5) if total else 0

    sections = {q.section for q in shown if q.section}
    total_sections = max(len(sections), 1)
    current_section = 0
    if total:
        current_section = min(math.floor(completed / total * total_sections), total_sections - 1)

    return ProgressInfo(
        completed=completed,
        total=total,
        percentage=percentage,
        current_section=current_section,
        total_sections=total_sections,
    )


def is_complete(responses: dict[str, Any], questions: Sequence[Question]) -> bool:
    """All visible required questions carry an answer."""
    return all(is_answered(responses.get(q.id)) for q in visible_questions(questions, responses) if q.required)
