import json
import logging
from functools import lru_cache
from typing import Any

from .config import ASSESSMENT_TYPES, QUESTIONS_PATH
from .schemas import Question, QuestionSet
from .services.validation import validate_question_definitions

logger = logging.getLogger(__name__)


class QuestionRegistryError(ValueError):
    def __init__(self, errors: list[dict[str, Any]]):
        self.errors = errors
        super().__init__(f"question registry has {len(errors)} error(s): {errors[0]['message'] if errors else ''}")


@lru_cache(maxsize=1)
def get_file_question_registry() -> dict[str, Any]:
    with QUESTIONS_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)


def check_question_registry(registry: dict[str, Any]) -> list[dict[str, Any]]:
    errors: list[dict[str, Any]] = []
    for assessment_type in ASSESSMENT_TYPES:
        block = registry.get(assessment_type)
        if not isinstance(block, dict):
            errors.append({"code": "missing_question_set", "path": assessment_type, "message": f"no question set for '{assessment_type}'"})
            continue
        for err in validate_question_definitions(block.get("questions")):
            errors.append({**err, "path": f"{assessment_type}.{err['path']}"})
    return errors


@lru_cache(maxsize=1)
def load_question_registry() -> dict[str, QuestionSet]:
    registry = get_file_question_registry()
    errors = check_question_registry(registry)
    if errors:
        raise QuestionRegistryError(errors)
    sets = {t: QuestionSet.model_validate(registry[t]) for t in ASSESSMENT_TYPES}
    logger.info(
        "[questions] loaded registry from %s: %s",
        QUESTIONS_PATH,
        ", ".join(f"{t}={len(s.questions)}" for t, s in sets.items()),
    )
    return sets


def get_question_set(assessment_type: str) -> QuestionSet | None:
    if assessment_type not in ASSESSMENT_TYPES:
        return None
    return load_question_registry()[assessment_type]


def get_questions(assessment_type: str) -> list[Question]:
    question_set = get_question_set(assessment_type)
    return list(question_set.questions) if question_set else []
