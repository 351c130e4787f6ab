from __future__ import annotations

import re
from typing import Any, Sequence

from ..schemas import CHOICE_TYPES, NUMERIC_TYPES, Question, ValidationError
from .progress import is_answered
from .rules import visible_questions

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
VALID_TYPES = {
    "text",
    "textarea",
    "select",
    "multiselect",
    "radio",
    "checkbox",
    "file",
    "rating",
    "scale",
    "number",
    "email",
    "boolean",
}


def _error(question: Question, code: str, message: str) -> ValidationError:
    return ValidationError(field=question.id, code=code, message=message)


def _as_number(question: Question, value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and question.type in NUMERIC_TYPES:
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _file_attr(ref: Any, key: str, attr: str) -> Any:
    if isinstance(ref, dict):
        return ref.get(key)
    return getattr(ref, attr, None)


def validate_question(question: Question, value: Any) -> ValidationError | None:
    """Return the first rule violation for ``value`` or ``None`` when valid."""
    if not is_answered(value):
        if question.required:
            return _error(question, "REQUIRED", "This field is required")
        return None

    rules = question.validation

    if isinstance(value, str) and rules:
        if rules.min_length is not None and len(value) < rules.min_length:
            return _error(question, "MIN_LENGTH", f"Minimum length is {rules.min_length} characters")
        if rules.max_length is not None and len(value) > rules.max_length:
            return _error(question, "MAX_LENGTH", f"Maximum length is {rules.max_length} characters")
        if rules.pattern and not re.search(rules.pattern, value):
            return _error(question, "PATTERN", rules.pattern_message or "Invalid format")

    number = _as_number(question, value)
    if number is not None and rules:
        if rules.min is not None and number < rules.min:
            return _error(question, "MIN_VALUE", f"Minimum value is {rules.min:g}")
        if rules.max is not None and number > rules.max:
            return _error(question, "MAX_VALUE", f"Maximum value is {rules.max:g}")

    if isinstance(value, list) and rules:
        if rules.min_items is not None and len(value) < rules.min_items:
            return _error(question, "MIN_ITEMS", f"Please select at least {rules.min_items} options")
        if rules.max_items is not None and len(value) > rules.max_items:
            return _error(question, "MAX_ITEMS", f"Please select no more than {rules.max_items} options")

    if question.type == "email" and isinstance(value, str) and not EMAIL_RE.match(value):
        return _error(question, "INVALID_EMAIL", "Please enter a valid email address")

    if question.type == "file" and isinstance(value, list) and rules:
        for ref in value:
            content_type = _file_attr(ref, "contentType", "content_type")
            if rules.file_types and content_type and content_type not in rules.file_types:
                return _error(question, "FILE_TYPE", "File type not supported")
            size = _file_attr(ref, "fileSize", "file_size")
            if rules.max_file_size is not None and size is not None and size > rules.max_file_size * 1024 * 1024:
                return _error(question, "FILE_SIZE", f"File size must be less than {rules.max_file_size:g}MB")

    return None


def validate_responses(questions: Sequence[Question], responses: dict[str, Any]) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for question in visible_questions(questions, responses):
        err = validate_question(question, responses.get(question.id))
        if err is not None:
            errors.append(err)
    return errors


def validate_question_definitions(questions: list[Any]) -> list[dict[str, Any]]:
    """Structural checks over a raw question list before it is served."""
    if not isinstance(questions, list):
        return [{"code": "invalid_schema", "path": "questions", "message": "questions must be an array"}]

    errors: list[dict[str, Any]] = []
    seen_ids: set[str] = set()
    dependencies: list[tuple[str, str]] = []

    for idx, q in enumerate(questions):
        path = f"questions[{idx}]"
        if not isinstance(q, dict):
            errors.append({"code": "invalid_question", "path": path, "message": "question must be an object"})
            continue

        qid = q.get("id")
        if not isinstance(qid, str) or not qid.strip():
            errors.append({"code": "missing_question_id", "path": f"{path}.id", "message": "question id is required"})
            continue
        if qid in seen_ids:
            errors.append({"code": "duplicate_question_id", "path": f"{path}.id", "message": f"duplicate question id '{qid}'"})
        else:
            seen_ids.add(qid)

        if not str(q.get("title") or "").strip():
            errors.append({"code": "missing_title", "path": f"{path}.title", "message": "question title is required"})

        qtype = q.get("type")
        if qtype not in VALID_TYPES:
            errors.append({
                "code": "invalid_question_type",
                "path": f"{path}.type",
                "message": f"type '{qtype}' must be one of {sorted(VALID_TYPES)}",
            })
        elif qtype in CHOICE_TYPES and not q.get("options"):
            errors.append({
                "code": "missing_options",
                "path": f"{path}.options",
                "message": f"{qtype} questions must define options",
            })

        depends_on = q.get("dependsOn")
        if depends_on:
            dependencies.append((path, str(depends_on)))

        rules = q.get("validation") or {}
        if not isinstance(rules, dict):
            errors.append({"code": "invalid_validation", "path": f"{path}.validation", "message": "validation must be an object"})
            continue
        for low, high in (("minLength", "maxLength"), ("min", "max"), ("minItems", "maxItems")):
            lo, hi = rules.get(low), rules.get(high)
            if lo is not None and hi is not None and lo > hi:
                errors.append({
                    "code": "inverted_bounds",
                    "path": f"{path}.validation",
                    "message": f"{low} ({lo}) is greater than {high} ({hi})",
                })
        pattern = rules.get("pattern")
        if pattern:
            try:
                re.compile(pattern)
            except re.error as exc:
                errors.append({"code": "invalid_pattern", "path": f"{path}.validation.pattern", "message": f"pattern does not compile: {exc}"})

    for path, parent in dependencies:
        if parent not in seen_ids:
            errors.append({
                "code": "unknown_depends_on",
                "path": f"{path}.dependsOn",
                "message": f"dependsOn question '{parent}' not found",
            })

    return errors
