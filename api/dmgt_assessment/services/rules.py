from typing import Any, Iterable

from ..schemas import Question


def evaluate_show_if(operator: str, actual: Any, trigger_value: Any) -> bool:
    if operator == "eq":
        return actual == trigger_value
    if operator == "in":
        return isinstance(trigger_value, list) and actual in trigger_value
    return False


def question_is_visible(question: Question, responses: dict[str, Any]) -> bool:
    if not question.depends_on:
        return True
    actual = responses.get(question.depends_on)
    if question.show_if is None:
        # A bare dependency shows once the parent has any answer.
        return actual not in (None, "", [])
    if isinstance(question.show_if, list):
        if isinstance(actual, list):
            return any(v in question.show_if for v in actual)
        return evaluate_show_if("in", actual, question.show_if)
    if isinstance(actual, list):
        return question.show_if in actual
    return evaluate_show_if("eq", actual, question.show_if)


def visible_questions(questions: Iterable[Question], responses: dict[str, Any]) -> list[Question]:
    return [q for q in questions if question_is_visible(q, responses)]
