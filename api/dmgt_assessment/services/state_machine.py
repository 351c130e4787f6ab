ASSESSMENT_STATUSES = ("draft", "in-progress", "completed", "submitted")


def transition_status(current: str, action: str, *, has_responses: bool, is_complete: bool) -> str:
    if current == "submitted":
        return "submitted"

    if action == "submit":
        return "submitted"

    if action == "save":
        if not has_responses:
            return "draft"
        if is_complete:
            return "completed"
        return "in-progress"

    if action == "reset":
        return "draft"

    return current
