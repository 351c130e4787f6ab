from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any

from ..config import ASSESSMENT_TYPES, MIN_COMPANY_ID_LENGTH, MIN_EMPLOYEE_ID_LENGTH

PAGES = ("welcome", "company-form", "employee-form", "completion", "error")
FORM_PAGES = {"company-form", "employee-form"}

_ID_RE = re.compile(r"[a-zA-Z0-9_-]+")


@dataclass(frozen=True)
class CompanyInfo:
    id: str
    name: str | None = None


@dataclass(frozen=True)
class EmployeeInfo:
    id: str
    name: str | None = None


@dataclass(frozen=True)
class NavigationState:
    current_page: str = "welcome"
    assessment_type: str | None = None
    company_info: CompanyInfo | None = None
    employee_info: EmployeeInfo | None = None


@dataclass(frozen=True)
class Route:
    page: str
    params: dict[str, str] = field(default_factory=dict)
    redirect_to: str | None = None

    @property
    def is_redirect(self) -> bool:
        return self.redirect_to is not None


def transition_page(current: str, action: str) -> str:
    if action == "reset":
        return "welcome"

    if current == "welcome":
        if action == "start_company":
            return "company-form"
        if action == "start_employee":
            return "employee-form"
        return current

    if current in FORM_PAGES:
        if action == "submit":
            return "completion"
        # save and every other action keep the user on the form
        return current

    return current


def set_assessment_type(nav: NavigationState, assessment_type: str) -> NavigationState:
    if assessment_type not in ASSESSMENT_TYPES:
        raise ValueError(f"assessment type must be one of {ASSESSMENT_TYPES}")
    employee_info = nav.employee_info if assessment_type == "Employee" else None
    return replace(nav, assessment_type=assessment_type, employee_info=employee_info)


def set_company_info(nav: NavigationState, info: CompanyInfo) -> NavigationState:
    return replace(nav, company_info=info)


def set_employee_info(nav: NavigationState, info: EmployeeInfo) -> NavigationState:
    return replace(nav, employee_info=info)


def _check_id(value: str, label: str, min_length: int) -> str | None:
    v = (value or "").strip()
    if not v:
        return f"{label} is required"
    if len(v) < min_length:
        return f"{label} must be at least {min_length} characters"
    if not _ID_RE.fullmatch(v):
        return f"{label} can only contain letters, numbers, hyphens, and underscores"
    return None


def validate_welcome_form(data: dict[str, Any]) -> dict[str, str]:
    """Field errors for the welcome form; empty when the form may be submitted."""
    errors: dict[str, str] = {}
    assessment_type = data.get("assessmentType")
    if assessment_type not in ASSESSMENT_TYPES:
        errors["assessmentType"] = "Please select an assessment type"

    company_error = _check_id(str(data.get("companyId") or ""), "Company ID", MIN_COMPANY_ID_LENGTH)
    if company_error:
        errors["companyId"] = company_error

    if assessment_type == "Employee":
        employee_error = _check_id(str(data.get("employeeId") or ""), "Employee ID", MIN_EMPLOYEE_ID_LENGTH)
        if employee_error:
            errors["employeeId"] = employee_error
    return errors


def form_path(nav: NavigationState) -> str:
    if not nav.company_info:
        return "/"
    if nav.assessment_type == "Employee" and nav.employee_info:
        return f"/employee/{nav.company_info.id}/{nav.employee_info.id}"
    if nav.assessment_type == "Company":
        return f"/company/{nav.company_info.id}"
    return "/"


def completion_path(nav: NavigationState) -> str:
    if not nav.company_info or not nav.assessment_type:
        return "/"
    path = f"/complete/{nav.assessment_type}/{nav.company_info.id}"
    if nav.assessment_type == "Employee" and nav.employee_info:
        path += f"/{nav.employee_info.id}"
    return path


def resolve_route(path: str, nav: NavigationState) -> Route:
    """Match ``path`` against the page routes and apply the entry guards."""
    home = Route(page="welcome", redirect_to="/")
    parts = [p for p in (path or "/").split("?")[0].split("/") if p]

    if not parts:
        return Route(page="welcome")

    head = parts[0]
    if head == "company" and len(parts) in (1, 2):
        if nav.assessment_type != "Company":
            return home
        company_id = parts[1] if len(parts) == 2 else (nav.company_info.id if nav.company_info else "")
        if not company_id:
            return home
        return Route(page="company-form", params={"companyId": company_id})

    if head == "employee" and len(parts) == 3:
        if nav.assessment_type != "Employee" or nav.employee_info is None:
            return home
        return Route(page="employee-form", params={"companyId": parts[1], "employeeId": parts[2]})

    if head == "complete" and len(parts) in (3, 4):
        if nav.current_page != "completion":
            return home
        params = {"assessmentType": parts[1], "companyId": parts[2]}
        if len(parts) == 4:
            params["employeeId"] = parts[3]
        return Route(page="completion", params=params)

    return home
