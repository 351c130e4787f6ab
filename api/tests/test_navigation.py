import pytest

from dmgt_assessment.client.navigation import (
    CompanyInfo,
    EmployeeInfo,
    NavigationState,
    completion_path,
    form_path,
    resolve_route,
    set_assessment_type,
    set_company_info,
    set_employee_info,
    validate_welcome_form,
)


def test_employee_route_without_employee_info_redirects_home():
    nav = set_company_info(set_assessment_type(NavigationState(), "Employee"), CompanyInfo(id="acme"))
    route = resolve_route("/employee/acme/e1", nav)
    assert route.is_redirect
    assert route.redirect_to == "/"


def test_employee_route_after_employee_info():
    nav = set_assessment_type(NavigationState(), "Employee")
    nav = set_employee_info(set_company_info(nav, CompanyInfo(id="acme")), EmployeeInfo(id="e1"))
    route = resolve_route("/employee/acme/e1", nav)
    assert not route.is_redirect
    assert route.page == "employee-form"
    assert route.params == {"companyId": "acme", "employeeId": "e1"}


def test_company_route_requires_type():
    assert resolve_route("/company/acme", NavigationState()).redirect_to == "/"
    nav = set_assessment_type(NavigationState(), "Company")
    assert resolve_route("/company/acme", nav).page == "company-form"


def test_completion_route_requires_submission():
    nav = set_company_info(set_assessment_type(NavigationState(), "Company"), CompanyInfo(id="acme"))
    assert resolve_route("/complete/Company/acme", nav).is_redirect
    done = NavigationState(current_page="completion", assessment_type="Company", company_info=CompanyInfo(id="acme"))
    route = resolve_route("/complete/Company/acme", done)
    assert route.page == "completion"
    assert route.params == {"assessmentType": "Company", "companyId": "acme"}


def test_root_and_unknown_paths():
    assert resolve_route("/", NavigationState()).page == "welcome"
    assert not resolve_route("/", NavigationState()).is_redirect
    assert resolve_route("/admin", NavigationState()).redirect_to == "/"


def test_switching_to_company_drops_employee_info():
    nav = set_employee_info(set_assessment_type(NavigationState(), "Employee"), EmployeeInfo(id="e1"))
    assert set_assessment_type(nav, "Company").employee_info is None
    with pytest.raises(ValueError):
        set_assessment_type(nav, "Contractor")


def test_paths():
    nav = set_assessment_type(NavigationState(), "Employee")
    nav = set_employee_info(set_company_info(nav, CompanyInfo(id="acme")), EmployeeInfo(id="e1"))
    assert form_path(nav) == "/employee/acme/e1"
    assert completion_path(nav) == "/complete/Employee/acme/e1"
    assert form_path(NavigationState()) == "/"


def test_welcome_form_checks():
    assert validate_welcome_form({"assessmentType": "Company", "companyId": "acme"}) == {}
    errors = validate_welcome_form({"assessmentType": "Employee", "companyId": "a", "employeeId": "bad id"})
    assert errors["companyId"] == "Company ID must be at least 2 characters"
    assert "letters, numbers" in errors["employeeId"]
    assert set(validate_welcome_form({})) == {"assessmentType", "companyId"}
