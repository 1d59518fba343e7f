"""
Registry of portal pages and the roles allowed to open them.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from hrportal.kernel.models.account import Role
from hrportal.kernel.permissions.roles import (
    ADMIN_ONLY,
    ALL_ROLES,
    EMPLOYEE_ONLY,
    STAFF_ROLES,
)


@dataclass(frozen=True)
class Page:
    """A gated page: its key, path, title and allowed roles."""

    key: str
    path: str
    title: str
    allowed_roles: FrozenSet[Role] = ALL_ROLES
    fallback: Optional[str] = None


PAGES: Dict[str, Page] = {
    page.key: page
    for page in (
        Page("dashboard", "/dashboard", "Dashboard", ALL_ROLES),
        Page("employees", "/employees", "Employees", STAFF_ROLES),
        Page("managers", "/managers", "Managers", ADMIN_ONLY),
        Page("attendance", "/attendance", "Attendance", STAFF_ROLES),
        Page("leave-management", "/leave-management", "Leave Management", ALL_ROLES),
        Page("performance", "/performance", "Performance", ALL_ROLES),
        Page("documents", "/documents", "Documents", ALL_ROLES),
        Page("salary-structure", "/salary-structure", "Salary Structures", ADMIN_ONLY),
        Page("payroll", "/payroll", "Payroll", STAFF_ROLES),
        Page("salary-slips", "/salary-slips", "Salary Slips", STAFF_ROLES),
        Page("reports", "/reports", "Reports", STAFF_ROLES),
        Page("history", "/history", "History", STAFF_ROLES),
        Page("settings", "/settings", "Settings", ALL_ROLES),
        Page("profile", "/profile", "Profile", EMPLOYEE_ONLY),
    )
}


def get_page(key: str) -> Optional[Page]:
    return PAGES.get(key)


def pages_for_role(role: Role) -> list[Page]:
    """Pages a role may open, in registry order."""
    return [page for page in PAGES.values() if role in page.allowed_roles]
