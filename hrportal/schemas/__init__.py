"""
Pydantic schemas for API request/response validation.
"""

from hrportal.schemas.auth import (
    LoginRequest,
    LoginResponse,
    PrincipalResponse,
    RegisterRequest,
    RegisterCompanyRequest,
    ActivateRequest,
    RegistrationResponse,
    CompanyRegistrationResponse,
    ProfileUpdate,
)
from hrportal.schemas.directory import (
    EmployeeAccountCreate,
    EmployeeCreate,
    EmployeeResponse,
    ManagerCreate,
    ManagerResponse,
    StatusUpdate,
)
from hrportal.schemas.pages import PageResponse, GateResponse, EventResponse
from hrportal.schemas.common import ErrorResponse, SuccessResponse, HealthResponse

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "PrincipalResponse",
    "RegisterRequest",
    "RegisterCompanyRequest",
    "ActivateRequest",
    "RegistrationResponse",
    "CompanyRegistrationResponse",
    "ProfileUpdate",
    # Directory
    "EmployeeAccountCreate",
    "EmployeeCreate",
    "EmployeeResponse",
    "ManagerCreate",
    "ManagerResponse",
    "StatusUpdate",
    # Pages
    "PageResponse",
    "GateResponse",
    "EventResponse",
    # Common
    "ErrorResponse",
    "SuccessResponse",
    "HealthResponse",
]
