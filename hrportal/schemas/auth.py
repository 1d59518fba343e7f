"""
Authentication and activation schemas.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from hrportal.kernel.models.account import AccountStatus, Role

MIN_PASSWORD_LENGTH = 6


class LoginRequest(BaseModel):
    """Login with a User ID or Employee ID."""
    
    login_id: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1)
    
    @field_validator("login_id")
    @classmethod
    def strip_login_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Login ID is required")
        return v


class PrincipalResponse(BaseModel):
    """The signed-in principal."""
    
    model_config = ConfigDict(from_attributes=True)
    
    uid: uuid.UUID
    login_id: str
    role: Role
    email: str
    display_name: str
    status: AccountStatus
    tenant_id: Optional[uuid.UUID] = None
    employee_ref: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    """Id token plus the resolved principal."""
    
    id_token: str
    token_type: str = "bearer"
    expires_in: int
    principal: PrincipalResponse


class _PasswordConfirmation(BaseModel):
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    confirm_password: str
    
    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords must match")
        return self


class RegisterRequest(_PasswordConfirmation):
    """Direct registration of an admin or manager."""
    
    email: EmailStr
    display_name: str = Field(..., min_length=1, max_length=255)
    role: Literal["admin", "manager"] = "manager"
    tenant_id: Optional[uuid.UUID] = None


class RegisterCompanyRequest(BaseModel):
    """Company registration with its admin account."""
    
    company_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str
    admin_name: str = Field(..., min_length=1, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=32)
    industry_type: Optional[str] = Field(None, max_length=120)
    
    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords must match")
        return self


class ActivateRequest(_PasswordConfirmation):
    """Self-service activation with an Employee ID or Manager ID."""
    
    identifier: str = Field(..., min_length=1, max_length=64)
    role: Optional[Literal["manager", "employee"]] = None


class RegistrationResponse(BaseModel):
    """Created account; login_id is what the user signs in with."""
    
    login_id: str
    principal: PrincipalResponse


class CompanyRegistrationResponse(RegistrationResponse):
    company_id: uuid.UUID
    company_name: str


class ProfileUpdate(BaseModel):
    """Profile fields a user may change."""
    
    display_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=32)
