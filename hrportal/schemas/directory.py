"""
Source record provisioning and account status schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from hrportal.kernel.models.account import AccountStatus
from hrportal.schemas.auth import _PasswordConfirmation


class EmployeeCreate(BaseModel):
    employee_id: str = Field(..., min_length=1, max_length=64)
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    department: Optional[str] = Field(None, max_length=120)
    designation: Optional[str] = Field(None, max_length=120)


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    id: uuid.UUID
    employee_id: str
    full_name: str
    email: str
    tenant_id: uuid.UUID
    department: Optional[str] = None
    designation: Optional[str] = None
    created_at: datetime


class ManagerCreate(BaseModel):
    manager_id: str = Field(..., min_length=1, max_length=64)
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    department: Optional[str] = Field(None, max_length=120)


class ManagerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    id: uuid.UUID
    manager_id: str
    full_name: str
    email: str
    tenant_id: uuid.UUID
    department: Optional[str] = None
    created_at: datetime


class StatusUpdate(BaseModel):
    status: AccountStatus


class EmployeeAccountCreate(_PasswordConfirmation):
    """Admin-created login for a provisioned employee."""
    
    email: EmailStr
    display_name: str = Field(..., min_length=1, max_length=255)
