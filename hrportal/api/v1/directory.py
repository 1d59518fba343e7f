"""
Source record provisioning and account status endpoints.

Employee and manager records created here are what users later activate
their accounts from.
"""

import uuid
from typing import Annotated, List

from fastapi import APIRouter, Depends, Request, status

from hrportal.api.deps import RoleChecker, Session, get_client_ip
from hrportal.kernel.identity.principal import Principal
from hrportal.kernel.permissions.roles import (
    CAN_CHANGE_STATUS,
    CAN_CREATE_EMPLOYEE_ACCOUNTS,
    CAN_PROVISION_EMPLOYEES,
    CAN_PROVISION_MANAGERS,
)
from hrportal.schemas.auth import PrincipalResponse, RegistrationResponse
from hrportal.schemas.directory import (
    EmployeeAccountCreate,
    EmployeeCreate,
    EmployeeResponse,
    ManagerCreate,
    ManagerResponse,
    StatusUpdate,
)

router = APIRouter()

EmployeeProvisioner = Annotated[Principal, Depends(RoleChecker(CAN_PROVISION_EMPLOYEES))]
ManagerProvisioner = Annotated[Principal, Depends(RoleChecker(CAN_PROVISION_MANAGERS))]
StatusChanger = Annotated[Principal, Depends(RoleChecker(CAN_CHANGE_STATUS))]
EmployeeAccountCreator = Annotated[Principal, Depends(RoleChecker(CAN_CREATE_EMPLOYEE_ACCOUNTS))]


@router.post("/employees", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    data: EmployeeCreate,
    principal: EmployeeProvisioner,
    context: Session,
):
    """Provision an employee record in the caller's company."""
    employee = await context.accounts.provision_employee(
        principal,
        employee_id=data.employee_id,
        full_name=data.full_name,
        email=data.email,
        department=data.department,
        designation=data.designation,
    )
    return EmployeeResponse.model_validate(employee)


@router.get("/employees", response_model=List[EmployeeResponse])
async def list_employees(principal: EmployeeProvisioner, context: Session):
    """Employee records of the caller's company."""
    employees = await context.accounts.list_employees(principal)
    return [EmployeeResponse.model_validate(e) for e in employees]


@router.post(
    "/employees/{employee_id}/account",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_employee_account(
    employee_id: str,
    request: Request,
    data: EmployeeAccountCreate,
    principal: EmployeeAccountCreator,
    context: Session,
):
    """
    Create a login for a provisioned employee.
    
    The employee signs in with the generated User ID or with the Employee ID.
    """
    created = await context.accounts.create_employee_account(
        principal,
        employee_id=employee_id,
        email=data.email,
        password=data.password,
        display_name=data.display_name,
        ip_address=get_client_ip(request),
    )
    return RegistrationResponse(
        login_id=created.login_id,
        principal=PrincipalResponse.model_validate(created),
    )


@router.post("/managers", response_model=ManagerResponse, status_code=status.HTTP_201_CREATED)
async def create_manager(
    data: ManagerCreate,
    principal: ManagerProvisioner,
    context: Session,
):
    """Provision a manager record in the caller's company."""
    manager = await context.accounts.provision_manager(
        principal,
        manager_id=data.manager_id,
        full_name=data.full_name,
        email=data.email,
        department=data.department,
    )
    return ManagerResponse.model_validate(manager)


@router.get("/managers", response_model=List[ManagerResponse])
async def list_managers(principal: ManagerProvisioner, context: Session):
    """Manager records of the caller's company."""
    managers = await context.accounts.list_managers(principal)
    return [ManagerResponse.model_validate(m) for m in managers]


@router.patch("/accounts/{uid}/status", response_model=PrincipalResponse)
async def update_account_status(
    uid: uuid.UUID,
    request: Request,
    data: StatusUpdate,
    principal: StatusChanger,
    context: Session,
):
    """
    Activate, deactivate or suspend an account of the caller's company.
    
    Deactivated and suspended accounts can no longer sign in.
    """
    updated = await context.accounts.set_status(
        principal,
        uid,
        data.status,
        ip_address=get_client_ip(request),
    )
    return PrincipalResponse.model_validate(updated)
