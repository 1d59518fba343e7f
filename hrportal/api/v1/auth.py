"""
Authentication, registration and activation endpoints.
"""

from fastapi import APIRouter, HTTPException, Request, status

from hrportal.api.deps import (
    CurrentPrincipal,
    Session,
    get_client_ip,
    get_user_agent,
)
from hrportal.config import get_settings
from hrportal.kernel.models.account import Role
from hrportal.schemas.auth import (
    ActivateRequest,
    CompanyRegistrationResponse,
    LoginRequest,
    LoginResponse,
    PrincipalResponse,
    ProfileUpdate,
    RegisterCompanyRequest,
    RegisterRequest,
    RegistrationResponse,
)
from hrportal.schemas.common import SuccessResponse

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    data: LoginRequest,
    context: Session,
):
    """
    Sign in with a User ID or Employee ID.
    
    Returns an id token to send as a bearer token on later requests.
    """
    try:
        principal = await context.login(
            data.login_id,
            data.password,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    
    identity = context.provider.current_identity
    if identity is None or identity.id_token is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Signed in without an id token",
        )
    
    return LoginResponse(
        id_token=identity.id_token,
        expires_in=get_settings().id_token_expire_minutes * 60,
        principal=PrincipalResponse.model_validate(principal),
    )


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    principal: CurrentPrincipal,
    context: Session,
):
    """
    End the session.
    
    Id tokens are stateless; the client discards its token.
    """
    await context.logout(ip_address=get_client_ip(request))
    return SuccessResponse(message="Logged out successfully")


@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    data: RegisterRequest,
    context: Session,
):
    """
    Register an admin or manager account.

    Anyone may register an admin. Managers are registered by a signed-in
    admin and join that admin's company. The new account is not signed in.
    """
    if data.role == Role.MANAGER.value and context.current_principal() is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        principal = await context.register(
            email=data.email,
            password=data.password,
            display_name=data.display_name,
            role=Role(data.role),
            tenant_id=data.tenant_id,
            ip_address=get_client_ip(request),
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    
    return RegistrationResponse(
        login_id=principal.login_id,
        principal=PrincipalResponse.model_validate(principal),
    )


@router.post(
    "/register-company",
    response_model=CompanyRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_company(
    request: Request,
    data: RegisterCompanyRequest,
    context: Session,
):
    """Register a company and its admin account."""
    principal, company = await context.accounts.register_company(
        company_name=data.company_name,
        email=data.email,
        password=data.password,
        admin_name=data.admin_name,
        phone_number=data.phone_number,
        industry_type=data.industry_type,
        ip_address=get_client_ip(request),
    )
    
    return CompanyRegistrationResponse(
        login_id=principal.login_id,
        principal=PrincipalResponse.model_validate(principal),
        company_id=company.id,
        company_name=company.company_name,
    )


@router.post("/activate", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def activate(
    request: Request,
    data: ActivateRequest,
    context: Session,
):
    """
    Activate a pre-provisioned employee or manager account.
    
    The Employee ID or Manager ID becomes the User ID to sign in with.
    """
    try:
        principal = await context.activate(
            data.identifier,
            data.password,
            role=Role(data.role) if data.role else None,
            ip_address=get_client_ip(request),
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    
    return RegistrationResponse(
        login_id=principal.login_id,
        principal=PrincipalResponse.model_validate(principal),
    )


@router.get("/me", response_model=PrincipalResponse)
async def get_current_principal_profile(principal: CurrentPrincipal):
    """Get the signed-in principal."""
    return PrincipalResponse.model_validate(principal)


@router.patch("/me", response_model=PrincipalResponse)
async def update_profile(
    request: Request,
    data: ProfileUpdate,
    principal: CurrentPrincipal,
    context: Session,
):
    """Update the signed-in account's profile."""
    updated = await context.accounts.update_profile(
        principal.uid,
        display_name=data.display_name,
        phone_number=data.phone_number,
        ip_address=get_client_ip(request),
    )
    return PrincipalResponse.model_validate(updated)
