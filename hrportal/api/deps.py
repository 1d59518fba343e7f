"""
FastAPI dependencies for the session context, authorization, and database sessions.
"""

from typing import Annotated, AsyncGenerator, Iterable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.database import async_session_maker, get_db
from hrportal.kernel.identity.account_service import AccountService
from hrportal.kernel.identity.principal import Principal
from hrportal.kernel.identity.provider import IdentityProvider, SqlIdentityProvider
from hrportal.kernel.identity.session_resolver import SessionResolver
from hrportal.kernel.models.account import Role
from hrportal.kernel.session.context import SessionContext
from hrportal.logging_config import principal_uid_var


# Security scheme
security = HTTPBearer(auto_error=False)


DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_identity_provider() -> IdentityProvider:
    """A fresh provider per request; its signed-in state is request-scoped."""
    return SqlIdentityProvider(async_session_maker)


Provider = Annotated[IdentityProvider, Depends(get_identity_provider)]


async def get_session_context(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
    provider: Provider,
) -> AsyncGenerator[SessionContext, None]:
    """
    Session context for the caller, settled from the bearer id token.

    A missing, invalid or expired token leaves the context Anonymous.
    """
    context = SessionContext(
        provider,
        SessionResolver(db, provider),
        AccountService(db, provider),
    )
    await context.start(credentials.credentials if credentials else None)

    principal = context.current_principal()
    if principal is not None:
        principal_uid_var.set(str(principal.uid))

    try:
        yield context
    finally:
        context.close()


Session = Annotated[SessionContext, Depends(get_session_context)]


async def get_current_principal(context: Session) -> Principal:
    """Get the signed-in principal or raise 401."""
    principal = context.current_principal()
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def get_client_ip(request: Request) -> Optional[str]:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> Optional[str]:
    """Extract user agent from request."""
    return request.headers.get("User-Agent")


class RoleChecker:
    """
    Dependency class for role-gated endpoints.
    
    Usage:
        @router.get("/managers")
        async def list_managers(
            principal: Annotated[Principal, Depends(RoleChecker({Role.ADMIN}))],
        ):
            ...
    """
    
    def __init__(self, allowed_roles: Iterable[Role]):
        self.allowed_roles = frozenset(allowed_roles)
    
    async def __call__(self, principal: CurrentPrincipal) -> Principal:
        if principal.role not in self.allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You don't have permission to perform this action",
            )
        return principal
