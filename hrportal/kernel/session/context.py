"""
Session context: the per-browsing-context holder of the current principal.
"""

import uuid
from typing import Iterable, Optional

from hrportal.config import Settings, get_settings
from hrportal.kernel.events.event_store import EventStore
from hrportal.kernel.identity.account_service import AccountService
from hrportal.kernel.identity.principal import Principal
from hrportal.kernel.identity.provider import AuthIdentity, IdentityProvider
from hrportal.kernel.identity.session_resolver import SessionResolver
from hrportal.kernel.models.account import Role
from hrportal.kernel.models.event_log import EventType
from hrportal.kernel.permissions.access_gate import GateDecision, evaluate
from hrportal.kernel.permissions.roles import ALL_ROLES
from hrportal.kernel.session.state import (
    ANONYMOUS,
    LOADING,
    Authenticated,
    SessionState,
)
from hrportal.logging_config import get_logger

logger = get_logger(__name__)


class SessionContext:
    """
    Holds the session state for one browsing context.

    Starts in Loading. Every provider notification re-derives the state from
    scratch; when notifications overlap, the last one wins and results of
    older resolutions are dropped.

    Usage:
        context = SessionContext(provider, resolver, accounts)
        await context.start(token)
        decision = context.check_access({Role.ADMIN, Role.MANAGER})
    """

    def __init__(
        self,
        provider: IdentityProvider,
        resolver: SessionResolver,
        accounts: Optional[AccountService] = None,
        settings: Optional[Settings] = None,
    ):
        self.provider = provider
        self.resolver = resolver
        self.accounts = accounts
        self.settings = settings or get_settings()
        self._state: SessionState = LOADING
        self._generation = 0
        self._unsubscribe = provider.on_auth_state_change(self._on_auth_state_change)

    @property
    def state(self) -> SessionState:
        return self._state

    def current_principal(self) -> Optional[Principal]:
        return self._state.principal

    def is_loading(self) -> bool:
        return self._state.is_loading

    async def start(self, token: Optional[str] = None) -> SessionState:
        """Let the provider report its initial state, restoring ``token`` if given."""
        await self.provider.restore(token)
        return self._state

    async def _on_auth_state_change(self, identity: Optional[AuthIdentity]) -> None:
        self._generation += 1
        generation = self._generation

        if identity is None:
            state: SessionState = ANONYMOUS
        else:
            principal = await self.resolver.resolve_from_restored_session(identity)
            state = Authenticated(principal) if principal is not None else ANONYMOUS

        if generation != self._generation:
            logger.debug("Dropping superseded session resolution", extra={"generation": generation})
            return
        self._state = state

    async def login(
        self,
        login_id: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Principal:
        """Sign in; on success the context is Authenticated with the fresh principal."""
        principal = await self.resolver.resolve_by_credentials(
            login_id, password, ip_address=ip_address, user_agent=user_agent
        )
        current = self.provider.current_identity
        if current is not None and current.uid == principal.uid:
            self._state = Authenticated(principal)
        return principal

    async def logout(self, ip_address: Optional[str] = None) -> None:
        """Sign out and clear the session."""
        principal = self.current_principal()
        await self.provider.sign_out()
        self._generation += 1
        self._state = ANONYMOUS

        if principal is not None:
            await EventStore(self.resolver.session).log(
                event_type=EventType.ACCOUNT_LOGGED_OUT,
                entity_type="account",
                entity_id=principal.uid,
                actor_uid=principal.uid,
                tenant_id=principal.tenant_root,
                ip_address=ip_address,
            )
            logger.info("Logged out", extra={"uid": str(principal.uid)})

    async def register(
        self,
        email: str,
        password: str,
        display_name: str,
        role: Role,
        tenant_id: Optional[uuid.UUID] = None,
        ip_address: Optional[str] = None,
    ) -> Principal:
        """
        Register an admin or manager. Does not sign the new account in.

        The signed-in principal, if any, is the registering actor.
        """
        if self.accounts is None:
            raise RuntimeError("SessionContext was created without an AccountService")
        return await self.accounts.register(
            email=email,
            password=password,
            display_name=display_name,
            role=role,
            tenant_id=tenant_id,
            ip_address=ip_address,
            actor=self.current_principal(),
        )

    async def activate(
        self,
        source_identifier: str,
        password: str,
        role: Optional[Role] = None,
        ip_address: Optional[str] = None,
    ) -> Principal:
        """Activate a pre-provisioned account. Does not sign it in."""
        return await self.resolver.activate_account(
            source_identifier, password, role=role, ip_address=ip_address
        )

    def check_access(
        self,
        allowed_roles: Iterable[Role] = ALL_ROLES,
        fallback: Optional[str] = None,
    ) -> GateDecision:
        return evaluate(self._state, allowed_roles, fallback, self.settings)

    def close(self) -> None:
        """Stop listening to the provider."""
        self._unsubscribe()
