"""
Session resolution: turn a login attempt, a restored provider identity or a
self-service activation into a Principal.
"""

from typing import Optional, Sequence

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from hrportal.kernel.events.event_store import EventStore
from hrportal.kernel.identity.errors import (
    AccountAlreadyActivated,
    AccountNotFound,
    AuthProviderError,
    EmailInUseError,
    ProviderError,
    SourceRecordNotFound,
    from_provider_error,
)
from hrportal.kernel.identity.lookups import (
    BY_EMPLOYEE_REF,
    BY_LOGIN_ID,
    LOGIN_LOOKUPS,
    SOURCE_LOOKUPS,
    LookupStrategy,
    SourceLookup,
    first_match,
)
from hrportal.kernel.identity.principal import Principal
from hrportal.kernel.identity.provider import AuthIdentity, IdentityProvider
from hrportal.kernel.models.account import Account, AccountStatus, Role
from hrportal.kernel.models.base import utcnow
from hrportal.kernel.models.event_log import EventType
from hrportal.logging_config import get_logger

logger = get_logger(__name__)


class SessionResolver:
    """
    Resolves principals against the account store and the identity provider.

    Writes join the caller's session; the caller commits. Provider writes are
    committed by the provider itself, so activation spans two stores and is
    not atomic.
    """

    def __init__(
        self,
        session: AsyncSession,
        provider: IdentityProvider,
        login_lookups: Sequence[LookupStrategy] = LOGIN_LOOKUPS,
        source_lookups: Sequence[SourceLookup] = SOURCE_LOOKUPS,
    ):
        self.session = session
        self.provider = provider
        self.login_lookups = tuple(login_lookups)
        self.source_lookups = tuple(source_lookups)
        self.event_store = EventStore(session)

    async def resolve_by_credentials(
        self,
        login_id: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Principal:
        """
        Sign in with a login identifier and password.

        Args:
            login_id: Login ID or source Employee ID
            password: Plain text password
            ip_address: Client IP for audit
            user_agent: Client user agent for audit

        Returns:
            The Principal for the matched account

        Raises:
            ValueError: If either argument is empty
            AccountNotFound: No account matched either identifier field
            InvalidCredentials, AccountDisabled, RateLimited, AuthProviderError:
                The provider rejected the sign-in
        """
        login_id = (login_id or "").strip()
        if not login_id or not password:
            raise ValueError("Login ID and password are required")

        strategy, account = await first_match(self.login_lookups, self.session, login_id)
        if account is None:
            logger.info("Login rejected: no account", extra={"login_id": login_id})
            raise AccountNotFound(context={"login_id": login_id})

        try:
            identity = await self.provider.sign_in(account.email, password)
        except ProviderError as exc:
            error = from_provider_error(exc)
            logger.info(
                "Login rejected by identity provider",
                extra={"login_id": login_id, "uid": str(account.uid), "code": error.error_code},
            )
            raise error from exc

        if identity.uid != account.uid:
            logger.error(
                "Data integrity fault: account email belongs to another identity",
                extra={"account_uid": str(account.uid), "identity_uid": str(identity.uid)},
            )
            await self.provider.sign_out()
            raise AuthProviderError(
                "Account record does not match the signed-in identity",
                context={"login_id": login_id},
            )

        await self._record_last_login(account)

        await self.event_store.log(
            event_type=EventType.ACCOUNT_LOGGED_IN,
            entity_type="account",
            entity_id=account.uid,
            actor_uid=account.uid,
            tenant_id=Principal.from_account(account).tenant_root,
            payload={"matched_by": strategy.name},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info(
            "Login succeeded",
            extra={"uid": str(account.uid), "matched_by": strategy.name},
        )
        return Principal.from_account(account)

    async def _record_last_login(self, account: Account) -> None:
        """Best-effort last_login_at update inside a savepoint."""
        now = utcnow()
        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    update(Account)
                    .where(Account.uid == account.uid)
                    .values(last_login_at=now)
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError:
            logger.warning(
                "Could not record last login time",
                extra={"uid": str(account.uid)},
                exc_info=True,
            )
            return
        # Reflect the stored value without scheduling another UPDATE
        set_committed_value(account, "last_login_at", now)

    async def resolve_from_restored_session(
        self,
        identity: AuthIdentity,
    ) -> Optional[Principal]:
        """
        Build the principal for an identity the provider reports as signed in.

        Returns None when no account record exists for the identity; that is a
        data-integrity fault and is logged, not retried.
        """
        account = await self.session.get(Account, identity.uid)
        if account is None:
            logger.error(
                "Data integrity fault: provider identity has no account record",
                extra={"uid": str(identity.uid)},
            )
            return None
        return Principal.from_account(account)

    async def activate_account(
        self,
        source_identifier: str,
        password: str,
        role: Optional[Role] = None,
        ip_address: Optional[str] = None,
    ) -> Principal:
        """
        Self-service activation of a pre-provisioned employee or manager.

        Args:
            source_identifier: Employee ID or Manager ID of the source record
            password: Password for the new provider identity
            role: Restrict the search to one source kind
            ip_address: Client IP for audit

        Returns:
            The Principal of the new account

        Raises:
            SourceRecordNotFound: No source record has this identifier
            AccountAlreadyActivated: An account already uses this identifier
        """
        source_identifier = (source_identifier or "").strip()
        if not source_identifier or not password:
            raise ValueError("ID and password are required")

        lookups = [s for s in self.source_lookups if role is None or s.role == role]
        source_kind, source = await first_match(lookups, self.session, source_identifier)
        if source is None:
            raise SourceRecordNotFound(context={"identifier": source_identifier})

        _, existing = await first_match(
            (BY_LOGIN_ID, BY_EMPLOYEE_REF), self.session, source_identifier
        )
        if existing is not None:
            raise AccountAlreadyActivated(context={"identifier": source_identifier})

        try:
            identity = await self.provider.create_identity(source.email, password)
            await self.provider.update_display_name(identity, source.full_name)
        except EmailInUseError as exc:
            raise AccountAlreadyActivated(
                context={"identifier": source_identifier, "provider_code": exc.code}
            ) from exc
        except ProviderError as exc:
            raise from_provider_error(exc) from exc

        account = Account(
            uid=identity.uid,
            login_id=source_identifier,
            email=identity.email,
            role=source_kind.role,
            tenant_id=source.tenant_id,
            employee_ref=source_identifier if source_kind.role == Role.EMPLOYEE else None,
            display_name=source.full_name,
            status=AccountStatus.ACTIVE,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(account)
        except IntegrityError as exc:
            # The provider identity is already committed and now has no record
            logger.error(
                "Orphaned provider identity after failed account insert",
                extra={"uid": str(identity.uid), "identifier": source_identifier},
            )
            raise AccountAlreadyActivated(context={"identifier": source_identifier}) from exc

        await self.event_store.log(
            event_type=EventType.ACCOUNT_ACTIVATED,
            entity_type="account",
            entity_id=account.uid,
            actor_uid=account.uid,
            tenant_id=account.tenant_id,
            payload={"login_id": account.login_id, "role": source_kind.role},
            ip_address=ip_address,
        )
        logger.info(
            "Account activated",
            extra={"uid": str(account.uid), "role": source_kind.role.value},
        )
        return Principal.from_account(account)
