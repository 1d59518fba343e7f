"""
Identity provider port and the SQL-backed implementation.

The provider owns email/password credentials and the "who is signed in"
state of one browsing context. It reports that state to subscribers as full
snapshots: every notification carries the current identity or None, never a
delta.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrportal.config import Settings, get_settings
from hrportal.kernel.identity.errors import (
    EmailInUseError,
    IdentityDisabledError,
    ProviderError,
    TooManyAttemptsError,
    UnknownEmailError,
    WeakPasswordError,
    WrongPasswordError,
)
from hrportal.kernel.identity.jwt import IdTokenManager
from hrportal.kernel.identity.password import hash_password, verify_password
from hrportal.kernel.models.base import utcnow
from hrportal.kernel.models.provider_identity import ProviderIdentity
from hrportal.logging_config import get_logger

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class AuthIdentity:
    """An identity as reported by the provider."""

    uid: uuid.UUID
    email: str
    display_name: Optional[str] = None
    id_token: Optional[str] = None


AuthStateListener = Callable[[Optional[AuthIdentity]], Awaitable[None]]


class IdentityProvider(ABC):
    """
    Credential-based authentication service.

    Implementations raise ProviderError subclasses; callers translate them
    with ``errors.from_provider_error``.
    """

    def __init__(self) -> None:
        self._listeners: List[AuthStateListener] = []
        self._current: Optional[AuthIdentity] = None

    @property
    def current_identity(self) -> Optional[AuthIdentity]:
        return self._current

    def on_auth_state_change(self, listener: AuthStateListener) -> Callable[[], None]:
        """
        Subscribe to auth-state snapshots.

        Returns a callable that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _set_current(self, identity: Optional[AuthIdentity]) -> None:
        self._current = identity
        for listener in list(self._listeners):
            await listener(identity)

    async def restore(self, token: Optional[str]) -> Optional[AuthIdentity]:
        """
        Settle the initial auth state from a persisted token.

        Always notifies subscribers exactly once, with the restored identity
        or None.
        """
        identity = await self.verify_token(token) if token else None
        await self._set_current(identity)
        return identity

    async def sign_out(self) -> None:
        await self._set_current(None)

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthIdentity:
        """Authenticate and make the identity current."""

    @abstractmethod
    async def create_identity(self, email: str, password: str) -> AuthIdentity:
        """Create a credential. Does not change the current identity."""

    @abstractmethod
    async def update_display_name(self, identity: AuthIdentity, display_name: str) -> None:
        """Set the display name stored with the credential."""

    @abstractmethod
    async def set_disabled(self, uid: uuid.UUID, disabled: bool) -> None:
        """Enable or disable sign-in for an identity."""

    @abstractmethod
    async def verify_token(self, token: str) -> Optional[AuthIdentity]:
        """Return the identity behind a valid id token, or None."""


def _as_aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalize_email(email: str) -> str:
    return email.lower().strip()


class SqlIdentityProvider(IdentityProvider):
    """
    Identity provider backed by the ``provider_identities`` table.

    Uses its own session factory and commits its own writes, independently of
    any unit of work the caller has open.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        token_manager: Optional[IdTokenManager] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__()
        self._session_maker = session_maker
        self._tokens = token_manager or IdTokenManager()
        self._settings = settings or get_settings()

    async def _get_by_email(self, session: AsyncSession, email: str) -> Optional[ProviderIdentity]:
        result = await session.execute(
            select(ProviderIdentity).where(ProviderIdentity.email == _normalize_email(email))
        )
        return result.scalar_one_or_none()

    def _to_identity(self, record: ProviderIdentity, with_token: bool = False) -> AuthIdentity:
        token = None
        if with_token:
            token, _ = self._tokens.create_id_token(record.uid, record.email)
        return AuthIdentity(
            uid=record.uid,
            email=record.email,
            display_name=record.display_name,
            id_token=token,
        )

    async def sign_in(self, email: str, password: str) -> AuthIdentity:
        async with self._session_maker() as session:
            record = await self._get_by_email(session, email)
            if record is None:
                raise UnknownEmailError("There is no identity for this email")
            if record.disabled:
                raise IdentityDisabledError("The identity has been disabled")

            now = utcnow()
            locked_until = _as_aware(record.locked_until)
            if locked_until is not None and locked_until > now:
                raise TooManyAttemptsError("Too many failed attempts")

            if not verify_password(password, record.password_hash):
                record.failed_attempts += 1
                if record.failed_attempts >= self._settings.max_failed_attempts:
                    record.locked_until = now + timedelta(minutes=self._settings.lockout_minutes)
                    record.failed_attempts = 0
                    logger.warning(
                        "Identity locked after repeated failures",
                        extra={"uid": str(record.uid)},
                    )
                await session.commit()
                raise WrongPasswordError("The password is invalid")

            record.failed_attempts = 0
            record.locked_until = None
            await session.commit()
            identity = self._to_identity(record, with_token=True)

        await self._set_current(identity)
        return identity

    async def create_identity(self, email: str, password: str) -> AuthIdentity:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
            )

        async with self._session_maker() as session:
            if await self._get_by_email(session, email) is not None:
                raise EmailInUseError("The email address is already in use")

            record = ProviderIdentity(
                email=_normalize_email(email),
                password_hash=hash_password(password),
            )
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise EmailInUseError("The email address is already in use") from exc

            logger.info("Provider identity created", extra={"uid": str(record.uid)})
            return self._to_identity(record)

    async def update_display_name(self, identity: AuthIdentity, display_name: str) -> None:
        async with self._session_maker() as session:
            record = await session.get(ProviderIdentity, identity.uid)
            if record is None:
                raise ProviderError("There is no identity for this uid")
            record.display_name = display_name
            await session.commit()

        if self._current is not None and self._current.uid == identity.uid:
            self._current = replace(self._current, display_name=display_name)

    async def set_disabled(self, uid: uuid.UUID, disabled: bool) -> None:
        async with self._session_maker() as session:
            record = await session.get(ProviderIdentity, uid)
            if record is None:
                raise ProviderError("There is no identity for this uid")
            record.disabled = disabled
            await session.commit()

        if disabled and self._current is not None and self._current.uid == uid:
            await self._set_current(None)

    async def verify_token(self, token: str) -> Optional[AuthIdentity]:
        payload = self._tokens.verify_id_token(token)
        if payload is None:
            return None

        async with self._session_maker() as session:
            record = await session.get(ProviderIdentity, uuid.UUID(payload.sub))
            if record is None or record.disabled:
                return None
            identity = self._to_identity(record)

        return replace(identity, id_token=token)
