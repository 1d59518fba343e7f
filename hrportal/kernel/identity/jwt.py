"""
Id token management for persisted provider sessions.

The identity provider issues a signed id token at sign-in. Clients present it
on later requests; verifying it restores the provider identity without a
password.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from hrportal.config import get_settings


class IdTokenPayload(BaseModel):
    """Verified id token claims."""

    sub: str  # Provider identity uid
    email: str
    exp: datetime
    iat: datetime
    jti: str


class IdTokenManager:
    """
    Id token creation and verification.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.expire_minutes = expire_minutes or settings.id_token_expire_minutes

    def create_id_token(
        self,
        uid: uuid.UUID,
        email: str,
        expires_delta: Optional[timedelta] = None,
    ) -> tuple[str, datetime]:
        """
        Create a signed id token.

        Args:
            uid: Provider identity uid
            email: Identity email
            expires_delta: Optional custom lifetime

        Returns:
            Tuple of (token, expiration_datetime)
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.expire_minutes))

        payload = {
            "sub": str(uid),
            "email": email,
            "exp": expire,
            "iat": now,
            "jti": str(uuid.uuid4()),
            "type": "id",
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return token, expire

    def verify_id_token(self, token: str) -> Optional[IdTokenPayload]:
        """
        Verify and decode an id token.

        Returns:
            IdTokenPayload if valid and unexpired, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
        except JWTError:
            return None

        if payload.get("type") != "id":
            return None

        return IdTokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            jti=payload["jti"],
        )
