"""
Identity Core - session resolution, activation and account management.
"""

from hrportal.kernel.identity.password import PasswordHasher, verify_password, hash_password
from hrportal.kernel.identity.jwt import IdTokenManager, IdTokenPayload
from hrportal.kernel.identity.principal import Principal
from hrportal.kernel.identity.provider import (
    AuthIdentity,
    IdentityProvider,
    SqlIdentityProvider,
)
from hrportal.kernel.identity.session_resolver import SessionResolver
from hrportal.kernel.identity.account_service import AccountService

__all__ = [
    "PasswordHasher",
    "verify_password",
    "hash_password",
    "IdTokenManager",
    "IdTokenPayload",
    "Principal",
    "AuthIdentity",
    "IdentityProvider",
    "SqlIdentityProvider",
    "SessionResolver",
    "AccountService",
]
