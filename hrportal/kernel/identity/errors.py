"""
Error taxonomy for session resolution and account activation.

Two families live here:

- ``ProviderError`` subclasses are raised by identity provider
  implementations and never cross the SessionResolver boundary.
- ``AccessCoreError`` subclasses are what callers (API handlers, the session
  context) see. Each carries a machine-readable ``error_code``, an HTTP
  ``status_code`` for the API boundary, a user-facing ``message`` and a
  ``context`` dict for logging.
"""

from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Identity provider errors
# ---------------------------------------------------------------------------

class ProviderError(Exception):
    """Base class for failures reported by an identity provider."""

    code: str = "provider/error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WrongPasswordError(ProviderError):
    code = "provider/wrong-password"


class UnknownEmailError(ProviderError):
    code = "provider/user-not-found"


class IdentityDisabledError(ProviderError):
    code = "provider/user-disabled"


class TooManyAttemptsError(ProviderError):
    code = "provider/too-many-requests"


class EmailInUseError(ProviderError):
    code = "provider/email-already-in-use"


class WeakPasswordError(ProviderError):
    code = "provider/weak-password"


# ---------------------------------------------------------------------------
# Core errors
# ---------------------------------------------------------------------------

class AccessCoreError(Exception):
    """Base class for errors surfaced to callers of the access core."""

    error_code: str = "ACCESS_CORE_ERROR"
    status_code: int = 400
    default_message: str = "Request could not be completed"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.context = context or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class AccountNotFound(AccessCoreError):
    error_code = "ACCOUNT_NOT_FOUND"
    status_code = 404
    default_message = "User not found. Please check your Employee ID/User ID and try again."


class InvalidCredentials(AccessCoreError):
    error_code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Incorrect password. Please try again."


class AccountDisabled(AccessCoreError):
    error_code = "ACCOUNT_DISABLED"
    status_code = 403
    default_message = "Account has been disabled. Please contact administrator."


class RateLimited(AccessCoreError):
    error_code = "RATE_LIMITED"
    status_code = 429
    default_message = "Too many failed attempts. Please try again later."


class AccountAlreadyActivated(AccessCoreError):
    error_code = "ACCOUNT_ALREADY_ACTIVATED"
    status_code = 409
    default_message = "Account already exists for this ID. Please login instead."


class SourceRecordNotFound(AccessCoreError):
    error_code = "SOURCE_RECORD_NOT_FOUND"
    status_code = 404
    default_message = "ID not found. Please contact your administrator."


class AuthProviderError(AccessCoreError):
    """Any provider failure without a dedicated mapping."""

    error_code = "AUTH_PROVIDER_ERROR"
    status_code = 502
    default_message = "Authentication service error"


class LoginIdTaken(AccessCoreError):
    error_code = "LOGIN_ID_TAKEN"
    status_code = 409
    default_message = "User ID already exists"


class EmailTaken(AccessCoreError):
    error_code = "EMAIL_TAKEN"
    status_code = 409
    default_message = "Email already exists"


class SourceRecordExists(AccessCoreError):
    error_code = "SOURCE_RECORD_EXISTS"
    status_code = 409
    default_message = "A record with this ID already exists"


class TenantNotFound(AccessCoreError):
    error_code = "TENANT_NOT_FOUND"
    status_code = 422
    default_message = "Company not found"


class PermissionDenied(AccessCoreError):
    error_code = "PERMISSION_DENIED"
    status_code = 403
    default_message = "You don't have permission to perform this action"


def from_provider_error(exc: ProviderError) -> AccessCoreError:
    """Map a provider failure onto the core taxonomy."""
    if isinstance(exc, WrongPasswordError):
        return InvalidCredentials(context={"provider_code": exc.code})
    if isinstance(exc, UnknownEmailError):
        return AccountNotFound(context={"provider_code": exc.code})
    if isinstance(exc, IdentityDisabledError):
        return AccountDisabled(context={"provider_code": exc.code})
    if isinstance(exc, TooManyAttemptsError):
        return RateLimited(context={"provider_code": exc.code})
    return AuthProviderError(exc.message, context={"provider_code": exc.code})
