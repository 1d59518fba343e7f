"""
Principal value object: the resolved, authenticated session identity.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from hrportal.kernel.models.account import Account, AccountStatus, Role


@dataclass(frozen=True)
class Principal:
    """
    Immutable view of an account record for the current session.

    Attributes:
        uid: Provider identity uid, equal to the account primary key.
        login_id: Identifier the user signs in with.
        role: Role fixed at account creation.
        tenant_id: Admin uid owning the company context; None for admins.
        employee_ref: Source Employee ID for employee accounts.
    """

    uid: uuid.UUID
    login_id: str
    role: Role
    email: str
    display_name: str
    status: AccountStatus = AccountStatus.ACTIVE
    tenant_id: Optional[uuid.UUID] = None
    employee_ref: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_account(cls, account: Account) -> "Principal":
        return cls(
            uid=account.uid,
            login_id=account.login_id,
            role=Role(account.role),
            email=account.email,
            display_name=account.display_name,
            status=AccountStatus(account.status),
            tenant_id=account.tenant_id,
            employee_ref=account.employee_ref,
            created_at=account.created_at,
            last_login_at=account.last_login_at,
        )

    @property
    def tenant_root(self) -> uuid.UUID:
        """Uid of the admin whose company this principal works in."""
        if self.role == Role.ADMIN:
            return self.uid
        return self.tenant_id
