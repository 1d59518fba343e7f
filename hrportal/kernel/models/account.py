"""
Account records: the persisted profile linking a login identifier to a
provider identity and a role.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hrportal.kernel.models.base import Base, TimestampMixin


class Role(str, Enum):
    """Closed set of portal roles. Fixed when the account is created."""
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class AccountStatus(str, Enum):
    """Account status. Deactivation is a status change, never a delete."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class Account(Base, TimestampMixin):
    """User account record."""
    
    __tablename__ = "accounts"
    
    # Same value as the provider identity uid; never changes
    uid: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
    )
    login_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
    )
    role: Mapped[Role] = mapped_column(
        String(20),
        nullable=False,
    )
    # Admin uid owning the company context; null for admins
    tenant_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
        index=True,
    )
    # Source Employee ID for employee accounts
    employee_ref: Mapped[Optional[str]] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=True,
    )
    display_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    phone_number: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
    )
    status: Mapped[AccountStatus] = mapped_column(
        String(20),
        default=AccountStatus.ACTIVE,
        nullable=False,
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    @property
    def role_value(self) -> str:
        # role may be enum or str when loaded from SQLite
        return self.role.value if hasattr(self.role, "value") else self.role
    
    def __repr__(self) -> str:
        return f"<Account {self.login_id} ({self.role_value})>"
