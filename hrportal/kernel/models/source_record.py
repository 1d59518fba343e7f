"""
Pre-provisioned employee and manager records awaiting self-service
account activation.
"""

import uuid
from typing import Optional

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hrportal.kernel.models.base import Base, TimestampMixin, generate_uuid


class Employee(Base, TimestampMixin):
    """Employee record created by an admin or manager."""
    
    __tablename__ = "employees"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    employee_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    department: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    designation: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    
    @property
    def identifier(self) -> str:
        return self.employee_id


class Manager(Base, TimestampMixin):
    """Manager record created by an admin."""
    
    __tablename__ = "managers"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    manager_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    department: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    
    @property
    def identifier(self) -> str:
        return self.manager_id
