"""
Company (tenant root) model.
"""

import uuid
from typing import Optional

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hrportal.kernel.models.account import AccountStatus
from hrportal.kernel.models.base import Base, TimestampMixin


class Company(Base, TimestampMixin):
    """Company owned by an admin account. The id is the admin's uid."""
    
    __tablename__ = "companies"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    industry_type: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    status: Mapped[AccountStatus] = mapped_column(
        String(20),
        default=AccountStatus.ACTIVE,
        nullable=False,
    )
    
    def __repr__(self) -> str:
        return f"<Company {self.company_name}>"
