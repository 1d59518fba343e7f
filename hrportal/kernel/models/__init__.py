"""
Kernel Data Models

SQLAlchemy models for accounts, source records, companies, provider
credentials and the audit log.
"""

from hrportal.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from hrportal.kernel.models.account import Account, AccountStatus, Role
from hrportal.kernel.models.source_record import Employee, Manager
from hrportal.kernel.models.company import Company
from hrportal.kernel.models.provider_identity import ProviderIdentity
from hrportal.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    # Accounts
    "Account",
    "AccountStatus",
    "Role",
    # Source records
    "Employee",
    "Manager",
    # Tenants
    "Company",
    # Provider
    "ProviderIdentity",
    # Audit
    "EventLog",
    "EventType",
]
