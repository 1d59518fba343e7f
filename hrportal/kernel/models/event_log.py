"""
Immutable event log for the identity audit trail.

The table is append-only; rows are never updated or deleted.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, String, Text, func, Index, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hrportal.kernel.models.base import Base, generate_uuid, utcnow


class EventType(str, Enum):
    """All event types for the audit log."""
    
    # Account events
    ACCOUNT_REGISTERED = "account.registered"
    ACCOUNT_ACTIVATED = "account.activated"
    ACCOUNT_LOGGED_IN = "account.logged_in"
    ACCOUNT_LOGGED_OUT = "account.logged_out"
    ACCOUNT_PROFILE_UPDATED = "account.profile_updated"
    ACCOUNT_STATUS_CHANGED = "account.status_changed"
    
    # Tenant events
    COMPANY_REGISTERED = "company.registered"
    SOURCE_RECORD_PROVISIONED = "source_record.provisioned"


class EventLog(Base):
    """
    Immutable audit event log.
    
    Append-only. Events are added to the same unit of work as the change
    they describe.
    """
    
    __tablename__ = "event_logs"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    event_type: Mapped[EventType] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    
    # Entity reference
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    
    # Actor and scope
    actor_uid: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,  # System events have no actor
        index=True,
    )
    tenant_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
        index=True,
    )
    
    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )
    
    # Metadata
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )
    user_agent: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    
    __table_args__ = (
        Index("ix_event_logs_entity", "entity_type", "entity_id"),
        Index("ix_event_logs_tenant_time", "tenant_id", "created_at"),
        Index("ix_event_logs_type_time", "event_type", "created_at"),
    )
    
    def __repr__(self) -> str:
        event_type = self.event_type.value if hasattr(self.event_type, "value") else self.event_type
        return f"<EventLog {event_type} {self.entity_type}:{self.entity_id}>"
