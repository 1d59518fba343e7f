"""
Event Store service for the append-only identity audit log.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.kernel.models.event_log import EventLog, EventType


class EventStore:
    """
    Service for managing the immutable event log.
    
    Usage:
        event_store = EventStore(session)
        await event_store.log(
            event_type=EventType.ACCOUNT_ACTIVATED,
            entity_type="account",
            entity_id=account.uid,
            actor_uid=account.uid,
            tenant_id=account.tenant_id,
            payload={"login_id": account.login_id},
        )
    """
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def log(
        self,
        event_type: EventType,
        entity_type: str,
        entity_id: uuid.UUID,
        actor_uid: Optional[uuid.UUID] = None,
        tenant_id: Optional[uuid.UUID] = None,
        payload: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> EventLog:
        """
        Add an event to the audit log.
        
        The event joins the caller's unit of work; the caller commits.
        
        Args:
            event_type: The type of event
            entity_type: The type of entity (account, company, employee, manager)
            entity_id: The ID of the entity
            actor_uid: The uid of the account that triggered the event
            tenant_id: Tenant the event belongs to, for scoped history
            payload: Additional event data
            ip_address: Client IP address
            user_agent: Client user agent
            
        Returns:
            The created EventLog record
        """
        if payload:
            payload = self._serialize_payload(payload)
        
        event = EventLog(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_uid=actor_uid,
            tenant_id=tenant_id,
            payload=payload or {},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        
        self.session.add(event)
        return event
    
    async def get_entity_history(
        self,
        entity_type: str,
        entity_id: uuid.UUID,
        event_types: Optional[List[EventType]] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[EventLog]:
        """
        Get the event history for a specific entity, newest first.
        """
        query = select(EventLog).where(
            and_(
                EventLog.entity_type == entity_type,
                EventLog.entity_id == entity_id,
            )
        )
        
        if event_types:
            query = query.where(EventLog.event_type.in_(event_types))
        
        query = query.order_by(desc(EventLog.created_at)).offset(offset).limit(limit)
        
        result = await self.session.execute(query)
        return list(result.scalars().all())
    
    async def get_tenant_activity(
        self,
        tenant_id: uuid.UUID,
        since: Optional[datetime] = None,
        event_types: Optional[List[EventType]] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[EventLog]:
        """
        Get events recorded for a tenant.
        
        Args:
            tenant_id: The admin uid that roots the tenant
            since: Start datetime filter
            event_types: Optional filter for specific event types
            limit: Maximum number of events
            offset: Number of events to skip
            
        Returns:
            List of EventLog records, newest first
        """
        query = select(EventLog).where(EventLog.tenant_id == tenant_id)
        
        if since:
            query = query.where(EventLog.created_at >= since)
        if event_types:
            query = query.where(EventLog.event_type.in_(event_types))
        
        query = query.order_by(desc(EventLog.created_at)).offset(offset).limit(limit)
        
        result = await self.session.execute(query)
        return list(result.scalars().all())
    
    def _serialize_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Convert payload values to JSON-serializable types."""
        result = {}
        for key, value in payload.items():
            if isinstance(value, uuid.UUID):
                result[key] = str(value)
            elif isinstance(value, datetime):
                result[key] = value.isoformat()
            elif hasattr(value, "value") and isinstance(value.value, str):
                result[key] = value.value
            elif isinstance(value, dict):
                result[key] = self._serialize_payload(value)
            else:
                result[key] = value
        return result
