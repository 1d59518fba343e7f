"""
Page gate and audit history schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from hrportal.kernel.models.event_log import EventType


class PageResponse(BaseModel):
    key: str
    path: str
    title: str
    allowed_roles: List[str]


class GateResponse(BaseModel):
    """Outcome of a page gate check that allowed the page."""
    
    page: PageResponse
    status: str
    redirect_to: Optional[str] = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    id: uuid.UUID
    event_type: EventType
    entity_type: str
    entity_id: uuid.UUID
    actor_uid: Optional[uuid.UUID] = None
    payload: Dict[str, Any]
    created_at: datetime
