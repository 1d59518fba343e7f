"""
Audit history endpoints.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from hrportal.api.deps import DbSession, RoleChecker
from hrportal.kernel.events.event_store import EventStore
from hrportal.kernel.identity.principal import Principal
from hrportal.kernel.models.account import Account
from hrportal.kernel.models.event_log import EventType
from hrportal.kernel.permissions.roles import CAN_VIEW_HISTORY
from hrportal.schemas.pages import EventResponse

router = APIRouter()

HistoryViewer = Annotated[Principal, Depends(RoleChecker(CAN_VIEW_HISTORY))]


@router.get("", response_model=List[EventResponse])
async def get_history(
    principal: HistoryViewer,
    db: DbSession,
    event_type: Optional[EventType] = None,
    since: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """Audit events of the caller's company, newest first."""
    event_store = EventStore(db)
    events = await event_store.get_tenant_activity(
        principal.tenant_root,
        since=since,
        event_types=[event_type] if event_type else None,
        limit=limit,
        offset=offset,
    )
    return [EventResponse.model_validate(e) for e in events]


@router.get("/accounts/{uid}", response_model=List[EventResponse])
async def get_account_history(
    uid: uuid.UUID,
    principal: HistoryViewer,
    db: DbSession,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """Audit events of one account in the caller's company."""
    account = await db.get(Account, uid)
    if account is None or principal.tenant_root not in (account.uid, account.tenant_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Account not found",
        )
    
    event_store = EventStore(db)
    events = await event_store.get_entity_history(
        "account",
        account.uid,
        limit=limit,
        offset=offset,
    )
    return [EventResponse.model_validate(e) for e in events]
