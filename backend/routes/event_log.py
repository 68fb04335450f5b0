"""
OXA CRM - Routes Event Log (audit trail)
"""

from fastapi import APIRouter
from typing import Optional

from services.event_logger import get_events

router = APIRouter(prefix="/event-log", tags=["EventLog"])


@router.get("")
async def list_events(
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    limit: int = 100,
):
    """Liste les events avec filtres"""
    events = await get_events(action=action, entity_type=entity_type, entity_id=entity_id, limit=limit)
    return {"events": events, "count": len(events)}
