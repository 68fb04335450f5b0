"""
OXA CRM - Event Logger

Centralized audit trail for sensitive actions.
Single function to call from any route/service.
"""

import logging
from typing import List, Optional

from config import generate_id, now_iso
from services.data_source import get_data_source

logger = logging.getLogger("event_log")


async def log_event(
    action: str,
    entity_type: str,
    entity_id: str,
    user: str = "system",
    details: dict = None,
    related: dict = None
):
    """
    Write a single event to the event_log collection.

    Args:
        action: e.g. devis_status, devis_convert, prospect_convert, facture_paid
        entity_type: prospect | client | article | fournisseur | devis | commande | facture
        entity_id: ID of the primary entity
        user: email of user performing action
        details: free-form dict (old_value, new_value, numero, etc.)
        related: linked entity IDs (client_id, devis_id, commande_id, etc.)
    """
    event = {
        "id": generate_id(),
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "user": user,
        "details": details or {},
        "related": related or {},
        "created_at": now_iso()
    }
    await get_data_source().insert("event_log", event)
    logger.info(f"{action} {entity_type}={entity_id}")
    return event


async def get_events(action: Optional[str] = None, entity_type: Optional[str] = None,
                     entity_id: Optional[str] = None, limit: int = 100) -> List[dict]:
    query = {}
    if action:
        query["action"] = action
    if entity_type:
        query["entity_type"] = entity_type
    if entity_id:
        query["entity_id"] = entity_id
    return await get_data_source().find("event_log", query, sort=[("created_at", -1)], limit=limit)
