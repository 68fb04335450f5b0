"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Routes Prospects                                                  ║
║                                                                              ║
║  CRUD prospects + conversion en client                                       ║
║  Un prospect converti garde le lien vers son client (client_id)              ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from fastapi import APIRouter, HTTPException
from typing import Optional
import logging

from config import generate_id, now_iso
from models import ProspectCreate, ProspectUpdate, ProspectConvert, ClientCreate
from services.data_source import get_data_source, text_search
from services.event_logger import log_event

logger = logging.getLogger("prospects")

router = APIRouter(prefix="/prospects", tags=["Prospects"])

SEARCH_FIELDS = ["nom", "entreprise", "email"]


@router.get("")
async def list_prospects(statut: Optional[str] = None, search: Optional[str] = None):
    """Liste les prospects (filtre statut + recherche texte)"""
    query = {}
    if statut:
        query["statut"] = statut

    prospects = await get_data_source().find("prospects", query, sort=[("created_at", -1)])
    prospects = text_search(prospects, search, SEARCH_FIELDS)
    return {"prospects": prospects, "count": len(prospects)}


@router.get("/{prospect_id}")
async def get_prospect(prospect_id: str):
    prospect = await get_data_source().find_one("prospects", {"id": prospect_id})
    if not prospect:
        raise HTTPException(status_code=404, detail="Prospect non trouvé")
    return prospect


@router.post("")
async def create_prospect(data: ProspectCreate):
    prospect = {
        "id": generate_id(),
        **data.model_dump(),
        "client_id": None,
        "created_at": now_iso(),
        "updated_at": now_iso(),
    }
    await get_data_source().insert("prospects", prospect)
    logger.info(f"Prospect créé: {prospect['entreprise']}")
    return {"success": True, "prospect": prospect}


@router.put("/{prospect_id}")
async def update_prospect(prospect_id: str, data: ProspectUpdate):
    ds = get_data_source()
    prospect = await ds.find_one("prospects", {"id": prospect_id})
    if not prospect:
        raise HTTPException(status_code=404, detail="Prospect non trouvé")

    update_data = {k: v for k, v in data.model_dump().items() if v is not None}
    if not update_data:
        raise HTTPException(status_code=400, detail="Aucune donnée à mettre à jour")
    update_data["updated_at"] = now_iso()

    await ds.update("prospects", {"id": prospect_id}, update_data)
    return {"success": True, "prospect": {**prospect, **update_data}}


@router.delete("/{prospect_id}")
async def delete_prospect(prospect_id: str):
    deleted = await get_data_source().delete("prospects", {"id": prospect_id})
    if not deleted:
        raise HTTPException(status_code=404, detail="Prospect non trouvé")
    return {"success": True}


@router.post("/{prospect_id}/convert")
async def convert_prospect(prospect_id: str, data: Optional[ProspectConvert] = None):
    """
    Convertit un prospect en client.

    Le client reprend nom/entreprise/email/téléphone/notes du prospect,
    le prospect passe en statut 'converti'.
    """
    data = data or ProspectConvert()
    ds = get_data_source()
    prospect = await ds.find_one("prospects", {"id": prospect_id})
    if not prospect:
        raise HTTPException(status_code=404, detail="Prospect non trouvé")
    if prospect.get("statut") == "converti":
        raise HTTPException(status_code=400, detail="Prospect déjà converti")

    try:
        client_data = ClientCreate(
            nom=prospect["nom"],
            entreprise=prospect["entreprise"],
            email=prospect.get("email") or "",
            telephone=prospect.get("telephone") or "",
            notes=prospect.get("notes") or "",
            prospect_id=prospect_id,
            **data.model_dump(),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    client = {
        "id": generate_id(),
        **client_data.model_dump(),
        "created_at": now_iso(),
        "updated_at": now_iso(),
    }
    await ds.insert("clients", client)
    await ds.update("prospects", {"id": prospect_id}, {
        "statut": "converti",
        "client_id": client["id"],
        "updated_at": now_iso(),
    })

    await log_event(
        action="prospect_convert",
        entity_type="prospect",
        entity_id=prospect_id,
        details={"old_status": prospect.get("statut"), "new_status": "converti"},
        related={"client_id": client["id"]},
    )
    return {"success": True, "client": client}
