"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Routes Clients                                                    ║
║                                                                              ║
║  CRUD clients + recherche                                                    ║
║  Suppression refusée si le client a des devis                                ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from fastapi import APIRouter, HTTPException
from typing import Optional

from config import generate_id, now_iso
from models import ClientCreate, ClientUpdate
from services.data_source import get_data_source, text_search

router = APIRouter(prefix="/clients", tags=["Clients"])

SEARCH_FIELDS = ["nom", "entreprise", "email", "ville", "siret"]


@router.get("")
async def list_clients(search: Optional[str] = None):
    """Liste tous les clients, recherche sur nom/entreprise/email/ville/SIRET"""
    clients = await get_data_source().find("clients", {}, sort=[("entreprise", 1)])
    clients = text_search(clients, search, SEARCH_FIELDS)
    return {"clients": clients, "count": len(clients)}


@router.get("/{client_id}")
async def get_client(client_id: str):
    """Récupère un client avec le nombre de devis/commandes/factures"""
    ds = get_data_source()
    client = await ds.find_one("clients", {"id": client_id})
    if not client:
        raise HTTPException(status_code=404, detail="Client non trouvé")

    client["stats"] = {
        "devis": await ds.count("devis", {"client_id": client_id}),
        "commandes": await ds.count("commandes", {"client_id": client_id}),
        "factures": await ds.count("factures", {"client_id": client_id}),
    }
    return client


@router.post("")
async def create_client(data: ClientCreate):
    ds = get_data_source()
    if data.siret:
        existing = await ds.find_one("clients", {"siret": data.siret})
        if existing:
            raise HTTPException(
                status_code=400,
                detail=f"Un client avec ce SIRET existe déjà: {existing.get('entreprise')}"
            )

    client = {
        "id": generate_id(),
        **data.model_dump(),
        "created_at": now_iso(),
        "updated_at": now_iso(),
    }
    await ds.insert("clients", client)
    return {"success": True, "client": client}


@router.put("/{client_id}")
async def update_client(client_id: str, data: ClientUpdate):
    ds = get_data_source()
    client = await ds.find_one("clients", {"id": client_id})
    if not client:
        raise HTTPException(status_code=404, detail="Client non trouvé")

    update_data = {k: v for k, v in data.model_dump().items() if v is not None}
    if not update_data:
        raise HTTPException(status_code=400, detail="Aucune donnée à mettre à jour")
    update_data["updated_at"] = now_iso()

    await ds.update("clients", {"id": client_id}, update_data)
    return {"success": True, "client": {**client, **update_data}}


@router.delete("/{client_id}")
async def delete_client(client_id: str):
    ds = get_data_source()
    if await ds.count("devis", {"client_id": client_id}):
        raise HTTPException(status_code=400, detail="Client lié à des devis, suppression impossible")

    deleted = await ds.delete("clients", {"id": client_id})
    if not deleted:
        raise HTTPException(status_code=404, detail="Client non trouvé")
    return {"success": True}
