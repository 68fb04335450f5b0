"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Routes Commandes                                                  ║
║                                                                              ║
║  Les commandes sont créées par POST /devis/{id}/convert                      ║
║  Ici: consultation, changement de statut, facturation                        ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from fastapi import APIRouter, HTTPException
from typing import Optional

from config import now_iso
from models import CommandeStatusUpdate, COMMANDE_TRANSITIONS, FactureNotes
from services.data_source import get_data_source, text_search
from services.event_logger import log_event
from services.facturation import create_facture_for_commande, FacturationError

router = APIRouter(prefix="/commandes", tags=["Commandes"])


@router.get("")
async def list_commandes(
    statut: Optional[str] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
):
    query = {}
    if statut:
        query["statut"] = statut
    if client_id:
        query["client_id"] = client_id

    commandes = await get_data_source().find("commandes", query, sort=[("date_commande", -1)])
    commandes = text_search(commandes, search, ["numero", "client_name", "notes"])
    return {"commandes": commandes, "count": len(commandes)}


@router.get("/{commande_id}")
async def get_commande(commande_id: str):
    commande = await get_data_source().find_one("commandes", {"id": commande_id})
    if not commande:
        raise HTTPException(status_code=404, detail="Commande non trouvée")
    return commande


@router.put("/{commande_id}/status")
async def update_commande_status(commande_id: str, data: CommandeStatusUpdate):
    ds = get_data_source()
    commande = await ds.find_one("commandes", {"id": commande_id})
    if not commande:
        raise HTTPException(status_code=404, detail="Commande non trouvée")

    current = commande.get("statut", "en_cours")
    if data.statut not in COMMANDE_TRANSITIONS.get(current, []):
        raise HTTPException(
            status_code=400,
            detail=f"Transition invalide: {current} → {data.statut}"
        )

    update = {"statut": data.statut, "updated_at": now_iso()}
    if data.statut == "livree":
        update["date_livraison"] = now_iso()
    if data.notes is not None:
        update["notes"] = data.notes

    await ds.update("commandes", {"id": commande_id}, update)
    await log_event(
        action="commande_status",
        entity_type="commande",
        entity_id=commande_id,
        details={"numero": commande.get("numero"), "old_status": current, "new_status": data.statut},
        related={"client_id": commande.get("client_id"), "devis_id": commande.get("devis_id")},
    )
    return {"success": True, "commande": {**commande, **update}}


@router.post("/{commande_id}/invoice")
async def invoice_commande(commande_id: str, data: Optional[FactureNotes] = None):
    """Génère la facture de la commande"""
    ds = get_data_source()
    commande = await ds.find_one("commandes", {"id": commande_id})
    if not commande:
        raise HTTPException(status_code=404, detail="Commande non trouvée")

    try:
        facture = await create_facture_for_commande(ds, commande, data.notes if data else "")
    except FacturationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await log_event(
        action="commande_invoice",
        entity_type="commande",
        entity_id=commande_id,
        details={"facture_numero": facture["numero"]},
        related={"facture_id": facture["id"], "client_id": commande.get("client_id")},
    )
    return {"success": True, "facture": facture}
