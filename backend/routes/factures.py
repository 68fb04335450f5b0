"""
OXA CRM - Routes Factures
Factures: créées depuis une commande, envoi, paiement, suivi des retards.
Overdue dashboard: clients avec factures en retard + total TTC en retard.
"""

from fastapi import APIRouter, HTTPException
from typing import Optional
from datetime import datetime, timezone

from config import now_iso
from models import FactureCreate, FacturePaid
from services.data_source import get_data_source, text_search
from services.event_logger import log_event
from services.facturation import (
    create_facture_for_commande,
    mark_overdue_factures,
    FacturationError,
    PAYABLE_STATUSES,
)

router = APIRouter(prefix="/factures", tags=["Factures"])


async def _get_facture_or_404(ds, facture_id: str) -> dict:
    facture = await ds.find_one("factures", {"id": facture_id})
    if not facture:
        raise HTTPException(status_code=404, detail="Facture non trouvée")
    return facture


# ════════════════════════════════════════════════════════════════════════
# LECTURE
# ════════════════════════════════════════════════════════════════════════

@router.get("")
async def list_factures(
    statut: Optional[str] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
):
    """Liste des factures (les retards sont marqués avant lecture)"""
    ds = get_data_source()
    await mark_overdue_factures(ds)

    query = {}
    if statut:
        query["statut"] = statut
    if client_id:
        query["client_id"] = client_id

    factures = await ds.find("factures", query, sort=[("date_facture", -1)])
    factures = text_search(factures, search, ["numero", "client_name"])
    return {"factures": factures, "count": len(factures)}


@router.post("/mark-overdue")
async def mark_overdue():
    """Passe en retard les factures envoyées dont l'échéance est dépassée"""
    count = await mark_overdue_factures(get_data_source())
    return {"success": True, "updated": count}


@router.get("/overdue-dashboard")
async def overdue_dashboard():
    """
    Clients avec factures en retard.
    Retourne les totaux par client + total global.
    """
    ds = get_data_source()
    await mark_overdue_factures(ds)
    overdue = await ds.find("factures", {"statut": "en_retard"}, limit=10000)

    per_client = {}
    for f in overdue:
        entry = per_client.setdefault(f.get("client_id"), {
            "client_id": f.get("client_id"),
            "client_name": f.get("client_name", "?"),
            "facture_count": 0,
            "total_ht": 0.0,
            "total_ttc": 0.0,
            "oldest_due": f.get("date_echeance"),
        })
        entry["facture_count"] += 1
        entry["total_ht"] += f.get("total_ht", 0.0)
        entry["total_ttc"] += f.get("total_ttc", 0.0)
        if f.get("date_echeance") and f["date_echeance"] < (entry["oldest_due"] or f["date_echeance"]):
            entry["oldest_due"] = f["date_echeance"]

    now = datetime.now(timezone.utc)
    clients = []
    for entry in per_client.values():
        days_overdue = 0
        if entry["oldest_due"]:
            try:
                oldest = datetime.fromisoformat(entry["oldest_due"].replace("Z", "+00:00"))
                days_overdue = (now - oldest).days
            except (ValueError, TypeError):
                pass
        entry["days_overdue"] = days_overdue
        entry["total_ht"] = round(entry["total_ht"], 2)
        entry["total_ttc"] = round(entry["total_ttc"], 2)
        clients.append(entry)

    clients.sort(key=lambda c: c["total_ttc"], reverse=True)
    return {
        "clients": clients,
        "total_overdue_ttc": round(sum(c["total_ttc"] for c in clients), 2),
        "client_count": len(clients),
    }


@router.get("/{facture_id}")
async def get_facture(facture_id: str):
    ds = get_data_source()
    await mark_overdue_factures(ds)
    return await _get_facture_or_404(ds, facture_id)


# ════════════════════════════════════════════════════════════════════════
# ÉCRITURE
# ════════════════════════════════════════════════════════════════════════

@router.post("")
async def create_facture(data: FactureCreate):
    """Crée la facture d'une commande"""
    ds = get_data_source()
    commande = await ds.find_one("commandes", {"id": data.commande_id})
    if not commande:
        raise HTTPException(status_code=404, detail="Commande non trouvée")

    try:
        facture = await create_facture_for_commande(ds, commande, data.notes)
    except FacturationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "facture": facture}


@router.post("/{facture_id}/send")
async def send_facture(facture_id: str):
    ds = get_data_source()
    facture = await _get_facture_or_404(ds, facture_id)
    if facture.get("statut") != "brouillon":
        raise HTTPException(status_code=400, detail="Seule une facture brouillon peut être envoyée")

    update = {"statut": "envoyee", "date_envoi": now_iso(), "updated_at": now_iso()}
    await ds.update("factures", {"id": facture_id}, update)
    await log_event(
        action="facture_send",
        entity_type="facture",
        entity_id=facture_id,
        details={"numero": facture.get("numero")},
        related={"client_id": facture.get("client_id")},
    )
    return {"success": True, "facture": {**facture, **update}}


@router.post("/{facture_id}/mark-paid")
async def mark_facture_paid(facture_id: str, data: Optional[FacturePaid] = None):
    ds = get_data_source()
    facture = await _get_facture_or_404(ds, facture_id)
    if facture.get("statut") not in PAYABLE_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Facture {facture.get('statut')}: paiement impossible"
        )

    update = {
        "statut": "payee",
        "date_paiement": (data.date_paiement if data and data.date_paiement else now_iso()),
        "updated_at": now_iso(),
    }
    await ds.update("factures", {"id": facture_id}, update)
    await log_event(
        action="facture_paid",
        entity_type="facture",
        entity_id=facture_id,
        details={"numero": facture.get("numero"), "old_status": facture.get("statut")},
        related={"client_id": facture.get("client_id")},
    )
    return {"success": True, "facture": {**facture, **update}}
