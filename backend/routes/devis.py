"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Routes Devis                                                      ║
║                                                                              ║
║  Deux types: standard et cee (bloc CEE recalculé, prime déduite du HT)       ║
║  Cycle: brouillon → envoye → accepte | refuse | expire                       ║
║  Un devis accepté se convertit en commande (une seule fois)                  ║
║                                                                              ║
║  Les totaux ne sont jamais acceptés du client: recalcul à chaque écriture    ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from fastapi import APIRouter, HTTPException
from typing import Optional
import logging

from config import now_iso, today_iso
from models import (
    DevisCreate,
    DevisUpdate,
    DevisStatusUpdate,
    DevisRecomputeRequest,
    DevisType,
)
from services.data_source import DataSource, get_data_source, text_search
from services.devis_service import (
    build_devis_document,
    apply_devis_update,
    duplicate_devis_document,
    build_commande_from_devis,
    validate_devis,
    can_transition,
    compute_cee_stats,
    build_export_payload,
    preview_totals,
)
from services.event_logger import log_event
from services.numbering import devis_number, commande_number, numero_sequence

logger = logging.getLogger("devis")

router = APIRouter(prefix="/devis", tags=["Devis"])

LOCKED_STATUSES = ["accepte", "refuse", "expire"]


async def mark_expired_devis(ds: DataSource) -> int:
    """Devis envoyés dont la date de validité est passée → expire"""
    count = await ds.update(
        "devis",
        {"statut": "envoye", "date_validite": {"$lt": today_iso()}},
        {"statut": "expire", "updated_at": now_iso()},
    )
    if count:
        logger.info(f"{count} devis expiré(s)")
    return count


async def next_devis_number(ds: DataSource, client: dict, devis_type: str) -> str:
    """Compteur par client et par type: plus grand numéro existant + 1"""
    existing = await ds.find("devis", {"client_id": client["id"], "type": devis_type}, limit=10000)
    seq = max((numero_sequence(d.get("numero", "")) for d in existing), default=0) + 1
    return devis_number(client.get("entreprise", ""), seq, cee=devis_type == DevisType.CEE.value)


async def _get_devis_or_404(ds: DataSource, devis_id: str) -> dict:
    devis = await ds.find_one("devis", {"id": devis_id})
    if not devis:
        raise HTTPException(status_code=404, detail="Devis non trouvé")
    return devis


async def _get_client_or_404(ds: DataSource, client_id: str) -> dict:
    client = await ds.find_one("clients", {"id": client_id})
    if not client:
        raise HTTPException(status_code=404, detail="Client non trouvé")
    return client


# ════════════════════════════════════════════════════════════════════════
# STATS / APERÇU (avant les routes /{devis_id})
# ════════════════════════════════════════════════════════════════════════

@router.get("/stats/cee")
async def cee_stats():
    """Statistiques des devis CEE"""
    devis_list = await get_data_source().find("devis", {"type": DevisType.CEE.value}, limit=10000)
    return compute_cee_stats(devis_list)


@router.post("/recompute")
async def recompute_devis(data: DevisRecomputeRequest):
    """Aperçu des totaux pendant l'édition (aucune écriture)"""
    return preview_totals(data.lignes, data.tva_taux, data.prime_cee, data.cee_data, data.cee_integration)


# ════════════════════════════════════════════════════════════════════════
# CRUD
# ════════════════════════════════════════════════════════════════════════

@router.get("")
async def list_devis(
    statut: Optional[str] = None,
    type: Optional[str] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
):
    ds = get_data_source()
    await mark_expired_devis(ds)

    query = {}
    if statut:
        query["statut"] = statut
    if type:
        query["type"] = type
    if client_id:
        query["client_id"] = client_id

    devis_list = await ds.find("devis", query, sort=[("created_at", -1)])
    devis_list = text_search(devis_list, search, ["numero", "objet", "client_name"])
    return {"devis": devis_list, "count": len(devis_list)}


@router.get("/{devis_id}")
async def get_devis(devis_id: str):
    ds = get_data_source()
    await mark_expired_devis(ds)
    return await _get_devis_or_404(ds, devis_id)


@router.post("")
async def create_devis(data: DevisCreate):
    """
    Crée un devis (statut brouillon).

    Erreurs de validation renvoyées en liste (400):
    client, objet, au moins une ligne, puissance nominale pour un devis CEE.
    """
    ds = get_data_source()
    client = None
    if data.client_id:
        client = await _get_client_or_404(ds, data.client_id)

    numero = await next_devis_number(ds, client, data.type.value) if client else ""
    devis = build_devis_document(data, client, numero)

    errors = validate_devis(devis)
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    await ds.insert("devis", devis)
    logger.info(f"Devis {devis['numero']} créé ({devis['type']}) total_ht={devis['total_ht']}")
    return {"success": True, "devis": devis}


@router.put("/{devis_id}")
async def update_devis(devis_id: str, data: DevisUpdate):
    ds = get_data_source()
    devis = await _get_devis_or_404(ds, devis_id)
    if devis.get("statut") in LOCKED_STATUSES:
        raise HTTPException(status_code=400, detail=f"Devis {devis['statut']}: modification impossible")

    client = None
    if data.client_id and data.client_id != devis.get("client_id"):
        client = await _get_client_or_404(ds, data.client_id)

    updated = apply_devis_update(devis, data, client)
    errors = validate_devis(updated)
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    await ds.update("devis", {"id": devis_id}, updated)
    return {"success": True, "devis": updated}


@router.delete("/{devis_id}")
async def delete_devis(devis_id: str):
    ds = get_data_source()
    devis = await _get_devis_or_404(ds, devis_id)
    if devis.get("commande_id"):
        raise HTTPException(status_code=400, detail="Devis converti en commande, suppression impossible")
    await ds.delete("devis", {"id": devis_id})
    return {"success": True}


# ════════════════════════════════════════════════════════════════════════
# ACTIONS
# ════════════════════════════════════════════════════════════════════════

@router.post("/{devis_id}/duplicate")
async def duplicate_devis(devis_id: str):
    """Copie en brouillon avec un nouveau numéro"""
    ds = get_data_source()
    original = await _get_devis_or_404(ds, devis_id)
    client = await _get_client_or_404(ds, original["client_id"])

    numero = await next_devis_number(ds, client, original.get("type", DevisType.STANDARD.value))
    copy_doc = duplicate_devis_document(original, numero)
    await ds.insert("devis", copy_doc)
    return {"success": True, "devis": copy_doc}


@router.post("/{devis_id}/status")
async def update_devis_status(devis_id: str, data: DevisStatusUpdate):
    ds = get_data_source()
    devis = await _get_devis_or_404(ds, devis_id)
    current = devis.get("statut", "brouillon")

    if not can_transition(current, data.statut):
        raise HTTPException(
            status_code=400,
            detail=f"Transition invalide: {current} → {data.statut}"
        )

    update = {"statut": data.statut, "updated_at": now_iso()}
    if data.statut == "envoye":
        update["date_envoi"] = now_iso()
    elif data.statut in ("accepte", "refuse"):
        update["date_reponse"] = now_iso()

    await ds.update("devis", {"id": devis_id}, update)
    await log_event(
        action="devis_status",
        entity_type="devis",
        entity_id=devis_id,
        details={"numero": devis.get("numero"), "old_status": current, "new_status": data.statut},
        related={"client_id": devis.get("client_id")},
    )
    return {"success": True, "devis": {**devis, **update}}


@router.post("/{devis_id}/convert")
async def convert_devis(devis_id: str):
    """Devis accepté → commande en_cours"""
    ds = get_data_source()
    devis = await _get_devis_or_404(ds, devis_id)

    if devis.get("statut") != "accepte":
        raise HTTPException(status_code=400, detail="Seul un devis accepté peut être converti en commande")
    if devis.get("commande_id"):
        raise HTTPException(status_code=400, detail="Devis déjà converti en commande")

    numero = commande_number(await ds.count("commandes") + 1)
    commande = build_commande_from_devis(devis, numero)
    await ds.insert("commandes", commande)
    await ds.update("devis", {"id": devis_id}, {"commande_id": commande["id"], "updated_at": now_iso()})

    await log_event(
        action="devis_convert",
        entity_type="devis",
        entity_id=devis_id,
        details={"numero": devis.get("numero"), "commande_numero": numero},
        related={"client_id": devis.get("client_id"), "commande_id": commande["id"]},
    )
    return {"success": True, "commande": commande}


@router.get("/{devis_id}/export")
async def export_devis(devis_id: str):
    """Données d'impression du devis"""
    ds = get_data_source()
    devis = await _get_devis_or_404(ds, devis_id)
    client = await ds.find_one("clients", {"id": devis.get("client_id")})
    return build_export_payload(devis, client)
