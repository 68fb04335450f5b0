"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Routes Calculateur CEE                                            ║
║                                                                              ║
║  POST /cee/calculate     : kWh cumac + prime (sans sauvegarde)               ║
║  GET  /cee/referentiel   : profils, durées, table des facteurs               ║
║  POST /cee/calculations  : sauvegarde d'un calcul                            ║
║  GET  /cee/calculations  : historique                                        ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from fastapi import APIRouter, HTTPException
from typing import Optional
import logging

from config import generate_id, now_iso
from models import CEEInputs, CEECalculateRequest, CEECalculateResponse, CEECalculationSave
from services.cee import (
    compute_cee,
    is_computed,
    validate_cee_inputs,
    format_formula,
    resolve_profile_coefficient,
    get_referentiel,
)
from services.data_source import get_data_source

logger = logging.getLogger("cee")

router = APIRouter(prefix="/cee", tags=["CEE"])


@router.post("/calculate", response_model=CEECalculateResponse)
async def calculate_cee(data: CEECalculateRequest):
    """
    Calcule kWh cumac et prime estimée.

    Le profil de fonctionnement, s'il est fourni, impose le coefficient
    d'activité. Les erreurs de saisie sont renvoyées en warnings: le calcul
    est toujours effectué.
    """
    coefficient = data.coefficient_activite
    if data.profil_fonctionnement is not None:
        coefficient = resolve_profile_coefficient(data.profil_fonctionnement.value)

    inputs = CEEInputs(
        nominal_power=data.puissance,
        activity_coefficient=coefficient,
        engagement_duration=data.duree_engagement,
        unit_price=data.tarif_kwh,
    )
    result = compute_cee(inputs, data.formule)

    return CEECalculateResponse(
        kwh_cumac=result.kwh_cumac,
        prime_estimee=result.subsidy_amount,
        formule=data.formule.value,
        formule_detail=format_formula(inputs, data.formule),
        calcule=is_computed(result),
        warnings=validate_cee_inputs(inputs),
    )


@router.get("/referentiel")
async def cee_referentiel():
    return get_referentiel()


@router.post("/calculations")
async def save_calculation(data: CEECalculationSave):
    """Sauvegarde un calcul (entrées invalides refusées)"""
    inputs = CEEInputs(
        nominal_power=data.puissance,
        activity_coefficient=data.coefficient_activite,
        engagement_duration=data.duree_engagement,
        unit_price=data.tarif_kwh,
    )
    errors = validate_cee_inputs(inputs)
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    ds = get_data_source()
    if data.client_id and not await ds.find_one("clients", {"id": data.client_id}):
        raise HTTPException(status_code=404, detail="Client non trouvé")

    result = compute_cee(inputs, data.formule)
    calcul = {
        "id": generate_id(),
        **data.model_dump(mode="json"),
        "kwh_cumac": result.kwh_cumac,
        "prime_estimee": result.subsidy_amount,
        "formule_detail": format_formula(inputs, data.formule),
        "created_at": now_iso(),
    }
    await ds.insert("cee_calculs", calcul)
    logger.info(f"Calcul CEE sauvegardé: {result.kwh_cumac:g} kWh cumac")
    return {"success": True, "calcul": calcul}


@router.get("/calculations")
async def list_calculations(client_id: Optional[str] = None, limit: int = 100):
    query = {}
    if client_id:
        query["client_id"] = client_id
    calculs = await get_data_source().find("cee_calculs", query, sort=[("created_at", -1)], limit=limit)
    return {"calculs": calculs, "count": len(calculs)}
