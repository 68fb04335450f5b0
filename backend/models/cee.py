"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Modèles CEE (Certificats d'Économies d'Énergie)                   ║
║                                                                              ║
║  CEEInputs  = les 4 paramètres du calcul (valeur immuable)                   ║
║  CEEResult  = kWh cumac + prime, toujours dérivé des entrées                 ║
║  CEEData    = bloc CEE stocké dans un devis (format base)                    ║
║                                                                              ║
║  RÈGLE: deux formules coexistent (IND-UT-134 et horaire 8760h),              ║
║  jamais mélangées. Voir services/cee.py                                      ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict


class CEEFormula(str, Enum):
    """Base de calcul du kWh cumac"""
    IND_UT_134 = "IND-UT-134"  # 29.4 × coeff × P × F, tarif en €/kWh cumac
    HOURLY = "HOURLY_8760"     # P × coeff × F × 8760, tarif en €/MWh cumac


class ActivityProfile(str, Enum):
    """Profils de fonctionnement (coefficient d'activité)"""
    ONE_SHIFT = "1x8h"
    TWO_SHIFTS = "2x8h"
    THREE_SHIFTS_WEEKEND_OFF = "3x8h_weekend_off"
    THREE_SHIFTS_24_7 = "3x8h_24_7"
    CONTINUOUS_24_7 = "continu_24_7"


class CEEInputs(BaseModel):
    """Entrées d'un calcul CEE (immuable)"""
    model_config = ConfigDict(frozen=True)

    nominal_power: float          # kW
    activity_coefficient: float
    engagement_duration: float    # années (facteur F)
    unit_price: float             # €/kWh cumac (ou €/MWh cumac en HOURLY)


class CEEResult(BaseModel):
    """Résultat d'un calcul CEE"""
    model_config = ConfigDict(frozen=True)

    kwh_cumac: float
    subsidy_amount: float


class CEECalculateRequest(BaseModel):
    """Requête du calculateur"""
    model_config = ConfigDict(allow_inf_nan=False)

    puissance: float = 0.0
    coefficient_activite: float = 1.0
    duree_engagement: float = 1.0
    tarif_kwh: float = 0.002
    formule: CEEFormula = CEEFormula.IND_UT_134
    profil_fonctionnement: Optional[ActivityProfile] = None


class CEECalculateResponse(BaseModel):
    """Réponse du calculateur"""
    kwh_cumac: float
    prime_estimee: float
    formule: str
    formule_detail: str
    calcule: bool
    warnings: List[str] = []


class CEECalculationSave(BaseModel):
    """Sauvegarde d'un calcul (collection cee_calculs)"""
    model_config = ConfigDict(allow_inf_nan=False)

    puissance: float
    coefficient_activite: float
    duree_engagement: float
    tarif_kwh: float = 0.002
    formule: CEEFormula = CEEFormula.IND_UT_134
    client_id: Optional[str] = None
    notes: Optional[str] = ""


class CEEData(BaseModel):
    """
    Bloc CEE d'un devis.
    kwh_cumac et prime_estimee sont recalculés côté serveur à chaque écriture.
    """
    model_config = ConfigDict(allow_inf_nan=False)

    profil_fonctionnement: ActivityProfile = ActivityProfile.TWO_SHIFTS
    puissance_nominale: float = 0.0
    duree_contrat: float = 3
    coefficient_activite: float = 2.0
    facteur_f: float = 2.5
    kwh_cumac: float = 0.0
    tarif_kwh: float = 0.002
    prime_estimee: float = 0.0
    operateur_nom: str = "TotalEnergies"
    notes: Optional[str] = ""
