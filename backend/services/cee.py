"""
OXA CRM - Moteur de calcul CEE

Formule fiche standardisée IND-UT-134:
    kWh cumac = 29.4 × coefficient d'activité × P (kW) × F (durée d'engagement)
    prime     = kWh cumac × tarif (€/kWh cumac)

Variante horaire (autre base réglementaire, tarif en €/MWh):
    kWh cumac = P × coefficient × F × 8760
    prime     = kWh cumac / 1000 × tarif (€/MWh cumac)

Le moteur est purement arithmétique: aucune validation, aucun arrondi.
La validation appartient à l'appelant (validate_cee_inputs).
"""

import math
from typing import Dict, List, Optional

from models.cee import CEEFormula, CEEInputs, CEEResult, ActivityProfile, CEEData

# ════════════════════════════════════════════════════════════════════════
# CONSTANTES
# ════════════════════════════════════════════════════════════════════════

IND_UT_134_FACTOR = 29.4
HOURS_PER_YEAR = 8760

DEFAULT_UNIT_PRICE = 0.002  # €/kWh cumac
DEFAULT_OPERATOR = "TotalEnergies"

ACTIVITY_PROFILES: Dict[str, dict] = {
    ActivityProfile.ONE_SHIFT.value: {"label": "1×8h (8h/jour)", "coefficient": 1.0},
    ActivityProfile.TWO_SHIFTS.value: {"label": "2×8h (16h/jour)", "coefficient": 2.0},
    ActivityProfile.THREE_SHIFTS_WEEKEND_OFF.value: {"label": "3×8h week-end off", "coefficient": 2.5},
    ActivityProfile.THREE_SHIFTS_24_7.value: {"label": "3×8h 24/7", "coefficient": 3.0},
    ActivityProfile.CONTINUOUS_24_7.value: {"label": "Continu 24/7", "coefficient": 3.5},
}

VALID_COEFFICIENTS = sorted({p["coefficient"] for p in ACTIVITY_PROFILES.values()})

# Durées proposées par le calculateur (années)
ENGAGEMENT_DURATIONS = [1, 1.5, 2, 2.5, 3, 3.5, 4, 4.5, 5, 5.45]
MIN_ENGAGEMENT_DURATION = 1
MAX_ENGAGEMENT_DURATION = 5.45

# Durée de contrat (années) → facteur F, utilisé par le devis OXA
CONTRACT_DURATION_FACTORS: Dict[int, float] = {
    1: 1.0,
    2: 1.8,
    3: 2.5,
    4: 3.1,
    5: 3.6,
    6: 4.0,
}


# ════════════════════════════════════════════════════════════════════════
# MOTEUR
# ════════════════════════════════════════════════════════════════════════

def compute_cee(inputs: CEEInputs, formula: CEEFormula = CEEFormula.IND_UT_134) -> CEEResult:
    """Calcule kWh cumac et prime pour une formule donnée."""
    if formula == CEEFormula.HOURLY:
        kwh_cumac = (inputs.nominal_power * inputs.activity_coefficient
                     * inputs.engagement_duration * HOURS_PER_YEAR)
        subsidy_amount = kwh_cumac / 1000 * inputs.unit_price
    else:
        kwh_cumac = (IND_UT_134_FACTOR * inputs.activity_coefficient
                     * inputs.nominal_power * inputs.engagement_duration)
        subsidy_amount = kwh_cumac * inputs.unit_price

    return CEEResult(kwh_cumac=kwh_cumac, subsidy_amount=subsidy_amount)


def calculate(
    power: float,
    activity_coefficient: float,
    engagement_duration: float,
    unit_price: float,
    formula: CEEFormula = CEEFormula.IND_UT_134,
) -> CEEResult:
    """Point d'entrée à plat: computeCEE(power, coeff, duration, unitPrice)"""
    return compute_cee(
        CEEInputs(
            nominal_power=power,
            activity_coefficient=activity_coefficient,
            engagement_duration=engagement_duration,
            unit_price=unit_price,
        ),
        formula,
    )


def is_computed(result: CEEResult) -> bool:
    """Un résultat nul signifie 'pas encore calculé', pas une erreur."""
    return result.kwh_cumac > 0


# ════════════════════════════════════════════════════════════════════════
# RÉFÉRENTIEL
# ════════════════════════════════════════════════════════════════════════

def resolve_profile_coefficient(profile: str) -> Optional[float]:
    """Coefficient d'activité d'un profil, None si inconnu"""
    entry = ACTIVITY_PROFILES.get(profile)
    return entry["coefficient"] if entry else None


def resolve_contract_factor(years: float) -> Optional[float]:
    """Facteur F d'une durée de contrat (années entières), None si hors table"""
    if years != int(years):
        return None
    return CONTRACT_DURATION_FACTORS.get(int(years))


def get_referentiel() -> dict:
    """Référentiel exposé aux écrans de saisie"""
    return {
        "profils": [
            {"value": value, "label": p["label"], "coefficient": p["coefficient"]}
            for value, p in ACTIVITY_PROFILES.items()
        ],
        "durees_engagement": ENGAGEMENT_DURATIONS,
        "durees_contrat": [
            {"value": years, "label": f"{years} an{'s' if years > 1 else ''}", "facteur": factor}
            for years, factor in CONTRACT_DURATION_FACTORS.items()
        ],
        "formules": [f.value for f in CEEFormula],
        "defaults": {
            "tarif_kwh": DEFAULT_UNIT_PRICE,
            "operateur_nom": DEFAULT_OPERATOR,
            "duree_max": MAX_ENGAGEMENT_DURATION,
        },
    }


# ════════════════════════════════════════════════════════════════════════
# VALIDATION (côté appelant)
# ════════════════════════════════════════════════════════════════════════

def validate_cee_inputs(inputs: CEEInputs) -> List[str]:
    """
    Contrôle les entrées avant appel du moteur.
    Retourne la liste des erreurs (vide si OK).
    """
    errors = []

    values = {
        "Puissance": inputs.nominal_power,
        "Coefficient d'activité": inputs.activity_coefficient,
        "Durée d'engagement": inputs.engagement_duration,
        "Tarif": inputs.unit_price,
    }
    for label, value in values.items():
        if not math.isfinite(value):
            errors.append(f"{label}: valeur non numérique")
        elif value < 0:
            errors.append(f"{label}: valeur négative interdite")

    if math.isfinite(inputs.activity_coefficient) and inputs.activity_coefficient not in VALID_COEFFICIENTS:
        errors.append(
            f"Coefficient d'activité invalide: {inputs.activity_coefficient}. Valides: {VALID_COEFFICIENTS}"
        )

    duration = inputs.engagement_duration
    if math.isfinite(duration) and not (MIN_ENGAGEMENT_DURATION <= duration <= MAX_ENGAGEMENT_DURATION):
        errors.append(
            f"Durée d'engagement hors plage: {duration} "
            f"({MIN_ENGAGEMENT_DURATION} à {MAX_ENGAGEMENT_DURATION} ans)"
        )

    return errors


# ════════════════════════════════════════════════════════════════════════
# AFFICHAGE / BLOC DEVIS
# ════════════════════════════════════════════════════════════════════════

def _fmt(value: float) -> str:
    return f"{value:g}"


def format_formula(inputs: CEEInputs, formula: CEEFormula = CEEFormula.IND_UT_134) -> str:
    """Formule lisible affichée sur le devis"""
    if formula == CEEFormula.HOURLY:
        return (f"kWh cumac = {_fmt(inputs.nominal_power)} × {_fmt(inputs.activity_coefficient)}"
                f" × {_fmt(inputs.engagement_duration)} × {HOURS_PER_YEAR}")
    return (f"kWh cumac = {_fmt(IND_UT_134_FACTOR)} × {_fmt(inputs.activity_coefficient)}"
            f" × {_fmt(inputs.nominal_power)} × {_fmt(inputs.engagement_duration)}")


def compute_cee_block(cee_data: CEEData) -> CEEData:
    """
    Recalcule le bloc CEE d'un devis (IND-UT-134).

    Le coefficient suit le profil de fonctionnement et le facteur F suit la
    durée de contrat quand ils sont dans le référentiel; sinon les valeurs
    saisies sont conservées.
    """
    coefficient = resolve_profile_coefficient(cee_data.profil_fonctionnement.value)
    if coefficient is None:
        coefficient = cee_data.coefficient_activite

    factor = resolve_contract_factor(cee_data.duree_contrat)
    if factor is None:
        factor = cee_data.facteur_f

    result = calculate(
        power=cee_data.puissance_nominale,
        activity_coefficient=coefficient,
        engagement_duration=factor,
        unit_price=cee_data.tarif_kwh,
    )

    return cee_data.model_copy(update={
        "coefficient_activite": coefficient,
        "facteur_f": factor,
        "kwh_cumac": result.kwh_cumac,
        "prime_estimee": result.subsidy_amount,
    })
