"""
OXA CRM - Service Devis

Construction des documents devis (standard et CEE), validation,
duplication, conversion en commande, statistiques CEE et export.

Toutes les fonctions sont pures: elles reçoivent des dicts et renvoient des
dicts, la lecture/écriture reste dans les routes.

Un document devis stocke:
- lignes_data  : lignes au format base (alias français)
- cee_data     : bloc CEE recalculé (devis type cee uniquement)
- les totaux dérivés (total_ht, total_tva, total_ttc, reste_a_payer_ht, ...)
"""

import logging
from datetime import datetime, timedelta, timezone, date
from typing import List, Optional, Dict, Any

import config
from config import generate_id, now_iso
from models.cee import CEEData, CEEInputs
from models.devis import (
    QuoteLine,
    DevisLineInput,
    DevisCreate,
    DevisUpdate,
    DevisType,
    CEEIntegration,
    DEVIS_TRANSITIONS,
)
from services.cee import compute_cee_block, format_formula, validate_cee_inputs
from services.quote_totals import make_line, recompute_totals, net_to_pay, group_lines_by_zone

logger = logging.getLogger("devis")


# ════════════════════════════════════════════════════════════════════════
# LIGNES
# ════════════════════════════════════════════════════════════════════════

def lines_from_input(lignes: List[DevisLineInput]) -> List[QuoteLine]:
    """Lignes saisies → QuoteLine avec prix_total recalculé"""
    return [
        make_line(
            id=generate_id(),
            designation=l.designation,
            description=l.description or "",
            zone=l.zone or "",
            quantity=l.quantite,
            unit_price=l.prix_unitaire,
            purchase_price=l.prix_achat,
            article_id=l.article_id,
            position=i + 1,
            remarks=l.remarques or "",
        )
        for i, l in enumerate(lignes)
    ]


def lines_from_document(devis: dict) -> List[QuoteLine]:
    return [QuoteLine.model_validate(d) for d in devis.get("lignes_data") or []]


def lines_to_document(lines: List[QuoteLine]) -> List[dict]:
    return [l.model_dump(by_alias=True) for l in lines]


# ════════════════════════════════════════════════════════════════════════
# CALCULS
# ════════════════════════════════════════════════════════════════════════

def compute_devis_figures(
    lines: List[QuoteLine],
    tva_taux: float,
    devis_type: str,
    cee_data: Optional[CEEData] = None,
    integration: Optional[CEEIntegration] = None,
) -> Dict[str, Any]:
    """
    Recalcule bloc CEE + totaux.

    Un devis standard n'a jamais de prime. Pour un devis CEE la prime est
    celle du bloc CEE recalculé (formule IND-UT-134).
    """
    integration = integration or CEEIntegration()
    figures: Dict[str, Any] = {}

    prime_cee = 0.0
    if devis_type == DevisType.CEE.value:
        block = compute_cee_block(cee_data or CEEData())
        prime_cee = block.prime_estimee
        figures["cee_data"] = block.model_dump(mode="json")
    else:
        figures["cee_data"] = None

    totals = recompute_totals(lines, tva_taux, prime_cee)
    figures.update(totals.model_dump(by_alias=True))
    figures["prime_cee"] = prime_cee
    figures["net_a_payer"] = net_to_pay(totals, prime_cee, integration.mode)
    return figures


def preview_totals(lignes: List[DevisLineInput], tva_taux: float, prime_cee: float,
                   cee_data: Optional[CEEData] = None,
                   integration: Optional[CEEIntegration] = None) -> Dict[str, Any]:
    """Aperçu pour l'écran d'édition: prime du bloc CEE si fourni, sinon prime saisie"""
    integration = integration or CEEIntegration()
    lines = lines_from_input(lignes)
    result: Dict[str, Any] = {"lignes": lines_to_document(lines)}

    if cee_data is not None:
        block = compute_cee_block(cee_data)
        prime_cee = block.prime_estimee
        result["cee_data"] = block.model_dump(mode="json")

    totals = recompute_totals(lines, tva_taux, prime_cee)
    result.update(totals.model_dump(by_alias=True))
    result["prime_cee"] = prime_cee
    result["net_a_payer"] = net_to_pay(totals, prime_cee, integration.mode)
    return result


# ════════════════════════════════════════════════════════════════════════
# VALIDATION
# ════════════════════════════════════════════════════════════════════════

def validate_devis(devis: dict) -> List[str]:
    """Règles de sauvegarde d'un devis. Retourne la liste des erreurs."""
    errors = []

    if not devis.get("client_id"):
        errors.append("Client requis")
    if not (devis.get("objet") or "").strip():
        errors.append("Objet requis")
    if not devis.get("lignes_data"):
        errors.append("Au moins une ligne requise")
    if devis.get("type") == DevisType.CEE.value:
        cee = devis.get("cee_data") or {}
        if not cee.get("puissance_nominale") or cee["puissance_nominale"] <= 0:
            errors.append("Puissance nominale requise")
        errors.extend(validate_cee_inputs(cee_inputs_from_block(cee)))

    return errors


def cee_inputs_from_block(cee: dict) -> CEEInputs:
    """Entrées moteur d'un bloc CEE déjà recalculé (F = facteur retenu)"""
    defaults = CEEData()
    return CEEInputs(
        nominal_power=cee.get("puissance_nominale", defaults.puissance_nominale),
        activity_coefficient=cee.get("coefficient_activite", defaults.coefficient_activite),
        engagement_duration=cee.get("facteur_f", defaults.facteur_f),
        unit_price=cee.get("tarif_kwh", defaults.tarif_kwh),
    )


def can_transition(current: str, target: str) -> bool:
    return target in DEVIS_TRANSITIONS.get(current, [])


# ════════════════════════════════════════════════════════════════════════
# DOCUMENTS
# ════════════════════════════════════════════════════════════════════════

def _validity_date(date_devis: str) -> str:
    start = date.fromisoformat(date_devis[:10])
    return (start + timedelta(days=config.QUOTE_VALIDITY_DAYS)).isoformat()


def client_label(client: Optional[dict]) -> str:
    if not client:
        return ""
    return client.get("entreprise") or client.get("nom", "")


def build_devis_document(data: DevisCreate, client: Optional[dict], numero: str) -> dict:
    """Nouveau document devis (statut brouillon)"""
    lines = lines_from_input(data.lignes)
    date_devis = data.date_devis or date.today().isoformat()

    devis = {
        "id": generate_id(),
        "numero": numero,
        "type": data.type.value,
        "statut": "brouillon",
        "date_devis": date_devis,
        "date_validite": _validity_date(date_devis),
        "client_id": data.client_id,
        "client_name": client_label(client),
        "objet": data.objet,
        "description_operation": data.description_operation or "",
        "lignes_data": lines_to_document(lines),
        "tva_taux": data.tva_taux,
        "cee_integration": data.cee_integration.model_dump(mode="json"),
        "delais": data.delais,
        "modalites_paiement": data.modalites_paiement,
        "garantie": data.garantie,
        "penalites": data.penalites,
        "clause_juridique": data.clause_juridique,
        "notes": data.notes or "",
        "created_at": now_iso(),
        "updated_at": now_iso(),
    }
    devis.update(compute_devis_figures(
        lines, data.tva_taux, data.type.value, data.cee_data, data.cee_integration
    ))
    _warn_if_subsidy_exceeds(devis)
    return devis


def apply_devis_update(devis: dict, data: DevisUpdate, client: Optional[dict] = None) -> dict:
    """Applique une mise à jour puis recalcule tout le devis"""
    updated = dict(devis)
    changes = data.model_dump(exclude_none=True, exclude={"lignes", "cee_data", "cee_integration"})
    updated.update(changes)

    if data.lignes is not None:
        lines = lines_from_input(data.lignes)
        updated["lignes_data"] = lines_to_document(lines)
    else:
        lines = lines_from_document(devis)

    if data.cee_integration is not None:
        updated["cee_integration"] = data.cee_integration.model_dump(mode="json")
    integration = CEEIntegration(**(updated.get("cee_integration") or {}))

    cee_data = data.cee_data
    if cee_data is None and devis.get("cee_data"):
        cee_data = CEEData(**devis["cee_data"])

    if data.date_devis:
        updated["date_validite"] = _validity_date(data.date_devis)
    if client is not None:
        updated["client_name"] = client_label(client)

    updated.update(compute_devis_figures(
        lines, updated.get("tva_taux", config.DEFAULT_VAT_RATE), updated.get("type"), cee_data, integration
    ))
    updated["updated_at"] = now_iso()
    _warn_if_subsidy_exceeds(updated)
    return updated


def duplicate_devis_document(original: dict, numero: str) -> dict:
    """Copie en brouillon avec nouvelles dates et nouveaux identifiants de lignes"""
    today = date.today().isoformat()
    copy_doc = dict(original)
    copy_doc.update({
        "id": generate_id(),
        "numero": numero,
        "statut": "brouillon",
        "date_devis": today,
        "date_validite": _validity_date(today),
        "lignes_data": [dict(l, id=generate_id()) for l in original.get("lignes_data") or []],
        "duplicated_from": original.get("id"),
        "created_at": now_iso(),
        "updated_at": now_iso(),
    })
    copy_doc.pop("commande_id", None)
    return copy_doc


def build_commande_from_devis(devis: dict, numero: str) -> dict:
    """Commande créée depuis un devis accepté"""
    now = datetime.now(timezone.utc)
    return {
        "id": generate_id(),
        "numero": numero,
        "devis_id": devis["id"],
        "client_id": devis.get("client_id"),
        "client_name": devis.get("client_name", ""),
        "statut": "en_cours",
        "date_commande": now.isoformat(),
        "date_livraison_prevue": (now + timedelta(days=14)).isoformat(),
        "date_livraison": None,
        "tva_taux": devis.get("tva_taux", config.DEFAULT_VAT_RATE),
        "total_ht": devis.get("total_ht", 0.0),
        "total_tva": devis.get("total_tva", 0.0),
        "total_ttc": devis.get("total_ttc", 0.0),
        "prime_cee": devis.get("prime_cee", 0.0),
        "notes": devis.get("objet", ""),
        "created_at": now_iso(),
        "updated_at": now_iso(),
    }


def _warn_if_subsidy_exceeds(devis: dict):
    if devis.get("subsidy_exceeds_total"):
        logger.warning(
            f"Prime CEE supérieure au total HT: devis {devis.get('numero')} "
            f"(prime={devis.get('prime_cee')}, total_ht={devis.get('total_ht')})"
        )


# ════════════════════════════════════════════════════════════════════════
# STATISTIQUES CEE
# ════════════════════════════════════════════════════════════════════════

def compute_cee_stats(devis_list: List[dict]) -> dict:
    """
    Statistiques des devis CEE:
    total, prime cumulée, kWh cumac cumulés, répartition par statut,
    évolution mensuelle (12 derniers mois présents)
    """
    cee_devis = [d for d in devis_list if d.get("type") == DevisType.CEE.value]

    stats = {
        "total_devis": len(cee_devis),
        "total_prime_cee": sum(d.get("prime_cee", 0.0) for d in cee_devis),
        "total_kwh_cumac": sum((d.get("cee_data") or {}).get("kwh_cumac", 0.0) for d in cee_devis),
        "devis_par_statut": {},
        "evolution_mensuelle": [],
    }

    monthly: Dict[str, dict] = {}
    for d in cee_devis:
        statut = d.get("statut", "brouillon")
        stats["devis_par_statut"][statut] = stats["devis_par_statut"].get(statut, 0) + 1

        month = (d.get("created_at") or "")[:7]
        if not month:
            continue
        entry = monthly.setdefault(month, {"count": 0, "prime_total": 0.0})
        entry["count"] += 1
        entry["prime_total"] += d.get("prime_cee", 0.0)

    stats["evolution_mensuelle"] = [
        {"mois": mois, **values} for mois, values in sorted(monthly.items())
    ][-12:]
    return stats


# ════════════════════════════════════════════════════════════════════════
# EXPORT
# ════════════════════════════════════════════════════════════════════════

def build_export_payload(devis: dict, client: Optional[dict]) -> dict:
    """Données prêtes pour l'impression (lignes groupées par zone)"""
    client = client or {}
    zones = group_lines_by_zone(lines_from_document(devis))

    payload = {
        "numero": devis.get("numero"),
        "type": devis.get("type"),
        "date_devis": devis.get("date_devis"),
        "date_validite": devis.get("date_validite"),
        "objet": devis.get("objet"),
        "description_operation": devis.get("description_operation", ""),
        "client": {
            key: client.get(key, "")
            for key in ("entreprise", "nom", "adresse", "ville", "code_postal", "email", "telephone")
        },
        "zones": [
            {
                "nom": nom,
                "lignes": [
                    {
                        "designation": l.designation,
                        "description": l.description,
                        "quantite": l.quantity,
                        "prix_unitaire": round(l.unit_price, 2),
                        "prix_total": round(l.line_total, 2),
                    }
                    for l in lignes
                ],
            }
            for nom, lignes in zones.items()
        ],
        "totaux": {
            key: round(devis.get(key, 0.0), 2)
            for key in ("total_ht", "total_tva", "total_ttc", "prime_cee", "reste_a_payer_ht", "net_a_payer")
        },
        "conditions": {
            key: devis.get(key, "")
            for key in ("delais", "modalites_paiement", "garantie", "penalites", "clause_juridique")
        },
        "notes": devis.get("notes", ""),
        "statut": devis.get("statut"),
    }

    cee = devis.get("cee_data")
    if cee and (devis.get("cee_integration") or {}).get("afficher_bloc", True):
        inputs = CEEInputs(
            nominal_power=cee.get("puissance_nominale", 0.0),
            activity_coefficient=cee.get("coefficient_activite", 0.0),
            engagement_duration=cee.get("facteur_f", 0.0),
            unit_price=cee.get("tarif_kwh", 0.0),
        )
        payload["cee"] = {
            "profil_fonctionnement": cee.get("profil_fonctionnement"),
            "puissance_nominale": cee.get("puissance_nominale"),
            "duree_contrat": cee.get("duree_contrat"),
            "kwh_cumac": round(cee.get("kwh_cumac", 0.0), 2),
            "prime_estimee": round(cee.get("prime_estimee", 0.0), 2),
            "operateur_nom": cee.get("operateur_nom"),
            "formule": format_formula(inputs),
        }

    return payload
