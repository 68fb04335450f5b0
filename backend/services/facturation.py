"""
OXA CRM - Facturation

Facture générée depuis une commande: reprend les montants de la commande,
échéance à PAYMENT_TERMS_DAYS jours.

Cycle: brouillon → envoyee → payee
       envoyee dont l'échéance est passée → en_retard (payable ensuite)
"""

import logging
from datetime import datetime, timedelta, timezone

import config
from config import generate_id, now_iso
from services.data_source import DataSource
from services.numbering import facture_number

logger = logging.getLogger("facturation")

PAYABLE_STATUSES = ["envoyee", "en_retard"]


class FacturationError(Exception):
    """Règle métier de facturation non respectée"""
    pass


def build_facture_from_commande(commande: dict, numero: str, notes: str = "") -> dict:
    now = datetime.now(timezone.utc)
    return {
        "id": generate_id(),
        "numero": numero,
        "commande_id": commande["id"],
        "devis_id": commande.get("devis_id"),
        "client_id": commande.get("client_id"),
        "client_name": commande.get("client_name", ""),
        "statut": "brouillon",
        "date_facture": now.isoformat(),
        "date_echeance": (now + timedelta(days=config.PAYMENT_TERMS_DAYS)).isoformat(),
        "date_envoi": None,
        "date_paiement": None,
        "tva_taux": commande.get("tva_taux", config.DEFAULT_VAT_RATE),
        "total_ht": commande.get("total_ht", 0.0),
        "total_tva": commande.get("total_tva", 0.0),
        "total_ttc": commande.get("total_ttc", 0.0),
        "notes": notes or "",
        "created_at": now_iso(),
        "updated_at": now_iso(),
    }


async def create_facture_for_commande(ds: DataSource, commande: dict, notes: str = "") -> dict:
    """
    Crée la facture d'une commande.

    Raises:
        FacturationError: commande annulée ou déjà facturée
    """
    if commande.get("statut") == "annulee":
        raise FacturationError("Commande annulée, facturation impossible")
    if await ds.count("factures", {"commande_id": commande["id"], "statut": {"$ne": "annulee"}}):
        raise FacturationError("Commande déjà facturée")

    numero = facture_number(await ds.count("factures") + 1)
    facture = build_facture_from_commande(commande, numero, notes)
    await ds.insert("factures", facture)
    await ds.update("commandes", {"id": commande["id"]}, {"facture_id": facture["id"], "updated_at": now_iso()})

    logger.info(f"Facture {numero} créée pour la commande {commande.get('numero')}")
    return facture


async def mark_overdue_factures(ds: DataSource) -> int:
    """Factures envoyées dont l'échéance est passée → en_retard"""
    count = await ds.update(
        "factures",
        {"statut": "envoyee", "date_echeance": {"$lt": now_iso()}},
        {"statut": "en_retard", "updated_at": now_iso()},
    )
    if count:
        logger.warning(f"{count} facture(s) en retard de paiement")
    return count
