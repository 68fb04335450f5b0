"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Modèle Commande                                                   ║
║                                                                              ║
║  Une commande naît TOUJOURS d'un devis accepté (POST /devis/{id}/convert)    ║
║  Cycle: en_cours → expediee → livree, annulee possible avant livraison       ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional
from pydantic import BaseModel, field_validator


COMMANDE_STATUSES = ["en_cours", "expediee", "livree", "annulee"]

COMMANDE_TRANSITIONS = {
    "en_cours": ["expediee", "livree", "annulee"],
    "expediee": ["livree", "annulee"],
    "livree": [],
    "annulee": [],
}


class CommandeStatusUpdate(BaseModel):
    statut: str
    notes: Optional[str] = None

    @field_validator('statut')
    @classmethod
    def validate_statut(cls, v):
        if v not in COMMANDE_STATUSES:
            raise ValueError(f"Statut invalide: {v}. Valides: {COMMANDE_STATUSES}")
        return v
