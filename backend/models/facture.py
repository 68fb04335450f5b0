"""
OXA CRM - Modèle Facture
Cycle: brouillon → envoyee → payee, envoyee passée d'échéance → en_retard
"""

from typing import Optional
from pydantic import BaseModel


FACTURE_STATUSES = ["brouillon", "envoyee", "payee", "en_retard", "annulee"]


class FactureCreate(BaseModel):
    """Facture générée depuis une commande"""
    commande_id: str
    notes: Optional[str] = ""


class FacturePaid(BaseModel):
    date_paiement: Optional[str] = None


class FactureNotes(BaseModel):
    """Corps optionnel de POST /commandes/{id}/invoice"""
    notes: Optional[str] = ""
