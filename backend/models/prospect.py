"""
OXA CRM - Modèle Prospect
Cycle: nouveau → contacte → qualifie → converti | perdu
"""

from typing import Optional
from pydantic import BaseModel, field_validator

from .client import is_valid_email_format


PROSPECT_STATUSES = ["nouveau", "contacte", "qualifie", "converti", "perdu"]


class ProspectCreate(BaseModel):
    nom: str
    entreprise: str
    email: Optional[str] = ""
    telephone: Optional[str] = ""
    statut: str = "nouveau"
    source: Optional[str] = ""
    notes: Optional[str] = ""

    @field_validator('nom', 'entreprise')
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Champ requis")
        return v.strip()

    @field_validator('statut')
    @classmethod
    def validate_statut(cls, v):
        if v not in PROSPECT_STATUSES:
            raise ValueError(f"Statut invalide: {v}. Valides: {PROSPECT_STATUSES}")
        return v

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if v and not is_valid_email_format(v):
            raise ValueError(f"Format email invalide: {v}")
        return v


class ProspectUpdate(BaseModel):
    nom: Optional[str] = None
    entreprise: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    statut: Optional[str] = None
    source: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('statut')
    @classmethod
    def validate_statut(cls, v):
        if v is not None and v not in PROSPECT_STATUSES:
            raise ValueError(f"Statut invalide: {v}")
        return v


class ProspectConvert(BaseModel):
    """Champs complémentaires pour créer le client"""
    siret: Optional[str] = ""
    adresse: Optional[str] = ""
    ville: Optional[str] = ""
    code_postal: Optional[str] = ""
    contact_principal: Optional[str] = ""
