"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Modèle Client                                                     ║
║                                                                              ║
║  Un client peut venir de la conversion d'un prospect (prospect_id)           ║
║  SIRET: 14 chiffres si renseigné                                             ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional, List
from pydantic import BaseModel, field_validator
import re


def is_valid_email_format(email: str) -> bool:
    """Vérifie le format email basique"""
    if not email:
        return False
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def normalize_siret(siret: str) -> str:
    """Supprime espaces et séparateurs"""
    return ''.join(filter(str.isdigit, siret or ""))


def _check_siret(v):
    if v is None or v == "":
        return v
    digits = normalize_siret(v)
    if len(digits) != 14:
        raise ValueError(f"SIRET invalide: {v} (14 chiffres requis)")
    return digits


def _check_email(v):
    if v and not is_valid_email_format(v):
        raise ValueError(f"Format email invalide: {v}")
    return v


class ClientCreate(BaseModel):
    """Création d'un client"""
    nom: str
    entreprise: str
    siret: Optional[str] = ""
    email: Optional[str] = ""
    telephone: Optional[str] = ""
    adresse: Optional[str] = ""
    ville: Optional[str] = ""
    code_postal: Optional[str] = ""
    pays: Optional[str] = "France"
    contact_principal: Optional[str] = ""
    notes: Optional[str] = ""
    prospect_id: Optional[str] = None

    @field_validator('nom', 'entreprise')
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Champ requis")
        return v.strip()

    @field_validator('siret')
    @classmethod
    def validate_siret(cls, v):
        return _check_siret(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)


class ClientUpdate(BaseModel):
    """Mise à jour d'un client"""
    nom: Optional[str] = None
    entreprise: Optional[str] = None
    siret: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    adresse: Optional[str] = None
    ville: Optional[str] = None
    code_postal: Optional[str] = None
    pays: Optional[str] = None
    contact_principal: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('siret')
    @classmethod
    def validate_siret(cls, v):
        return _check_siret(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)


class ClientResponse(BaseModel):
    """Réponse client pour l'API"""
    id: str
    nom: str
    entreprise: str
    siret: str = ""
    email: str = ""
    telephone: str = ""
    adresse: str = ""
    ville: str = ""
    code_postal: str = ""
    pays: str = "France"
    contact_principal: str = ""
    notes: str = ""
    prospect_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


class ClientListResponse(BaseModel):
    """Liste de clients"""
    clients: List[ClientResponse]
    count: int
