"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Modèles Catalogue (Articles & Fournisseurs)                       ║
║                                                                              ║
║  RÈGLES ARTICLE:                                                             ║
║  - nom obligatoire                                                           ║
║  - prix_vente > 0, prix_achat >= 0                                           ║
║  - TVA entre 0 et 100%                                                       ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator

from .client import is_valid_email_format


class ArticleType(str, Enum):
    BIEN = "bien"
    SERVICE = "service"
    IPE = "IPE"
    ELEC = "ELEC"
    MATERIEL = "MATERIEL"
    MAIN_OEUVRE = "MAIN_OEUVRE"


UNITES = [
    "unité", "mètre", "mètre carré", "mètre cube", "kilogramme",
    "tonne", "litre", "heure", "jour", "forfait",
]


class ArticleCreate(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    nom: str
    description: Optional[str] = ""
    type: ArticleType = ArticleType.MATERIEL
    prix_achat: float = 0.0
    prix_vente: float
    tva: float = 20.0
    unite: str = "unité"
    fournisseur_id: Optional[str] = None
    reference_fournisseur: Optional[str] = ""
    actif: bool = True

    @field_validator('nom')
    @classmethod
    def validate_nom(cls, v):
        if not v or not v.strip():
            raise ValueError("Le nom est requis")
        return v.strip()

    @field_validator('prix_vente')
    @classmethod
    def validate_prix_vente(cls, v):
        if v <= 0:
            raise ValueError("Le prix de vente doit être positif")
        return v

    @field_validator('prix_achat')
    @classmethod
    def validate_prix_achat(cls, v):
        if v < 0:
            raise ValueError("Le prix d'achat ne peut pas être négatif")
        return v

    @field_validator('tva')
    @classmethod
    def validate_tva(cls, v):
        if v < 0 or v > 100:
            raise ValueError("La TVA doit être entre 0 et 100%")
        return v

    @field_validator('unite')
    @classmethod
    def validate_unite(cls, v):
        if v not in UNITES:
            raise ValueError(f"Unité invalide: {v}")
        return v


class ArticleUpdate(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    nom: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ArticleType] = None
    prix_achat: Optional[float] = None
    prix_vente: Optional[float] = None
    tva: Optional[float] = None
    unite: Optional[str] = None
    fournisseur_id: Optional[str] = None
    reference_fournisseur: Optional[str] = None
    actif: Optional[bool] = None

    @field_validator('prix_vente')
    @classmethod
    def validate_prix_vente(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Le prix de vente doit être positif")
        return v

    @field_validator('prix_achat')
    @classmethod
    def validate_prix_achat(cls, v):
        if v is not None and v < 0:
            raise ValueError("Le prix d'achat ne peut pas être négatif")
        return v

    @field_validator('tva')
    @classmethod
    def validate_tva(cls, v):
        if v is not None and (v < 0 or v > 100):
            raise ValueError("La TVA doit être entre 0 et 100%")
        return v


class QuickArticleCreate(BaseModel):
    """Article créé à la volée depuis une ligne de devis"""
    model_config = ConfigDict(allow_inf_nan=False)

    designation: str
    prix: float

    @field_validator('prix')
    @classmethod
    def validate_prix(cls, v):
        if v <= 0:
            raise ValueError("Le prix de vente doit être positif")
        return v


class FournisseurCreate(BaseModel):
    nom: str
    entreprise: str
    email: Optional[str] = ""
    telephone: Optional[str] = ""
    adresse: Optional[str] = ""
    ville: Optional[str] = ""
    code_postal: Optional[str] = ""
    pays: Optional[str] = "France"
    actif: bool = True

    @field_validator('nom', 'entreprise')
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Champ requis")
        return v.strip()

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if v and not is_valid_email_format(v):
            raise ValueError(f"Format email invalide: {v}")
        return v


class FournisseurUpdate(BaseModel):
    nom: Optional[str] = None
    entreprise: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    adresse: Optional[str] = None
    ville: Optional[str] = None
    code_postal: Optional[str] = None
    pays: Optional[str] = None
    actif: Optional[bool] = None
