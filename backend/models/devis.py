"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Modèle Devis (Quote)                                              ║
║                                                                              ║
║  QuoteLine   : ligne immuable, prix_total = quantite × prix_unitaire         ║
║  QuoteTotals : HT / TVA / TTC / reste HT après prime CEE / marge             ║
║  Quote       : lignes + taux TVA + prime CEE, totaux toujours recalculés     ║
║                                                                              ║
║  Les champs ont un nom Python (anglais) et un alias stockage (français).     ║
║  Deux types de devis: standard et cee                                        ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .cee import CEEData


DEVIS_STATUSES = ["brouillon", "envoye", "accepte", "refuse", "expire"]

# Transitions autorisées du cycle de vie d'un devis
DEVIS_TRANSITIONS = {
    "brouillon": ["envoye"],
    "envoye": ["accepte", "refuse", "expire"],
    "accepte": [],
    "refuse": [],
    "expire": [],
}

DEFAULT_CONDITIONS = {
    "delais": "4 à 6 semaines après validation du devis",
    "modalites_paiement": "30% à la commande, 70% à la livraison",
    "garantie": "2 ans pièces et main d'œuvre",
    "penalites": "Pénalités de retard : 0,1% par jour de retard",
    "clause_juridique": "Tout litige relève de la compétence du Tribunal de Commerce de Paris",
}


class DevisType(str, Enum):
    STANDARD = "standard"
    CEE = "cee"


class CEEIntegrationMode(str, Enum):
    """deduction: prime déduite du net à payer / information: affichée seulement"""
    DEDUCTION = "deduction"
    INFORMATION = "information"


# ==================== COEUR: LIGNES ET TOTAUX ====================

class QuoteLine(BaseModel):
    """Ligne de devis (immuable)"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    designation: str = ""
    description: str = ""
    zone: str = ""
    quantity: float = Field(default=1.0, alias="quantite")
    unit_price: float = Field(default=0.0, alias="prix_unitaire")
    purchase_price: float = Field(default=0.0, alias="prix_achat")
    line_total: float = Field(default=0.0, alias="prix_total")
    article_id: Optional[str] = None
    position: int = Field(default=0, alias="ordre")
    remarks: str = Field(default="", alias="remarques")


class QuoteTotals(BaseModel):
    """Totaux dérivés d'un devis"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_ex_vat: float = Field(default=0.0, alias="total_ht")
    total_vat: float = Field(default=0.0, alias="total_tva")
    total_inc_vat: float = Field(default=0.0, alias="total_ttc")
    remaining_ex_vat: float = Field(default=0.0, alias="reste_a_payer_ht")
    total_margin: float = Field(default=0.0, alias="total_marge")
    subsidy_exceeds_total: bool = False


class Quote(BaseModel):
    """Devis en cours d'édition: on ne le modifie jamais en place"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    lines: List[QuoteLine] = Field(default_factory=list, alias="lignes")
    vat_rate: float = Field(default=20.0, alias="tva_taux")
    cee_subsidy: float = Field(default=0.0, alias="prime_cee")
    totals: QuoteTotals = Field(default_factory=QuoteTotals)


# ==================== API ====================

class DevisLineInput(BaseModel):
    """Ligne saisie (prix_total recalculé côté serveur)"""
    model_config = ConfigDict(allow_inf_nan=False)

    designation: str
    description: Optional[str] = ""
    zone: Optional[str] = ""
    quantite: float = 1.0
    prix_unitaire: float = 0.0
    prix_achat: float = 0.0
    article_id: Optional[str] = None
    remarques: Optional[str] = ""

    @field_validator('quantite')
    @classmethod
    def validate_quantite(cls, v):
        if v < 0:
            raise ValueError("La quantité ne peut pas être négative")
        return v


class CEEIntegration(BaseModel):
    mode: CEEIntegrationMode = CEEIntegrationMode.DEDUCTION
    afficher_bloc: bool = True


class DevisCreate(BaseModel):
    """
    Création d'un devis

    Exemple:
    {
        "type": "cee",
        "client_id": "xxx",
        "objet": "Variation électronique de vitesse",
        "lignes": [{"designation": "Variateur 75kW", "quantite": 2, "prix_unitaire": 4500}],
        "cee_data": {"profil_fonctionnement": "2x8h", "puissance_nominale": 150, "duree_contrat": 3}
    }
    """
    model_config = ConfigDict(allow_inf_nan=False)

    type: DevisType = DevisType.STANDARD
    client_id: str = ""
    objet: str = ""
    description_operation: Optional[str] = ""
    date_devis: Optional[str] = None
    lignes: List[DevisLineInput] = []
    tva_taux: float = 20.0
    cee_data: Optional[CEEData] = None
    cee_integration: CEEIntegration = CEEIntegration()
    delais: str = DEFAULT_CONDITIONS["delais"]
    modalites_paiement: str = DEFAULT_CONDITIONS["modalites_paiement"]
    garantie: str = DEFAULT_CONDITIONS["garantie"]
    penalites: str = DEFAULT_CONDITIONS["penalites"]
    clause_juridique: str = DEFAULT_CONDITIONS["clause_juridique"]
    notes: Optional[str] = ""

    @field_validator('tva_taux')
    @classmethod
    def validate_tva(cls, v):
        if v < 0 or v > 100:
            raise ValueError("La TVA doit être entre 0 et 100%")
        return v


class DevisUpdate(BaseModel):
    """Mise à jour d'un devis (les totaux sont toujours recalculés)"""
    model_config = ConfigDict(allow_inf_nan=False)

    client_id: Optional[str] = None
    objet: Optional[str] = None
    description_operation: Optional[str] = None
    date_devis: Optional[str] = None
    lignes: Optional[List[DevisLineInput]] = None
    tva_taux: Optional[float] = None
    cee_data: Optional[CEEData] = None
    cee_integration: Optional[CEEIntegration] = None
    delais: Optional[str] = None
    modalites_paiement: Optional[str] = None
    garantie: Optional[str] = None
    penalites: Optional[str] = None
    clause_juridique: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('tva_taux')
    @classmethod
    def validate_tva(cls, v):
        if v is not None and (v < 0 or v > 100):
            raise ValueError("La TVA doit être entre 0 et 100%")
        return v


class DevisStatusUpdate(BaseModel):
    statut: str

    @field_validator('statut')
    @classmethod
    def validate_statut(cls, v):
        if v not in DEVIS_STATUSES:
            raise ValueError(f"Statut invalide: {v}. Valides: {DEVIS_STATUSES}")
        return v


class DevisRecomputeRequest(BaseModel):
    """Aperçu des totaux pendant l'édition (sans sauvegarde)"""
    model_config = ConfigDict(allow_inf_nan=False)

    lignes: List[DevisLineInput] = []
    tva_taux: float = 20.0
    cee_data: Optional[CEEData] = None
    prime_cee: float = 0.0
    cee_integration: CEEIntegration = CEEIntegration()
