"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Models Package                                                    ║
║                                                                              ║
║  Exporte tous les modèles pour import facile                                 ║
║  from models import ClientCreate, DevisCreate, CEEInputs, etc.               ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

# CEE
from .cee import (
    CEEFormula,
    ActivityProfile,
    CEEInputs,
    CEEResult,
    CEECalculateRequest,
    CEECalculateResponse,
    CEECalculationSave,
    CEEData,
)

# Devis
from .devis import (
    DEVIS_STATUSES,
    DEVIS_TRANSITIONS,
    DevisType,
    CEEIntegrationMode,
    CEEIntegration,
    QuoteLine,
    QuoteTotals,
    Quote,
    DevisLineInput,
    DevisCreate,
    DevisUpdate,
    DevisStatusUpdate,
    DevisRecomputeRequest,
)

# Prospects & Clients
from .prospect import (
    PROSPECT_STATUSES,
    ProspectCreate,
    ProspectUpdate,
    ProspectConvert,
)
from .client import (
    ClientCreate,
    ClientUpdate,
    ClientResponse,
    ClientListResponse,
)

# Catalogue
from .article import (
    ArticleType,
    ArticleCreate,
    ArticleUpdate,
    QuickArticleCreate,
    FournisseurCreate,
    FournisseurUpdate,
)

# Commandes & Factures
from .commande import (
    COMMANDE_STATUSES,
    COMMANDE_TRANSITIONS,
    CommandeStatusUpdate,
)
from .facture import (
    FACTURE_STATUSES,
    FactureCreate,
    FacturePaid,
    FactureNotes,
)

__all__ = [
    # CEE
    "CEEFormula",
    "ActivityProfile",
    "CEEInputs",
    "CEEResult",
    "CEECalculateRequest",
    "CEECalculateResponse",
    "CEECalculationSave",
    "CEEData",
    # Devis
    "DEVIS_STATUSES",
    "DEVIS_TRANSITIONS",
    "DevisType",
    "CEEIntegrationMode",
    "CEEIntegration",
    "QuoteLine",
    "QuoteTotals",
    "Quote",
    "DevisLineInput",
    "DevisCreate",
    "DevisUpdate",
    "DevisStatusUpdate",
    "DevisRecomputeRequest",
    # Prospects & Clients
    "PROSPECT_STATUSES",
    "ProspectCreate",
    "ProspectUpdate",
    "ProspectConvert",
    "ClientCreate",
    "ClientUpdate",
    "ClientResponse",
    "ClientListResponse",
    # Catalogue
    "ArticleType",
    "ArticleCreate",
    "ArticleUpdate",
    "QuickArticleCreate",
    "FournisseurCreate",
    "FournisseurUpdate",
    # Commandes & Factures
    "COMMANDE_STATUSES",
    "COMMANDE_TRANSITIONS",
    "CommandeStatusUpdate",
    "FACTURE_STATUSES",
    "FactureCreate",
    "FacturePaid",
    "FactureNotes",
]
