"""
OXA CRM - Données de démonstration

Jeu de données chargé par FixtureDataSource quand aucune base n'est
configurée. Les devis sont construits avec les mêmes services que l'API
pour que leurs totaux respectent les invariants.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List

from models.devis import DevisCreate
from services.devis_service import build_devis_document


def _iso(days: int = 0) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def _prospects() -> List[dict]:
    return [
        {
            "id": "prospect-1",
            "nom": "Martin Dubois",
            "entreprise": "TechCorp Industries",
            "email": "martin.dubois@techcorp.fr",
            "telephone": "01 23 45 67 89",
            "statut": "nouveau",
            "source": "Site web",
            "notes": "Intéressé par nos solutions de décarbonation",
            "created_at": _iso(-3),
            "updated_at": _iso(-3),
        },
        {
            "id": "prospect-2",
            "nom": "Sophie Laurent",
            "entreprise": "GreenFactory",
            "email": "sophie.laurent@greenfactory.com",
            "telephone": "01 98 76 54 32",
            "statut": "contacte",
            "source": "Salon professionnel",
            "notes": "Demande de devis pour installation 500kW",
            "created_at": _iso(-10),
            "updated_at": _iso(-2),
        },
    ]


def _clients() -> List[dict]:
    return [
        {
            "id": "client-1",
            "nom": "Jean Dupont",
            "entreprise": "Industrie Verte SA",
            "siret": "12345678901234",
            "email": "jean.dupont@industrie-verte.fr",
            "telephone": "01 23 45 67 89",
            "adresse": "123 Rue de la Paix",
            "ville": "Paris",
            "code_postal": "75001",
            "pays": "France",
            "contact_principal": "Jean Dupont - Directeur Technique",
            "notes": "Client premium",
            "prospect_id": None,
            "created_at": _iso(-60),
            "updated_at": _iso(-60),
        },
        {
            "id": "client-2",
            "nom": "Claire Morel",
            "entreprise": "Fonderie du Rhône",
            "siret": "98765432109876",
            "email": "c.morel@fonderie-rhone.fr",
            "telephone": "04 72 00 11 22",
            "adresse": "8 Quai Perrache",
            "ville": "Lyon",
            "code_postal": "69002",
            "pays": "France",
            "contact_principal": "Claire Morel - Responsable Énergie",
            "notes": "",
            "prospect_id": None,
            "created_at": _iso(-40),
            "updated_at": _iso(-40),
        },
    ]


def _fournisseurs() -> List[dict]:
    return [
        {
            "id": "fournisseur-1",
            "nom": "Pierre Martin",
            "entreprise": "TechnoVert Solutions",
            "email": "pierre.martin@technoverts.fr",
            "telephone": "01 23 45 67 89",
            "adresse": "456 Avenue de l'Innovation",
            "ville": "Lyon",
            "code_postal": "69000",
            "pays": "France",
            "actif": True,
            "created_at": _iso(-90),
            "updated_at": _iso(-90),
        },
        {
            "id": "fournisseur-2",
            "nom": "Sophie Dubois",
            "entreprise": "EcoMat Industries",
            "email": "sophie.dubois@ecomat.com",
            "telephone": "01 98 76 54 32",
            "adresse": "789 Rue de l'Écologie",
            "ville": "Marseille",
            "code_postal": "13000",
            "pays": "France",
            "actif": True,
            "created_at": _iso(-90),
            "updated_at": _iso(-90),
        },
    ]


def _articles() -> List[dict]:
    return [
        {
            "id": "article-1",
            "nom": "Récupérateur de chaleur industriel",
            "description": "Système de récupération de chaleur haute performance pour industrie",
            "type": "IPE",
            "prix_achat": 8000.0,
            "prix_vente": 12000.0,
            "tva": 20.0,
            "unite": "unité",
            "fournisseur_id": "fournisseur-1",
            "reference_fournisseur": "TV-RC-400",
            "actif": True,
            "created_at": _iso(-90),
            "updated_at": _iso(-90),
        },
        {
            "id": "article-2",
            "nom": "Installation et mise en service",
            "description": "Service d'installation et de mise en service des équipements",
            "type": "MAIN_OEUVRE",
            "prix_achat": 0.0,
            "prix_vente": 2500.0,
            "tva": 20.0,
            "unite": "jour",
            "fournisseur_id": None,
            "reference_fournisseur": "",
            "actif": True,
            "created_at": _iso(-90),
            "updated_at": _iso(-90),
        },
        {
            "id": "article-3",
            "nom": "Variateur électronique de vitesse 75 kW",
            "description": "Variateur pour moteur asynchrone (fiche IND-UT-134)",
            "type": "ELEC",
            "prix_achat": 3100.0,
            "prix_vente": 4500.0,
            "tva": 20.0,
            "unite": "unité",
            "fournisseur_id": "fournisseur-2",
            "reference_fournisseur": "EM-VEV-75",
            "actif": True,
            "created_at": _iso(-90),
            "updated_at": _iso(-90),
        },
    ]


def _devis(clients: List[dict]) -> List[dict]:
    by_id = {c["id"]: c for c in clients}

    cee = build_devis_document(
        DevisCreate(
            type="cee",
            client_id="client-1",
            objet="Installation système efficacité énergétique",
            description_operation="Installation d'un système de récupération de chaleur",
            lignes=[
                {"designation": "Étude technique préalable", "zone": "Étude",
                 "quantite": 1, "prix_unitaire": 1500},
                {"designation": "Échangeur de chaleur haute performance", "zone": "Matériel",
                 "quantite": 1, "prix_unitaire": 8500, "prix_achat": 6200},
            ],
            cee_data={"profil_fonctionnement": "2x8h", "puissance_nominale": 50, "duree_contrat": 3},
        ),
        by_id["client-1"],
        numero="CEE-2025-IND-0001",
    )
    cee["id"] = "devis-1"

    standard = build_devis_document(
        DevisCreate(
            type="standard",
            client_id="client-2",
            objet="Variation de vitesse ventilation",
            lignes=[
                {"designation": "Variateur électronique de vitesse 75 kW", "zone": "Matériel",
                 "quantite": 2, "prix_unitaire": 4500, "prix_achat": 3100, "article_id": "article-3"},
                {"designation": "Installation et mise en service", "zone": "Main d'œuvre",
                 "quantite": 1, "prix_unitaire": 2500, "article_id": "article-2"},
            ],
        ),
        by_id["client-2"],
        numero="DEV-2025-FON-001",
    )
    standard["id"] = "devis-2"
    standard["statut"] = "accepte"

    return [cee, standard]


def _commandes() -> List[dict]:
    return [
        {
            "id": "commande-1",
            "numero": "CMD-2024-001",
            "devis_id": None,
            "client_id": "client-1",
            "client_name": "Industrie Verte SA",
            "statut": "en_cours",
            "date_commande": _iso(),
            "date_livraison_prevue": _iso(14),
            "date_livraison": None,
            "tva_taux": 20.0,
            "total_ht": 15000.0,
            "total_tva": 3000.0,
            "total_ttc": 18000.0,
            "prime_cee": 0.0,
            "notes": "Installation système de récupération de chaleur",
            "created_at": _iso(),
            "updated_at": _iso(),
        },
        {
            "id": "commande-2",
            "numero": "CMD-2024-002",
            "devis_id": None,
            "client_id": "client-1",
            "client_name": "Industrie Verte SA",
            "statut": "livree",
            "date_commande": _iso(-30),
            "date_livraison_prevue": _iso(-7),
            "date_livraison": _iso(-5),
            "tva_taux": 20.0,
            "total_ht": 8000.0,
            "total_tva": 1600.0,
            "total_ttc": 9600.0,
            "prime_cee": 0.0,
            "notes": "Maintenance préventive",
            "created_at": _iso(-30),
            "updated_at": _iso(-5),
        },
    ]


def _factures() -> List[dict]:
    return [
        {
            "id": "facture-1",
            "numero": "FAC-2024-001",
            "commande_id": "commande-2",
            "client_id": "client-1",
            "client_name": "Industrie Verte SA",
            "statut": "payee",
            "date_facture": _iso(-5),
            "date_echeance": _iso(25),
            "date_paiement": _iso(-1),
            "tva_taux": 20.0,
            "total_ht": 8000.0,
            "total_tva": 1600.0,
            "total_ttc": 9600.0,
            "notes": "",
            "created_at": _iso(-5),
            "updated_at": _iso(-1),
        },
        {
            "id": "facture-2",
            "numero": "FAC-2024-003",
            "commande_id": None,
            "client_id": "client-1",
            "client_name": "Industrie Verte SA",
            "statut": "envoyee",
            "date_facture": _iso(-45),
            "date_echeance": _iso(-15),
            "date_paiement": None,
            "tva_taux": 20.0,
            "total_ht": 5000.0,
            "total_tva": 1000.0,
            "total_ttc": 6000.0,
            "notes": "Relance nécessaire",
            "created_at": _iso(-45),
            "updated_at": _iso(-45),
        },
    ]


def build_fixtures() -> Dict[str, List[dict]]:
    """Collections de démo, recréées à chaque appel"""
    clients = _clients()
    return {
        "prospects": _prospects(),
        "clients": clients,
        "fournisseurs": _fournisseurs(),
        "articles": _articles(),
        "devis": _devis(clients),
        "commandes": _commandes(),
        "factures": _factures(),
        "cee_calculs": [],
        "event_log": [],
    }
