"""
Configuration et utilitaires partagés
"""

import os
import uuid
from datetime import datetime, timezone, date
from dotenv import load_dotenv
from pathlib import Path

# Charger .env
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# MongoDB (optionnel: sans MONGO_URL on bascule sur les données de démo)
MONGO_URL = os.environ.get('MONGO_URL', '')
DB_NAME = os.environ.get('DB_NAME', 'oxa_crm')

# Source de données: "mongo" ou "fixture"
DATA_SOURCE = os.environ.get('DATA_SOURCE', 'mongo' if MONGO_URL else 'fixture').lower()

CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

# Paramètres commerciaux
DEFAULT_VAT_RATE = float(os.environ.get('DEFAULT_VAT_RATE', '20.0'))
QUOTE_VALIDITY_DAYS = int(os.environ.get('QUOTE_VALIDITY_DAYS', '30'))
PAYMENT_TERMS_DAYS = int(os.environ.get('PAYMENT_TERMS_DAYS', '30'))


# ==================== HELPERS ====================

def generate_id() -> str:
    """Génère un identifiant de document"""
    return str(uuid.uuid4())

def now_iso() -> str:
    """Retourne la date/heure actuelle en ISO"""
    return datetime.now(timezone.utc).isoformat()

def today_iso() -> str:
    """Retourne la date du jour (YYYY-MM-DD)"""
    return date.today().isoformat()
