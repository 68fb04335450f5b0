"""
OXA CRM - Numérotation des documents

- Devis standard : DEV-2025-IND-001   (compteur par client)
- Devis CEE      : CEE-2025-IND-0001  (compteur par client)
- Commande       : CMD-2025-001
- Facture        : FAC-202503-0001
"""

import re
from datetime import datetime, timezone
from typing import Optional


def client_code(entreprise: str) -> str:
    """3 premières lettres de la société, non-lettres remplacées par X"""
    prefix = (entreprise or "").strip()[:3].upper()
    prefix = re.sub(r"[^A-Z]", "X", prefix)
    return prefix.ljust(3, "X")


def devis_number(entreprise: str, seq: int, cee: bool = False, year: Optional[int] = None) -> str:
    year = year or datetime.now(timezone.utc).year
    if cee:
        return f"CEE-{year}-{client_code(entreprise)}-{seq:04d}"
    return f"DEV-{year}-{client_code(entreprise)}-{seq:03d}"


def commande_number(seq: int, year: Optional[int] = None) -> str:
    year = year or datetime.now(timezone.utc).year
    return f"CMD-{year}-{seq:03d}"


def facture_number(seq: int, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"FAC-{now.year}{now.month:02d}-{seq:04d}"


def numero_sequence(numero: str) -> int:
    """Compteur final d'un numéro (DEV-2025-IND-007 → 7), 0 si illisible"""
    match = re.search(r"-(\d+)$", numero or "")
    return int(match.group(1)) if match else 0
