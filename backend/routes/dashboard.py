"""
OXA CRM - Dashboard
Compteurs, chiffre d'affaires encaissé, marge et primes CEE des devis.
"""

from fastapi import APIRouter

from models import DEVIS_STATUSES
from services.data_source import get_data_source
from services.facturation import mark_overdue_factures

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

COUNTED_COLLECTIONS = ["prospects", "clients", "articles", "fournisseurs", "devis", "commandes", "factures"]


@router.get("/stats")
async def dashboard_stats():
    ds = get_data_source()
    await mark_overdue_factures(ds)

    counts = {name: await ds.count(name) for name in COUNTED_COLLECTIONS}

    devis_list = await ds.find("devis", {}, limit=10000)
    devis_par_statut = {statut: 0 for statut in DEVIS_STATUSES}
    for d in devis_list:
        statut = d.get("statut", "brouillon")
        devis_par_statut[statut] = devis_par_statut.get(statut, 0) + 1

    paid = await ds.find("factures", {"statut": "payee"}, limit=10000)
    monthly = {}
    for f in paid:
        month = (f.get("date_paiement") or f.get("date_facture") or "")[:7]
        if month:
            monthly[month] = monthly.get(month, 0.0) + f.get("total_ttc", 0.0)

    return {
        "counts": counts,
        "chiffre_affaires": round(sum(f.get("total_ttc", 0.0) for f in paid), 2),
        "total_marge": round(sum(d.get("total_marge", 0.0) for d in devis_list), 2),
        "total_prime_cee": round(sum(d.get("prime_cee", 0.0) for d in devis_list), 2),
        "devis_par_statut": devis_par_statut,
        "factures_en_retard": await ds.count("factures", {"statut": "en_retard"}),
        "ca_mensuel": [
            {"mois": mois, "montant": round(montant, 2)}
            for mois, montant in sorted(monthly.items())
        ][-12:],
    }
