"""
OXA CRM - Totaux de devis

Réduction pure d'une liste de lignes vers HT / TVA / TTC / reste HT.

Règles:
- prix_total d'une ligne = quantite × prix_unitaire, maintenu par les
  fonctions qui modifient la ligne (with_quantity, with_unit_price, make_line)
- l'agrégateur ne recalcule PAS les lignes, il additionne prix_total
- reste_a_payer_ht = total_ht - prime CEE, sans plancher à zéro
  (subsidy_exceeds_total signale le cas à l'écran)
- reste_a_payer_ht déduit toujours la prime, quel que soit le mode
  d'intégration CEE; seul net_a_payer (TTC) suit le mode: deduction
  retire la prime, information la laisse affichée sans la déduire
"""

from collections import OrderedDict
from typing import Iterable, List, Dict

from models.devis import QuoteLine, QuoteTotals, Quote, CEEIntegrationMode
from services.pricing import line_gross_margin


# ════════════════════════════════════════════════════════════════════════
# LIGNES
# ════════════════════════════════════════════════════════════════════════

def make_line(**fields) -> QuoteLine:
    """Construit une ligne avec un prix_total cohérent"""
    line = QuoteLine(**fields)
    return line.model_copy(update={"line_total": line.quantity * line.unit_price})


def with_quantity(line: QuoteLine, quantity: float) -> QuoteLine:
    return line.model_copy(update={
        "quantity": quantity,
        "line_total": quantity * line.unit_price,
    })


def with_unit_price(line: QuoteLine, unit_price: float) -> QuoteLine:
    return line.model_copy(update={
        "unit_price": unit_price,
        "line_total": line.quantity * unit_price,
    })


def line_margin(line: QuoteLine) -> float:
    return line_gross_margin(line.quantity, line.unit_price, line.purchase_price)


# ════════════════════════════════════════════════════════════════════════
# AGRÉGATION
# ════════════════════════════════════════════════════════════════════════

def recompute_totals(lines: Iterable[QuoteLine], vat_rate: float, cee_subsidy: float) -> QuoteTotals:
    """
    Calcule les totaux d'un devis.

    Args:
        lines: lignes dont prix_total est déjà à jour
        vat_rate: taux de TVA en %
        cee_subsidy: prime CEE (€)

    Returns:
        QuoteTotals
    """
    total_ex_vat = 0.0
    total_margin = 0.0
    for line in lines:
        total_ex_vat += line.line_total
        total_margin += line_margin(line)

    total_vat = total_ex_vat * vat_rate / 100
    remaining_ex_vat = total_ex_vat - cee_subsidy

    return QuoteTotals(
        total_ex_vat=total_ex_vat,
        total_vat=total_vat,
        total_inc_vat=total_ex_vat + total_vat,
        remaining_ex_vat=remaining_ex_vat,
        total_margin=total_margin,
        subsidy_exceeds_total=remaining_ex_vat < 0,
    )


def net_to_pay(totals: QuoteTotals, cee_subsidy: float, mode: CEEIntegrationMode) -> float:
    """Net à payer TTC: prime déduite seulement en mode deduction (le reste HT la déduit toujours)"""
    if mode == CEEIntegrationMode.DEDUCTION:
        return totals.total_inc_vat - cee_subsidy
    return totals.total_inc_vat


# ════════════════════════════════════════════════════════════════════════
# DEVIS IMMUABLE
# ════════════════════════════════════════════════════════════════════════

def _rebuild(quote: Quote, **changes) -> Quote:
    draft = quote.model_copy(update=changes)
    totals = recompute_totals(draft.lines, draft.vat_rate, draft.cee_subsidy)
    return draft.model_copy(update={"totals": totals})


def new_quote(vat_rate: float = 20.0, cee_subsidy: float = 0.0) -> Quote:
    return _rebuild(Quote(), vat_rate=vat_rate, cee_subsidy=cee_subsidy)


def add_line(quote: Quote, line: QuoteLine) -> Quote:
    line = line.model_copy(update={
        "line_total": line.quantity * line.unit_price,
        "position": len(quote.lines) + 1,
    })
    return _rebuild(quote, lines=[*quote.lines, line])


def update_line(quote: Quote, index: int, **changes) -> Quote:
    """Modifie la ligne `index` (0-based); prix_total suit quantite/prix_unitaire"""
    if not 0 <= index < len(quote.lines):
        raise IndexError(f"Ligne inexistante: {index}")
    changes.pop("line_total", None)
    current = quote.lines[index].model_copy(update=changes)
    current = current.model_copy(update={"line_total": current.quantity * current.unit_price})
    lines = list(quote.lines)
    lines[index] = current
    return _rebuild(quote, lines=lines)


def remove_line(quote: Quote, index: int) -> Quote:
    if not 0 <= index < len(quote.lines):
        raise IndexError(f"Ligne inexistante: {index}")
    lines = [l for i, l in enumerate(quote.lines) if i != index]
    lines = [l.model_copy(update={"position": i + 1}) for i, l in enumerate(lines)]
    return _rebuild(quote, lines=lines)


def set_vat_rate(quote: Quote, vat_rate: float) -> Quote:
    return _rebuild(quote, vat_rate=vat_rate)


def set_cee_subsidy(quote: Quote, cee_subsidy: float) -> Quote:
    return _rebuild(quote, cee_subsidy=cee_subsidy)


# ════════════════════════════════════════════════════════════════════════
# EXPORT
# ════════════════════════════════════════════════════════════════════════

def group_lines_by_zone(lines: Iterable[QuoteLine]) -> Dict[str, List[QuoteLine]]:
    """Regroupe par zone en conservant l'ordre d'apparition"""
    zones: Dict[str, List[QuoteLine]] = OrderedDict()
    for line in lines:
        zones.setdefault(line.zone or "", []).append(line)
    return zones
