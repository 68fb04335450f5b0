"""
OXA CRM - Marges catalogue et lignes de devis

Convention unique:
- prix de vente nul → taux de marge 0
- sinon (vente - achat) / vente × 100
Un prix d'achat nul donne donc 100% dès que le prix de vente est positif.
"""

# Estimation du prix d'achat pour un article créé à la volée depuis un devis
DEFAULT_PURCHASE_RATIO = 0.7


def compute_margin_percent(sell_price: float, buy_price: float) -> float:
    """Taux de marge en % du prix de vente"""
    if sell_price == 0:
        return 0.0
    return (sell_price - buy_price) / sell_price * 100


def compute_margin_amount(sell_price: float, buy_price: float) -> float:
    return sell_price - buy_price


def line_gross_margin(quantity: float, unit_price: float, purchase_price: float) -> float:
    """Marge brute d'une ligne: prix_total - quantite × prix_achat"""
    return quantity * unit_price - quantity * purchase_price


def estimate_purchase_price(sell_price: float) -> float:
    return sell_price * DEFAULT_PURCHASE_RATIO
