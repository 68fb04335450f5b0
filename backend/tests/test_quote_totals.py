"""
OXA CRM - Quote Totals Tests
Tests: agrégation HT/TVA/TTC, reste à payer, marge, devis immuable, zones.
Run: cd backend && pytest tests/test_quote_totals.py -v
"""

import pytest

from models.devis import CEEIntegrationMode
from services.quote_totals import (
    make_line,
    with_quantity,
    with_unit_price,
    recompute_totals,
    net_to_pay,
    new_quote,
    add_line,
    update_line,
    remove_line,
    set_vat_rate,
    set_cee_subsidy,
    group_lines_by_zone,
)


def sample_lines():
    return [
        make_line(designation="Variateur", quantity=2, unit_price=100, purchase_price=70),
        make_line(designation="Pose", quantity=1, unit_price=50),
    ]


# ═══════════════════════════════════════════════════════════════
# 1. LIGNES
# ═══════════════════════════════════════════════════════════════

class TestLines:

    def test_make_line_computes_total(self):
        assert make_line(quantity=3, unit_price=12.5).line_total == pytest.approx(37.5)

    def test_make_line_ignores_submitted_total(self):
        assert make_line(quantity=2, unit_price=10, line_total=999).line_total == 20

    def test_with_quantity(self):
        line = make_line(quantity=1, unit_price=40)
        changed = with_quantity(line, 5)
        assert changed.line_total == 200
        assert line.line_total == 40

    def test_with_unit_price(self):
        line = make_line(quantity=4, unit_price=10)
        assert with_unit_price(line, 2.5).line_total == 10

    def test_storage_aliases(self):
        doc = make_line(designation="A", quantity=2, unit_price=3).model_dump(by_alias=True)
        assert doc["quantite"] == 2
        assert doc["prix_unitaire"] == 3
        assert doc["prix_total"] == 6


# ═══════════════════════════════════════════════════════════════
# 2. AGRÉGATION
# ═══════════════════════════════════════════════════════════════

class TestRecomputeTotals:

    def test_reference_example(self):
        """2×100 + 1×50 à 20% → 250 / 50 / 300"""
        totals = recompute_totals(sample_lines(), 20, 0)
        assert totals.total_ex_vat == pytest.approx(250)
        assert totals.total_vat == pytest.approx(50)
        assert totals.total_inc_vat == pytest.approx(300)
        assert totals.remaining_ex_vat == pytest.approx(250)

    def test_remaining_after_subsidy(self):
        totals = recompute_totals(sample_lines(), 20, 100)
        assert totals.remaining_ex_vat == pytest.approx(150)
        assert totals.subsidy_exceeds_total is False

    def test_subsidy_exceeding_total_is_not_clamped(self):
        totals = recompute_totals(sample_lines(), 20, 400)
        assert totals.remaining_ex_vat == pytest.approx(-150)
        assert totals.subsidy_exceeds_total is True

    def test_empty_quote(self):
        totals = recompute_totals([], 20, 0)
        assert totals.total_ex_vat == 0
        assert totals.total_inc_vat == 0

    def test_margin(self):
        totals = recompute_totals(sample_lines(), 20, 0)
        # (200 - 140) + (50 - 0)
        assert totals.total_margin == pytest.approx(110)

    def test_zero_vat(self):
        totals = recompute_totals(sample_lines(), 0, 0)
        assert totals.total_vat == 0
        assert totals.total_inc_vat == totals.total_ex_vat

    def test_idempotent(self):
        lines = sample_lines()
        assert recompute_totals(lines, 5.5, 12) == recompute_totals(lines, 5.5, 12)

    def test_uses_line_totals_as_given(self):
        """L'agrégateur additionne prix_total sans recalculer les lignes"""
        line = make_line(quantity=1, unit_price=10).model_copy(update={"line_total": 15})
        assert recompute_totals([line], 0, 0).total_ex_vat == 15


class TestNetToPay:

    def test_deduction_mode(self):
        totals = recompute_totals(sample_lines(), 20, 100)
        assert net_to_pay(totals, 100, CEEIntegrationMode.DEDUCTION) == pytest.approx(200)

    def test_information_mode(self):
        totals = recompute_totals(sample_lines(), 20, 100)
        assert net_to_pay(totals, 100, CEEIntegrationMode.INFORMATION) == pytest.approx(300)


# ═══════════════════════════════════════════════════════════════
# 3. DEVIS IMMUABLE
# ═══════════════════════════════════════════════════════════════

class TestImmutableQuote:

    def build(self):
        quote = new_quote(vat_rate=20)
        for line in sample_lines():
            quote = add_line(quote, line)
        return quote

    def test_add_line_recomputes(self):
        quote = self.build()
        assert quote.totals.total_ex_vat == pytest.approx(250)
        assert [l.position for l in quote.lines] == [1, 2]

    def test_add_line_does_not_mutate(self):
        empty = new_quote()
        add_line(empty, make_line(quantity=1, unit_price=10))
        assert empty.lines == []
        assert empty.totals.total_ex_vat == 0

    def test_update_line(self):
        quote = self.build()
        updated = update_line(quote, 0, quantity=3)
        assert updated.lines[0].line_total == 300
        assert updated.totals.total_ex_vat == pytest.approx(350)
        assert quote.totals.total_ex_vat == pytest.approx(250)

    def test_update_line_keeps_invariant(self):
        updated = update_line(self.build(), 1, unit_price=80, line_total=1)
        assert updated.lines[1].line_total == 80

    def test_update_unknown_line(self):
        with pytest.raises(IndexError):
            update_line(self.build(), 5, quantity=1)

    def test_remove_line_renumbers(self):
        quote = remove_line(self.build(), 0)
        assert len(quote.lines) == 1
        assert quote.lines[0].position == 1
        assert quote.totals.total_ex_vat == pytest.approx(50)

    def test_set_vat_rate(self):
        quote = set_vat_rate(self.build(), 10)
        assert quote.totals.total_vat == pytest.approx(25)

    def test_set_cee_subsidy(self):
        quote = set_cee_subsidy(self.build(), 100)
        assert quote.totals.remaining_ex_vat == pytest.approx(150)

    def test_quote_is_frozen(self):
        quote = self.build()
        with pytest.raises(Exception):
            quote.vat_rate = 5


class TestZones:

    def test_first_seen_order(self):
        lines = [
            make_line(designation="a", zone="Matériel"),
            make_line(designation="b", zone="Étude"),
            make_line(designation="c", zone="Matériel"),
        ]
        zones = group_lines_by_zone(lines)
        assert list(zones.keys()) == ["Matériel", "Étude"]
        assert [l.designation for l in zones["Matériel"]] == ["a", "c"]

    def test_missing_zone(self):
        zones = group_lines_by_zone([make_line(designation="a")])
        assert list(zones.keys()) == [""]
