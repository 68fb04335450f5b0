"""
OXA CRM - Devis API Tests
Tests: création standard/CEE, recalcul serveur, cycle de vie, conversion,
duplication, statistiques CEE, export, aperçu.
Run: cd backend && pytest tests/test_devis_api.py -v
"""

import pytest
from datetime import datetime, timezone

YEAR = datetime.now(timezone.utc).year

STANDARD_LINES = [
    {"designation": "Variateur", "zone": "Matériel", "quantite": 2, "prix_unitaire": 100, "prix_achat": 70},
    {"designation": "Pose", "zone": "Main d'œuvre", "quantite": 1, "prix_unitaire": 50},
]


def create_devis(api_client, **overrides):
    payload = {
        "type": "standard",
        "client_id": "client-2",
        "objet": "Variation de vitesse",
        "lignes": STANDARD_LINES,
    }
    payload.update(overrides)
    return api_client.post("/api/devis", json=payload)


# ═══════════════════════════════════════════════════════════════
# 1. LECTURE
# ═══════════════════════════════════════════════════════════════

class TestDevisRead:

    def test_list(self, api_client):
        r = api_client.get("/api/devis")
        assert r.status_code == 200
        assert r.json()["count"] == 2

    def test_filters(self, api_client):
        assert api_client.get("/api/devis?type=cee").json()["count"] == 1
        assert api_client.get("/api/devis?statut=accepte").json()["count"] == 1
        assert api_client.get("/api/devis?search=fonderie").json()["count"] == 1

    def test_demo_cee_devis_figures(self, api_client):
        devis = api_client.get("/api/devis/devis-1").json()
        assert devis["total_ht"] == pytest.approx(10000)
        assert devis["total_tva"] == pytest.approx(2000)
        assert devis["cee_data"]["kwh_cumac"] == pytest.approx(7350)
        assert devis["prime_cee"] == pytest.approx(14.7)
        assert devis["reste_a_payer_ht"] == pytest.approx(9985.3)
        assert devis["net_a_payer"] == pytest.approx(11985.3)
        assert devis["total_marge"] == pytest.approx(3800)

    def test_not_found(self, api_client):
        r = api_client.get("/api/devis/inconnu")
        assert r.status_code == 404
        assert r.json()["detail"] == "Devis non trouvé"

    def test_sent_devis_past_validity_expires(self, api_client, fixture_data):
        devis = next(d for d in fixture_data.collections["devis"] if d["id"] == "devis-1")
        devis["statut"] = "envoye"
        devis["date_validite"] = "2000-01-01"

        assert api_client.get("/api/devis/devis-1").json()["statut"] == "expire"


# ═══════════════════════════════════════════════════════════════
# 2. CRÉATION / MISE À JOUR
# ═══════════════════════════════════════════════════════════════

class TestDevisCreate:

    def test_standard_totals(self, api_client):
        r = create_devis(api_client)
        assert r.status_code == 200
        devis = r.json()["devis"]
        assert devis["statut"] == "brouillon"
        assert devis["numero"] == f"DEV-{YEAR}-FON-002"
        assert devis["total_ht"] == pytest.approx(250)
        assert devis["total_tva"] == pytest.approx(50)
        assert devis["total_ttc"] == pytest.approx(300)
        assert devis["prime_cee"] == 0
        assert devis["cee_data"] is None
        assert devis["reste_a_payer_ht"] == pytest.approx(250)

    def test_line_totals_recomputed(self, api_client):
        devis = create_devis(api_client).json()["devis"]
        assert [l["prix_total"] for l in devis["lignes_data"]] == [200, 50]
        assert [l["ordre"] for l in devis["lignes_data"]] == [1, 2]

    def test_submitted_totals_ignored(self, api_client):
        devis = create_devis(api_client, total_ht=999999).json()["devis"]
        assert devis["total_ht"] == pytest.approx(250)

    def test_cee_devis(self, api_client):
        r = create_devis(
            api_client,
            type="cee",
            client_id="client-1",
            lignes=[{"designation": "Variateur", "quantite": 1, "prix_unitaire": 10000}],
            cee_data={"profil_fonctionnement": "1x8h", "puissance_nominale": 100, "duree_contrat": 1},
        )
        assert r.status_code == 200
        devis = r.json()["devis"]
        assert devis["numero"] == f"CEE-{YEAR}-IND-0002"
        assert devis["cee_data"]["kwh_cumac"] == pytest.approx(2940)
        assert devis["prime_cee"] == pytest.approx(5.88)
        assert devis["reste_a_payer_ht"] == pytest.approx(9994.12)

    def test_subsidy_exceeding_total_flagged(self, api_client):
        devis = create_devis(
            api_client,
            type="cee",
            client_id="client-1",
            lignes=[{"designation": "Audit", "quantite": 1, "prix_unitaire": 10}],
            cee_data={"profil_fonctionnement": "continu_24_7", "puissance_nominale": 1000, "duree_contrat": 6},
        ).json()["devis"]
        assert devis["prime_cee"] == pytest.approx(823.2)
        assert devis["reste_a_payer_ht"] == pytest.approx(-813.2)
        assert devis["subsidy_exceeds_total"] is True

    def test_cee_requires_power(self, api_client):
        r = create_devis(api_client, type="cee", client_id="client-1")
        assert r.status_code == 400
        assert "Puissance nominale requise" in r.json()["detail"]

    def test_validation_errors_listed(self, api_client):
        r = create_devis(api_client, objet="", lignes=[])
        assert r.status_code == 400
        assert "Objet requis" in r.json()["detail"]
        assert "Au moins une ligne requise" in r.json()["detail"]

    def test_client_required(self, api_client):
        r = create_devis(api_client, client_id="")
        assert r.status_code == 400
        assert "Client requis" in r.json()["detail"]

    def test_unknown_client(self, api_client):
        assert create_devis(api_client, client_id="inconnu").status_code == 404

    def test_negative_quantity_rejected(self, api_client):
        r = create_devis(api_client, lignes=[{"designation": "X", "quantite": -1, "prix_unitaire": 10}])
        assert r.status_code == 422

    def test_invalid_vat(self, api_client):
        assert create_devis(api_client, tva_taux=120).status_code == 422

    def test_non_finite_quantity_rejected(self, api_client):
        r = api_client.post(
            "/api/devis",
            content='{"client_id": "client-2", "objet": "X", '
                    '"lignes": [{"designation": "X", "quantite": NaN, "prix_unitaire": 10}]}',
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 422

    def test_infinite_cee_power_rejected(self, api_client):
        r = api_client.post(
            "/api/devis",
            content='{"type": "cee", "client_id": "client-1", "objet": "X", '
                    '"lignes": [{"designation": "X", "prix_unitaire": 10}], '
                    '"cee_data": {"puissance_nominale": Infinity}}',
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 422

    def test_negative_cee_price_rejected(self, api_client):
        r = create_devis(
            api_client,
            type="cee",
            client_id="client-1",
            cee_data={"profil_fonctionnement": "2x8h", "puissance_nominale": 50, "duree_contrat": 3,
                      "tarif_kwh": -5},
        )
        assert r.status_code == 400
        assert "Tarif: valeur négative interdite" in r.json()["detail"]

    def test_factor_above_duration_ceiling_rejected(self, api_client):
        r = create_devis(
            api_client,
            type="cee",
            client_id="client-1",
            cee_data={"profil_fonctionnement": "1x8h", "puissance_nominale": 100, "duree_contrat": 9,
                      "facteur_f": 50},
        )
        assert r.status_code == 400
        assert any("hors plage" in e for e in r.json()["detail"])

    def test_cee_update_with_negative_price_rejected(self, api_client):
        r = api_client.put("/api/devis/devis-1", json={
            "cee_data": {"profil_fonctionnement": "2x8h", "puissance_nominale": 50, "duree_contrat": 3,
                         "tarif_kwh": -1},
        })
        assert r.status_code == 400
        assert api_client.get("/api/devis/devis-1").json()["prime_cee"] == pytest.approx(14.7)

    def test_number_not_reused_after_delete(self, api_client):
        first = create_devis(api_client).json()["devis"]
        second = create_devis(api_client).json()["devis"]
        assert api_client.delete(f"/api/devis/{first['id']}").status_code == 200

        third = create_devis(api_client).json()["devis"]
        assert second["numero"] == f"DEV-{YEAR}-FON-003"
        assert third["numero"] == f"DEV-{YEAR}-FON-004"


class TestDevisUpdate:

    def test_update_lines_recomputes_with_existing_cee_block(self, api_client):
        r = api_client.put("/api/devis/devis-1", json={
            "lignes": [{"designation": "Échangeur", "quantite": 1, "prix_unitaire": 20000}],
        })
        assert r.status_code == 200
        devis = r.json()["devis"]
        assert devis["total_ht"] == pytest.approx(20000)
        assert devis["prime_cee"] == pytest.approx(14.7)
        assert devis["reste_a_payer_ht"] == pytest.approx(19985.3)

    def test_update_vat_rate(self, api_client):
        devis = api_client.put("/api/devis/devis-1", json={"tva_taux": 5.5}).json()["devis"]
        assert devis["total_tva"] == pytest.approx(550)

    def test_update_persisted(self, api_client):
        api_client.put("/api/devis/devis-1", json={"objet": "Nouvel objet"})
        assert api_client.get("/api/devis/devis-1").json()["objet"] == "Nouvel objet"

    def test_accepted_devis_locked(self, api_client):
        r = api_client.put("/api/devis/devis-2", json={"objet": "X"})
        assert r.status_code == 400

    def test_delete(self, api_client):
        assert api_client.delete("/api/devis/devis-1").status_code == 200
        assert api_client.get("/api/devis/devis-1").status_code == 404


# ═══════════════════════════════════════════════════════════════
# 3. CYCLE DE VIE
# ═══════════════════════════════════════════════════════════════

class TestDevisLifecycle:

    def test_draft_cannot_be_accepted(self, api_client):
        r = api_client.post("/api/devis/devis-1/status", json={"statut": "accepte"})
        assert r.status_code == 400

    def test_invalid_status_value(self, api_client):
        r = api_client.post("/api/devis/devis-1/status", json={"statut": "signe"})
        assert r.status_code == 422

    def test_send_accept_convert(self, api_client):
        assert api_client.post("/api/devis/devis-1/status", json={"statut": "envoye"}).status_code == 200
        r = api_client.post("/api/devis/devis-1/status", json={"statut": "accepte"})
        assert r.status_code == 200
        assert r.json()["devis"]["statut"] == "accepte"

        r = api_client.post("/api/devis/devis-1/convert")
        assert r.status_code == 200
        commande = r.json()["commande"]
        assert commande["numero"] == f"CMD-{YEAR}-003"
        assert commande["statut"] == "en_cours"
        assert commande["devis_id"] == "devis-1"
        assert commande["total_ht"] == pytest.approx(10000)

        assert api_client.get("/api/devis/devis-1").json()["commande_id"] == commande["id"]
        assert api_client.get(f"/api/commandes/{commande['id']}").status_code == 200

    def test_convert_only_once(self, api_client):
        assert api_client.post("/api/devis/devis-2/convert").status_code == 200
        assert api_client.post("/api/devis/devis-2/convert").status_code == 400

    def test_draft_cannot_be_converted(self, api_client):
        r = api_client.post("/api/devis/devis-1/convert")
        assert r.status_code == 400

    def test_terminal_state(self, api_client):
        r = api_client.post("/api/devis/devis-2/status", json={"statut": "envoye"})
        assert r.status_code == 400

    def test_status_change_logged(self, api_client):
        api_client.post("/api/devis/devis-1/status", json={"statut": "envoye"})
        events = api_client.get("/api/event-log?entity_type=devis&entity_id=devis-1").json()["events"]
        assert len(events) == 1
        assert events[0]["action"] == "devis_status"
        assert events[0]["details"]["new_status"] == "envoye"

    def test_action_filter_applied_before_limit(self, api_client, fixture_data):
        fixture_data.collections["event_log"] = [
            {"id": "e1", "action": "devis_status", "entity_type": "devis", "entity_id": "devis-1",
             "created_at": "2025-01-01T10:00:00+00:00"},
            {"id": "e2", "action": "devis_status", "entity_type": "devis", "entity_id": "devis-1",
             "created_at": "2025-01-02T10:00:00+00:00"},
            {"id": "e3", "action": "devis_convert", "entity_type": "devis", "entity_id": "devis-1",
             "created_at": "2025-01-03T10:00:00+00:00"},
        ]
        data = api_client.get("/api/event-log?action=devis_status&limit=1").json()
        assert data["count"] == 1
        assert data["events"][0]["id"] == "e2"

    def test_duplicate(self, api_client):
        r = api_client.post("/api/devis/devis-1/duplicate")
        assert r.status_code == 200
        copy_doc = r.json()["devis"]
        original = api_client.get("/api/devis/devis-1").json()
        assert copy_doc["id"] != "devis-1"
        assert copy_doc["numero"] == f"CEE-{YEAR}-IND-0002"
        assert copy_doc["statut"] == "brouillon"
        assert copy_doc["duplicated_from"] == "devis-1"
        assert copy_doc["total_ht"] == original["total_ht"]
        assert {l["id"] for l in copy_doc["lignes_data"]}.isdisjoint(
            {l["id"] for l in original["lignes_data"]}
        )


# ═══════════════════════════════════════════════════════════════
# 4. STATS / EXPORT / APERÇU
# ═══════════════════════════════════════════════════════════════

class TestDevisReporting:

    def test_cee_stats(self, api_client):
        stats = api_client.get("/api/devis/stats/cee").json()
        assert stats["total_devis"] == 1
        assert stats["total_prime_cee"] == pytest.approx(14.7)
        assert stats["total_kwh_cumac"] == pytest.approx(7350)
        assert stats["devis_par_statut"] == {"brouillon": 1}
        assert len(stats["evolution_mensuelle"]) == 1

    def test_export_cee(self, api_client):
        export = api_client.get("/api/devis/devis-1/export").json()
        assert [z["nom"] for z in export["zones"]] == ["Étude", "Matériel"]
        assert export["totaux"]["total_ht"] == 10000
        assert export["totaux"]["prime_cee"] == 14.7
        assert export["client"]["entreprise"] == "Industrie Verte SA"
        assert export["cee"]["formule"] == "kWh cumac = 29.4 × 2 × 50 × 2.5"
        assert export["conditions"]["garantie"]

    def test_export_standard_has_no_cee_block(self, api_client):
        export = api_client.get("/api/devis/devis-2/export").json()
        assert "cee" not in export

    def test_recompute_preview(self, api_client):
        r = api_client.post("/api/devis/recompute", json={
            "lignes": STANDARD_LINES, "tva_taux": 20, "prime_cee": 100,
        })
        assert r.status_code == 200
        preview = r.json()
        assert preview["total_ht"] == pytest.approx(250)
        assert preview["total_ttc"] == pytest.approx(300)
        assert preview["reste_a_payer_ht"] == pytest.approx(150)
        assert preview["net_a_payer"] == pytest.approx(200)

    def test_recompute_information_mode(self, api_client):
        preview = api_client.post("/api/devis/recompute", json={
            "lignes": STANDARD_LINES, "prime_cee": 100,
            "cee_integration": {"mode": "information"},
        }).json()
        assert preview["net_a_payer"] == pytest.approx(300)
        assert preview["reste_a_payer_ht"] == pytest.approx(150)

    def test_recompute_writes_nothing(self, api_client):
        api_client.post("/api/devis/recompute", json={"lignes": STANDARD_LINES})
        assert api_client.get("/api/devis").json()["count"] == 2
