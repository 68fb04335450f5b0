"""
OXA CRM - Commandes / Factures / Dashboard API Tests
Tests: statuts de commande, facturation, envoi, paiement, retards, dashboard.
Run: cd backend && pytest tests/test_facturation_api.py -v
"""

import pytest
from datetime import datetime, timezone

NOW = datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════
# 1. COMMANDES
# ═══════════════════════════════════════════════════════════════

class TestCommandes:

    def test_list(self, api_client):
        assert api_client.get("/api/commandes").json()["count"] == 2
        assert api_client.get("/api/commandes?statut=livree").json()["count"] == 1

    def test_not_found(self, api_client):
        r = api_client.get("/api/commandes/inconnue")
        assert r.status_code == 404
        assert r.json()["detail"] == "Commande non trouvée"

    def test_ship_then_deliver(self, api_client):
        r = api_client.put("/api/commandes/commande-1/status", json={"statut": "expediee"})
        assert r.status_code == 200
        r = api_client.put("/api/commandes/commande-1/status", json={"statut": "livree"})
        assert r.status_code == 200
        assert r.json()["commande"]["date_livraison"] is not None

    def test_delivered_is_terminal(self, api_client):
        r = api_client.put("/api/commandes/commande-2/status", json={"statut": "en_cours"})
        assert r.status_code == 400

    def test_invalid_status_value(self, api_client):
        r = api_client.put("/api/commandes/commande-1/status", json={"statut": "perdue"})
        assert r.status_code == 422


# ═══════════════════════════════════════════════════════════════
# 2. FACTURES
# ═══════════════════════════════════════════════════════════════

class TestFactures:

    def test_invoice_commande(self, api_client):
        r = api_client.post("/api/commandes/commande-1/invoice")
        assert r.status_code == 200
        facture = r.json()["facture"]
        assert facture["numero"] == f"FAC-{NOW.year}{NOW.month:02d}-0003"
        assert facture["statut"] == "brouillon"
        assert facture["total_ttc"] == 18000
        assert facture["commande_id"] == "commande-1"
        assert facture["date_echeance"] > facture["date_facture"]

        assert api_client.get("/api/commandes/commande-1").json()["facture_id"] == facture["id"]

    def test_invoice_only_once(self, api_client):
        api_client.post("/api/commandes/commande-1/invoice")
        r = api_client.post("/api/commandes/commande-1/invoice")
        assert r.status_code == 400
        assert r.json()["detail"] == "Commande déjà facturée"

    def test_already_invoiced_in_demo_data(self, api_client):
        assert api_client.post("/api/commandes/commande-2/invoice").status_code == 400

    def test_cancelled_commande_not_invoiced(self, api_client):
        api_client.put("/api/commandes/commande-1/status", json={"statut": "annulee"})
        assert api_client.post("/api/commandes/commande-1/invoice").status_code == 400

    def test_create_from_commande(self, api_client):
        r = api_client.post("/api/factures", json={"commande_id": "commande-1", "notes": "Acompte"})
        assert r.status_code == 200
        assert r.json()["facture"]["notes"] == "Acompte"

    def test_create_unknown_commande(self, api_client):
        assert api_client.post("/api/factures", json={"commande_id": "inconnue"}).status_code == 404

    def test_send_then_pay(self, api_client):
        facture_id = api_client.post("/api/commandes/commande-1/invoice").json()["facture"]["id"]

        assert api_client.post(f"/api/factures/{facture_id}/mark-paid").status_code == 400

        r = api_client.post(f"/api/factures/{facture_id}/send")
        assert r.status_code == 200
        assert r.json()["facture"]["statut"] == "envoyee"
        assert api_client.post(f"/api/factures/{facture_id}/send").status_code == 400

        r = api_client.post(f"/api/factures/{facture_id}/mark-paid", json={"date_paiement": "2025-06-01"})
        assert r.status_code == 200
        assert r.json()["facture"]["statut"] == "payee"
        assert r.json()["facture"]["date_paiement"] == "2025-06-01"

    def test_overdue_marking(self, api_client):
        facture = api_client.get("/api/factures/facture-2").json()
        assert facture["statut"] == "en_retard"
        assert api_client.get("/api/factures?statut=en_retard").json()["count"] == 1

    def test_mark_overdue_endpoint(self, api_client):
        assert api_client.post("/api/factures/mark-overdue").json()["updated"] == 1
        assert api_client.post("/api/factures/mark-overdue").json()["updated"] == 0

    def test_overdue_invoice_can_be_paid(self, api_client):
        api_client.get("/api/factures")
        r = api_client.post("/api/factures/facture-2/mark-paid")
        assert r.status_code == 200
        assert r.json()["facture"]["statut"] == "payee"

    def test_paid_invoice_not_overdue(self, api_client):
        assert api_client.get("/api/factures/facture-1").json()["statut"] == "payee"

    def test_overdue_dashboard(self, api_client):
        data = api_client.get("/api/factures/overdue-dashboard").json()
        assert data["client_count"] == 1
        assert data["total_overdue_ttc"] == 6000
        assert data["clients"][0]["client_id"] == "client-1"
        assert data["clients"][0]["days_overdue"] >= 14


# ═══════════════════════════════════════════════════════════════
# 3. DASHBOARD / HEALTH
# ═══════════════════════════════════════════════════════════════

class TestDashboard:

    def test_stats(self, api_client):
        stats = api_client.get("/api/dashboard/stats").json()
        assert stats["counts"]["devis"] == 2
        assert stats["counts"]["clients"] == 2
        assert stats["chiffre_affaires"] == 9600
        assert stats["total_marge"] == 9100
        assert stats["total_prime_cee"] == 14.7
        assert stats["devis_par_statut"]["brouillon"] == 1
        assert stats["devis_par_statut"]["accepte"] == 1
        assert stats["factures_en_retard"] == 1
        assert len(stats["ca_mensuel"]) == 1

    def test_health(self, api_client):
        r = api_client.get("/api/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok", "data_source": "fixture"}
