"""
OXA CRM - CEE Calculator API Tests
Run: cd backend && pytest tests/test_cee_api.py -v
"""

import pytest


class TestCalculate:

    def test_golden_value(self, api_client):
        r = api_client.post("/api/cee/calculate", json={
            "puissance": 100, "coefficient_activite": 1, "duree_engagement": 1, "tarif_kwh": 0.002,
        })
        assert r.status_code == 200
        data = r.json()
        assert data["kwh_cumac"] == pytest.approx(2940)
        assert data["prime_estimee"] == pytest.approx(5.88)
        assert data["formule"] == "IND-UT-134"
        assert data["formule_detail"] == "kWh cumac = 29.4 × 1 × 100 × 1"
        assert data["calcule"] is True
        assert data["warnings"] == []

    def test_profile_sets_coefficient(self, api_client):
        data = api_client.post("/api/cee/calculate", json={
            "puissance": 100, "coefficient_activite": 1, "duree_engagement": 1,
            "profil_fonctionnement": "continu_24_7",
        }).json()
        assert data["kwh_cumac"] == pytest.approx(10290)

    def test_hourly_formula(self, api_client):
        data = api_client.post("/api/cee/calculate", json={
            "puissance": 100, "coefficient_activite": 1, "duree_engagement": 1,
            "tarif_kwh": 5, "formule": "HOURLY_8760",
        }).json()
        assert data["kwh_cumac"] == pytest.approx(876000)
        assert data["prime_estimee"] == pytest.approx(4380)

    def test_zero_power_not_computed(self, api_client):
        data = api_client.post("/api/cee/calculate", json={"puissance": 0}).json()
        assert data["kwh_cumac"] == 0
        assert data["calcule"] is False

    def test_invalid_inputs_reported_as_warnings(self, api_client):
        data = api_client.post("/api/cee/calculate", json={
            "puissance": 100, "coefficient_activite": 1, "duree_engagement": 10,
        }).json()
        assert data["kwh_cumac"] == pytest.approx(29400)
        assert len(data["warnings"]) == 1

    def test_unknown_formula(self, api_client):
        r = api_client.post("/api/cee/calculate", json={"puissance": 1, "formule": "AUTRE"})
        assert r.status_code == 422


class TestReferentielAndHistory:

    def test_referentiel(self, api_client):
        ref = api_client.get("/api/cee/referentiel").json()
        assert [p["value"] for p in ref["profils"]] == [
            "1x8h", "2x8h", "3x8h_weekend_off", "3x8h_24_7", "continu_24_7",
        ]
        assert ref["durees_engagement"][-1] == 5.45
        assert ref["durees_contrat"][2]["facteur"] == 2.5

    def test_save_and_list(self, api_client):
        r = api_client.post("/api/cee/calculations", json={
            "puissance": 50, "coefficient_activite": 2, "duree_engagement": 2.5, "client_id": "client-1",
        })
        assert r.status_code == 200
        assert r.json()["calcul"]["kwh_cumac"] == pytest.approx(7350)

        listing = api_client.get("/api/cee/calculations").json()
        assert listing["count"] == 1
        assert api_client.get("/api/cee/calculations?client_id=client-2").json()["count"] == 0

    def test_save_rejects_invalid_inputs(self, api_client):
        r = api_client.post("/api/cee/calculations", json={
            "puissance": -5, "coefficient_activite": 2, "duree_engagement": 2,
        })
        assert r.status_code == 400
        assert isinstance(r.json()["detail"], list)

    def test_save_unknown_client(self, api_client):
        r = api_client.post("/api/cee/calculations", json={
            "puissance": 5, "coefficient_activite": 2, "duree_engagement": 2, "client_id": "inconnu",
        })
        assert r.status_code == 404
