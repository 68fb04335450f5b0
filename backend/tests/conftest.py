"""
OXA CRM - Fixtures de test
Les tests tournent sur la source de données en mémoire (aucune base requise).
"""

import os

os.environ["DATA_SOURCE"] = "fixture"

import pytest
from fastapi.testclient import TestClient

from services.data_source import FixtureDataSource, set_data_source


@pytest.fixture(autouse=True)
def fixture_data():
    """Jeu de démo neuf pour chaque test"""
    ds = FixtureDataSource()
    set_data_source(ds)
    yield ds
    set_data_source(None)


@pytest.fixture
def api_client():
    from server import app
    return TestClient(app)
