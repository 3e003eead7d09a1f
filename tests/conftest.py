import pytest
from fastapi.testclient import TestClient

from wodlog import config, store
from wodlog.catalog import load_catalog, sync_catalog
from wodlog.main import app


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATA_DIR", tmp_path)
    return tmp_path


@pytest.fixture
def catalog():
    sync_catalog(load_catalog())
    return store.wods_by_name()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def user_client(client):
    resp = client.post(
        "/api/auth/signup",
        json={"email": "athlete@example.com", "password": "correct-horse", "name": "Athlete"},
    )
    assert resp.status_code == 200
    return client


@pytest.fixture
def user():
    return store.insert_user({"email": "solo@example.com", "name": "Solo", "password_hash": "x"})
