from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from mealvault.app import app, get_oracle, get_store
from mealvault.auth.users import authenticate, register_user
from mealvault.recommendations.data_store import DataFrameStore
from mealvault.tests.conftest import make_tables


@pytest.fixture
def client():
    store = DataFrameStore(make_tables(user_id="U0001"))
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_oracle] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


def _login_user(c):
    return c.post("/auth/login", json={"username": "somchai", "password": "somchai123"})


# ── Login / Logout ───────────────────────────────────────────────────────


def test_login_success(client):
    resp = _login_user(client)
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["user"] == {"username": "somchai", "user_id": "U0001"}


def test_login_wrong_password(client):
    resp = client.post("/auth/login", json={"username": "somchai", "password": "wrong"})
    assert resp.status_code == 401


def test_login_unknown_user(client):
    resp = client.post("/auth/login", json={"username": "nobody", "password": "x"})
    assert resp.status_code == 401


def test_login_validation_rejects_empty_username(client):
    resp = client.post("/auth/login", json={"username": "", "password": "x"})
    assert resp.status_code == 422


def test_auth_me_when_logged_in(client):
    _login_user(client)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    assert resp.json()["user_id"] == "U0001"


def test_auth_me_not_logged_in(client):
    resp = client.get("/auth/me")
    assert resp.status_code == 401


def test_logout(client):
    _login_user(client)
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["status"] == "logged_out"
    # Session should be cleared
    resp = client.get("/auth/me")
    assert resp.status_code == 401


def test_register_user_maps_login_to_store_id():
    register_user("tester", "pw-123", "U0100")
    assert authenticate("tester", "pw-123") == {"username": "tester", "user_id": "U0100"}
    assert authenticate("tester", "nope") is None


# ── Route protection ─────────────────────────────────────────────────────


def test_recommendations_requires_login(client):
    assert client.get("/ai/recommendations").status_code == 401


def test_meal_suggestions_requires_login(client):
    assert client.post("/ai/meal-suggestions", json={}).status_code == 401


def test_health_is_public(client):
    assert client.get("/health").status_code == 200
