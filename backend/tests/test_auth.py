from datetime import timedelta

import pytest

from freight_console.main import app
from freight_console.services.auth import create_access_token, get_current_user


@pytest.fixture()
def real_auth():
    override = app.dependency_overrides.pop(get_current_user)
    yield
    app.dependency_overrides[get_current_user] = override


def test_health_is_open(client, real_auth):
    assert client.get("/health").json() == {"status": "healthy"}


def test_missing_token_is_401(client, real_auth):
    assert client.get("/api/shipments").status_code == 401


def test_bad_token_is_401(client, real_auth):
    response = client.get("/api/quotes", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_expired_token_is_401(client, real_auth):
    token = create_access_token("planner", expires_delta=timedelta(minutes=-5))
    response = client.get("/api/suppliers", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_valid_token(client, real_auth):
    token = create_access_token("planner", roles=["logistics"])
    response = client.get("/api/suppliers", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert get_current_user(token) == {"username": "planner", "roles": ["logistics"]}
