from contextlib import contextmanager
from types import SimpleNamespace

from fastapi.testclient import TestClient

from serviceconnect.core.database import get_db
from serviceconnect.core.security import create_access_token, create_refresh_token, decode_token
from serviceconnect.main import app
from serviceconnect.models import UserRole


class _StubQuery:
    def __init__(self, result):
        self._result = result

    def filter(self, *args, **kwargs):
        return self

    def first(self):
        return self._result


class _StubSession:
    def __init__(self, user):
        self._user = user

    def query(self, *args, **kwargs):
        return _StubQuery(self._user)


@contextmanager
def _client_with_user(user):
    app.dependency_overrides.clear()

    def _override_get_db():
        yield _StubSession(user)

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


def _user(**overrides):
    values = dict(
        id=1,
        email="cust@example.com",
        full_name=None,
        role=UserRole.CUSTOMER,
        is_active=True,
        is_verified=True,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_refresh_rejects_access_token():
    access = create_access_token("1", "customer")
    with _client_with_user(_user()) as client:
        res = client.post("/api/v1/auth/refresh", json={"refresh_token": access})

    assert res.status_code == 401
    assert res.json()["error"] == "Invalid refresh token"


def test_refresh_rejects_invalid_token():
    with _client_with_user(_user()) as client:
        res = client.post("/api/v1/auth/refresh", json={"refresh_token": "not-a-jwt"})

    assert res.status_code == 401
    assert res.json()["error"] == "Invalid refresh token"


def test_refresh_rejects_inactive_user():
    refresh = create_refresh_token("1", "customer")
    with _client_with_user(_user(is_active=False)) as client:
        res = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh})

    assert res.status_code == 401
    assert res.json()["error"] == "User not found or inactive"


def test_refresh_success_returns_new_pair():
    refresh = create_refresh_token("1", "customer")
    with _client_with_user(_user()) as client:
        res = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh})

    assert res.status_code == 200
    body = res.json()
    assert decode_token(body["access_token"])["type"] == "access"
    assert decode_token(body["refresh_token"])["type"] == "refresh"
    assert body["role"] == "customer"


def test_refresh_picks_up_admin_elevation():
    refresh = create_refresh_token("1", "customer")
    with _client_with_user(_user(email="root@example.org")) as client:
        res = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh})

    assert res.status_code == 200
    assert decode_token(res.json()["access_token"])["role"] == "admin"


def test_missing_token_is_401():
    with _client_with_user(_user()) as client:
        res = client.get("/api/v1/auth/me")

    assert res.status_code == 401
    assert res.json() == {"error": "No token, authorization denied."}


def test_token_role_must_match_current_role():
    # Token minted while the account was a provider; the account is now a customer.
    token = create_access_token("1", "provider")
    with _client_with_user(_user()) as client:
        res = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert res.status_code == 401


def test_x_auth_token_header_is_accepted():
    token = create_access_token("1", "customer")
    with _client_with_user(_user()) as client:
        res = client.get("/api/v1/auth/me", headers={"x-auth-token": token})

    assert res.status_code == 200
    assert res.json()["role"] == "customer"


def test_customer_cannot_reach_admin_routes():
    token = create_access_token("1", "customer")
    with _client_with_user(_user()) as client:
        res = client.get("/api/v1/admin/overview-metrics", headers={"x-auth-token": token})

    assert res.status_code == 403
    assert res.json() == {"error": "Access denied. Admin role required."}
