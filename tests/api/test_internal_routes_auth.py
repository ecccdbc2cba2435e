from __future__ import annotations

from types import SimpleNamespace

from fastapi.testclient import TestClient

from app.api.routes import identity, internal_admin
from app.main import app
from app.services import internal_auth
from app.services.admin import AdminService, CampaignStats
from app.services.user_identity import LoginResult, UserIdentityService
from tests.api.route_fakes import install_route_fakes


def _patch_settings(monkeypatch, *, allowlist: str) -> None:
    monkeypatch.setattr(
        internal_auth,
        "get_settings",
        lambda: SimpleNamespace(
            internal_api_token="internal-secret",
            internal_api_allowlist=allowlist,
            internal_api_trusted_proxies="",
        ),
    )


def test_admin_stats_rejects_missing_token(monkeypatch) -> None:
    _patch_settings(monkeypatch, allowlist="127.0.0.1/32")

    client = TestClient(app)
    response = client.get("/internal/admin/stats")

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_admin_wipe_rejects_disallowed_ip(monkeypatch) -> None:
    _patch_settings(monkeypatch, allowlist="192.168.0.0/16")

    client = TestClient(app)
    response = client.post(
        "/internal/admin/wipe",
        json={"confirm": "WIPE"},
        headers={"X-Internal-Token": "internal-secret", "X-Forwarded-For": "10.0.0.25"},
    )

    assert response.status_code == 403


def test_admin_wipe_requires_explicit_confirmation(monkeypatch) -> None:
    monkeypatch.setattr(internal_admin, "assert_internal_access", lambda request, *, scope: None)

    client = TestClient(app)
    response = client.post("/internal/admin/wipe", json={"confirm": "yes"})

    assert response.status_code == 422


def test_admin_stats_returns_aggregates(monkeypatch) -> None:
    install_route_fakes(monkeypatch, internal_admin)
    monkeypatch.setattr(internal_admin, "assert_internal_access", lambda request, *, scope: None)

    async def _stats(session):
        return CampaignStats(
            score_rows=3,
            scored_users=2,
            total_points=5_000,
            shared_users=1,
            referrals=1,
            identities=4,
        )

    monkeypatch.setattr(AdminService, "stats", _stats)

    client = TestClient(app)
    response = client.get("/internal/admin/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["scored_users"] == 2
    assert body["identities"] == 4


def test_identity_login_requires_internal_access(monkeypatch) -> None:
    _patch_settings(monkeypatch, allowlist="127.0.0.1/32")

    client = TestClient(app)
    response = client.post("/auth/identity", json={"provider_user_id": "44196397"})

    assert response.status_code == 403


def test_identity_login_reports_first_login(monkeypatch) -> None:
    install_route_fakes(monkeypatch, identity)
    monkeypatch.setattr(identity, "assert_internal_access", lambda request, *, scope: None)

    async def _record_login(session, **kwargs):
        assert kwargs["provider"] == "twitter"
        return LoginResult(user_id=9, login_count=1, is_first_login=True)

    monkeypatch.setattr(UserIdentityService, "record_login", _record_login)

    client = TestClient(app)
    response = client.post(
        "/auth/identity",
        json={"provider_user_id": "44196397", "username": "alice", "followers_count": 5_000},
    )

    assert response.status_code == 200
    assert response.json() == {"user_id": 9, "login_count": 1, "is_first_login": True}
