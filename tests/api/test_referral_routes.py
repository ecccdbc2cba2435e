from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.api.routes import referrals
from app.economy.referrals.errors import (
    AlreadyReferredError,
    InvalidReferralCodeError,
    NotFirstSignupError,
    SelfReferralError,
)
from app.economy.referrals.service import ReferralService
from app.economy.referrals.types import (
    ReferralApplyResult,
    ReferralCodeCheck,
    ReferralOverview,
    ReferredUserItem,
)
from app.main import app
from tests.api.route_fakes import install_route_fakes

APPLY_PAYLOAD = {"user_id": "newcomer", "referral_code": "RBAAAA2222", "username": "newbie"}


def test_apply_returns_bonuses(monkeypatch) -> None:
    session_local, _ = install_route_fakes(monkeypatch, referrals)

    async def _apply(session, *, referred_user_id: str, referral_code: str, username: str | None):
        assert referred_user_id == "newcomer"
        return ReferralApplyResult(
            referrer_user_id="referrer",
            referrer_username="alice",
            referrer_bonus=250,
            referred_bonus=150,
        )

    monkeypatch.setattr(ReferralService, "apply", _apply)

    client = TestClient(app)
    response = client.post("/referral/apply", json=APPLY_PAYLOAD)

    assert response.status_code == 200
    assert response.json() == {
        "referrer_user_id": "referrer",
        "referrer_username": "alice",
        "referrer_bonus": 250,
        "referred_bonus": 150,
    }
    assert session_local.begin_calls == 1


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (NotFirstSignupError(), 400, "E_NOT_FIRST_SIGNUP"),
        (AlreadyReferredError(), 409, "E_ALREADY_REFERRED"),
        (InvalidReferralCodeError(), 404, "E_INVALID_REFERRAL_CODE"),
        (SelfReferralError(), 400, "E_SELF_REFERRAL"),
    ],
)
def test_apply_maps_each_rejection_to_distinct_code(
    monkeypatch,
    error: Exception,
    status_code: int,
    code: str,
) -> None:
    install_route_fakes(monkeypatch, referrals)

    async def _apply(session, **kwargs):
        raise error

    monkeypatch.setattr(ReferralService, "apply", _apply)

    client = TestClient(app)
    response = client.post("/referral/apply", json=APPLY_PAYLOAD)

    assert response.status_code == status_code
    assert response.json() == {"detail": {"code": code}}


def test_validate_code_reports_referrer(monkeypatch) -> None:
    install_route_fakes(monkeypatch, referrals)

    async def _check(session, *, referral_code: str):
        return ReferralCodeCheck(valid=referral_code == "RBAAAA2222", referrer_username="alice")

    monkeypatch.setattr(ReferralService, "check_code", _check)

    client = TestClient(app)
    response = client.get("/referral/validate/RBAAAA2222")

    assert response.status_code == 200
    assert response.json() == {"valid": True, "referrer_username": "alice"}


def test_overview_lists_recent_referrals(monkeypatch) -> None:
    install_route_fakes(monkeypatch, referrals)
    created_at = datetime(2026, 3, 1, tzinfo=timezone.utc)

    async def _overview(session, *, user_id: str):
        return ReferralOverview(
            referral_code="RBAAAA2222",
            referral_bonus_points=250,
            referral_count=1,
            referred_by=None,
            max_bonus=25_000,
            bonus_per_referral=250,
            referred_bonus=150,
            referrals=(
                ReferredUserItem(
                    username="bob",
                    bonus=250,
                    status="CONVERTED",
                    total_points=900,
                    created_at=created_at,
                    converted_at=created_at,
                ),
            ),
        )

    monkeypatch.setattr(ReferralService, "get_overview", _overview)

    client = TestClient(app)
    response = client.get("/referral/alice")

    assert response.status_code == 200
    body = response.json()
    assert body["referral_code"] == "RBAAAA2222"
    assert body["max_bonus"] == 25_000
    assert [item["username"] for item in body["referrals"]] == ["bob"]
