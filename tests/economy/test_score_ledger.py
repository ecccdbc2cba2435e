from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from app.db.repo.scores_repo import ScoresRepo
from app.economy.rewards.errors import (
    DuplicateBoxTypeError,
    InvalidShareUrlError,
    PointsOutOfRangeError,
    ScoreForgeryError,
    TotalMismatchError,
    TotalOutOfBoundsError,
)
from app.economy.rewards.ledger import (
    ScoreLedgerService,
    normalize_share_url,
    validate_box_points,
    verify_box_tokens,
)
from app.economy.rewards.score_tokens import sign_score
from app.economy.rewards.types import BoxClaim, BoxType, ScoreSubmission

SECRET = "ledger-test-secret"
NOW_MS = 1_700_000_000_000
TTL = timedelta(hours=2)


def _claim(box_type: BoxType, points: int, *, signed: bool = True, issued_at: int = NOW_MS - 1_000) -> BoxClaim:
    tier_label = "Chip Stacker"
    if not signed:
        return BoxClaim(box_type=box_type, points=points, tier_label=tier_label)
    return BoxClaim(
        box_type=box_type,
        points=points,
        tier_label=tier_label,
        issued_at=issued_at,
        token=sign_score("user-1", box_type, points, tier_label, issued_at, secret=SECRET),
    )


def _submission(*boxes: BoxClaim, declared_total: int | None = None, followers: int = 5_000) -> ScoreSubmission:
    return ScoreSubmission(
        user_id="user-1",
        username="alice",
        followers_count=followers,
        boxes=tuple(boxes),
        declared_total=sum(box.points for box in boxes) if declared_total is None else declared_total,
    )


def _verify(submission: ScoreSubmission, *, require_tokens: bool = False, now_ms: int = NOW_MS) -> None:
    verify_box_tokens(
        submission,
        secret=SECRET,
        ttl=TTL,
        require_tokens=require_tokens,
        now_ms=now_ms,
    )


def test_valid_submission_passes_validation() -> None:
    submission = _submission(
        _claim(BoxType.BRONZE, 300),
        _claim(BoxType.SILVER, 800),
        _claim(BoxType.GOLD, 3_500),
    )

    validate_box_points(submission)
    _verify(submission)


def test_gold_outside_caller_tier_is_rejected_even_when_totals_agree() -> None:
    submission = _submission(_claim(BoxType.GOLD, 3_500), followers=500)

    with pytest.raises(PointsOutOfRangeError):
        validate_box_points(submission)


@pytest.mark.parametrize(
    ("box_type", "points"),
    [(BoxType.BRONZE, 99), (BoxType.BRONZE, 501), (BoxType.SILVER, 1_101), (BoxType.BRONZE, -5)],
)
def test_points_outside_static_range_are_rejected(box_type: BoxType, points: int) -> None:
    submission = _submission(_claim(box_type, points, signed=False), declared_total=0)

    with pytest.raises(PointsOutOfRangeError):
        validate_box_points(submission)


def test_unrevealed_boxes_are_allowed() -> None:
    validate_box_points(_submission(_claim(BoxType.BRONZE, 0, signed=False), _claim(BoxType.GOLD, 3_200)))


@pytest.mark.parametrize("declared_total", [-1, 71_601])
def test_declared_total_outside_bounds_is_rejected(declared_total: int) -> None:
    submission = _submission(_claim(BoxType.BRONZE, 300), declared_total=declared_total)

    with pytest.raises(TotalOutOfBoundsError):
        validate_box_points(submission)


def test_total_mismatch_tolerates_one_point() -> None:
    boxes = (_claim(BoxType.BRONZE, 300), _claim(BoxType.SILVER, 800))

    validate_box_points(_submission(*boxes, declared_total=1_101))
    with pytest.raises(TotalMismatchError):
        validate_box_points(_submission(*boxes, declared_total=1_102))


def test_duplicate_box_types_are_rejected() -> None:
    submission = _submission(_claim(BoxType.BRONZE, 300), _claim(BoxType.BRONZE, 400))

    with pytest.raises(DuplicateBoxTypeError):
        validate_box_points(submission)


def test_tampered_points_are_flagged_as_forgery() -> None:
    genuine = _claim(BoxType.GOLD, 3_100)
    tampered = BoxClaim(
        box_type=genuine.box_type,
        points=4_400,
        tier_label=genuine.tier_label,
        issued_at=genuine.issued_at,
        token=genuine.token,
    )

    with pytest.raises(ScoreForgeryError) as exc_info:
        _verify(_submission(tampered))
    assert exc_info.value.reason == "invalid"
    assert exc_info.value.box_type == "gold"


def test_expired_token_is_flagged_as_forgery() -> None:
    stale = _claim(BoxType.SILVER, 700, issued_at=NOW_MS - int(TTL.total_seconds() * 1000) - 1)

    with pytest.raises(ScoreForgeryError) as exc_info:
        _verify(_submission(stale))
    assert exc_info.value.reason == "expired"


def test_missing_token_is_accepted_when_tokens_are_optional() -> None:
    _verify(_submission(_claim(BoxType.BRONZE, 300, signed=False)), require_tokens=False)


def test_missing_token_is_rejected_when_tokens_are_required() -> None:
    with pytest.raises(ScoreForgeryError) as exc_info:
        _verify(_submission(_claim(BoxType.BRONZE, 300, signed=False)), require_tokens=True)
    assert exc_info.value.reason == "missing_token"


def test_unrevealed_box_needs_no_token_even_when_required() -> None:
    _verify(
        _submission(_claim(BoxType.BRONZE, 0, signed=False), _claim(BoxType.SILVER, 600)),
        require_tokens=True,
    )


def _fake_score(**values: object) -> SimpleNamespace:
    defaults: dict[str, object] = {
        "user_id": "user-1",
        "username": None,
        "followers_count": 0,
        "bronze_points": 0,
        "bronze_tier": None,
        "silver_points": 0,
        "silver_tier": None,
        "gold_points": 0,
        "gold_tier": None,
        "referral_code": None,
        "referred_by": None,
        "referral_bonus_points": 0,
        "referral_count": 0,
        "total_points": 0,
        "shared_at": None,
        "share_post_url": None,
        "updated_at": None,
    }
    defaults.update(values)
    return SimpleNamespace(**defaults)


@pytest.mark.asyncio
async def test_submit_stores_exact_box_sum(monkeypatch) -> None:
    calls: list[dict[str, object]] = []

    async def _fake_upsert(session, **kwargs):
        del session
        calls.append(kwargs)
        total = kwargs["bronze_points"] + kwargs["silver_points"] + kwargs["gold_points"]
        return _fake_score(
            user_id=kwargs["user_id"],
            username=kwargs["username"],
            followers_count=kwargs["followers_count"],
            bronze_points=kwargs["bronze_points"],
            silver_points=kwargs["silver_points"],
            gold_points=kwargs["gold_points"],
            referral_code=kwargs["referral_code"],
            total_points=total,
        )

    monkeypatch.setattr(ScoresRepo, "upsert_boxes", _fake_upsert)
    submission = _submission(
        _claim(BoxType.BRONZE, 300),
        _claim(BoxType.SILVER, 800),
        _claim(BoxType.GOLD, 3_500),
        declared_total=4_601,
    )

    record = await ScoreLedgerService.submit(
        None,
        submission=submission,
        secret=SECRET,
        ttl=TTL,
        require_tokens=True,
        now_ms=NOW_MS,
    )

    assert record.total_points == 4_600
    assert len(calls) == 1
    assert calls[0]["gold_points"] == 3_500
    assert calls[0]["gold_tier"] == "Chip Stacker"
    assert str(calls[0]["referral_code"]).startswith("RB")
    assert [box.points for box in record.boxes] == [300, 800, 3_500]


@pytest.mark.asyncio
async def test_submit_rejects_forgery_without_writing(monkeypatch) -> None:
    async def _fail_upsert(session, **kwargs):
        raise AssertionError("forged submission must not be written")

    monkeypatch.setattr(ScoresRepo, "upsert_boxes", _fail_upsert)
    forged = BoxClaim(
        box_type=BoxType.GOLD,
        points=4_500,
        tier_label="House Legend",
        issued_at=NOW_MS,
        token="f" * 64,
    )

    with pytest.raises(ScoreForgeryError):
        await ScoreLedgerService.submit(
            None,
            submission=_submission(forged),
            secret=SECRET,
            ttl=TTL,
            require_tokens=False,
            now_ms=NOW_MS,
        )


@pytest.mark.asyncio
async def test_get_summary_includes_allocation(monkeypatch) -> None:
    async def _fake_get(session, user_id: str):
        del session
        return _fake_score(user_id=user_id, followers_count=5_000, total_points=1_000, bronze_points=1_000)

    monkeypatch.setattr(ScoresRepo, "get_by_user_id", _fake_get)

    summary = await ScoreLedgerService.get_summary(None, "user-1")

    assert summary is not None
    assert summary.tier.label == "5K-7.5K"
    assert str(summary.dollar_headline) == "50.00"
    assert summary.split.real_points == 400


@pytest.mark.asyncio
async def test_get_summary_returns_none_for_unknown_user(monkeypatch) -> None:
    async def _fake_get(session, user_id: str):
        return None

    monkeypatch.setattr(ScoresRepo, "get_by_user_id", _fake_get)

    assert await ScoreLedgerService.get_summary(None, "ghost") is None


@pytest.mark.parametrize(
    "url",
    [
        "https://x.com/alice_01/status/1234567890",
        "https://twitter.com/alice/status/123456?s=20",
        "http://x.com/a/status/12345",
    ],
)
def test_share_url_accepts_status_links(url: str) -> None:
    assert normalize_share_url(f"  {url} ") == url


@pytest.mark.parametrize(
    "url",
    [
        "https://evil.com/alice/status/1234567890",
        "https://x.com/alice",
        "https://x.com/alice/status/12",
        "javascript:alert(1)",
    ],
)
def test_share_url_rejects_other_links(url: str) -> None:
    with pytest.raises(InvalidShareUrlError):
        normalize_share_url(url)


def test_share_url_is_optional() -> None:
    assert normalize_share_url(None) is None
    assert normalize_share_url("   ") is None
