from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.referral_codes import generate_referral_code
from app.db.models.scores import Score
from app.db.repo.scores_repo import ScoresRepo
from app.economy.rewards.allocation import dollar_headline, reward_split
from app.economy.rewards.constants import (
    BOX_POINT_RANGES,
    MAX_TOTAL_POINTS,
    TOTAL_MISMATCH_TOLERANCE,
)
from app.economy.rewards.errors import (
    DuplicateBoxTypeError,
    InvalidShareUrlError,
    PointsOutOfRangeError,
    ScoreForgeryError,
    ScoreTokenExpiredError,
    ScoreTokenInvalidError,
    TotalMismatchError,
    TotalOutOfBoundsError,
)
from app.economy.rewards.score_tokens import check_score_token, now_epoch_ms
from app.economy.rewards.tiers import tier_for_followers
from app.economy.rewards.types import (
    BoxClaim,
    BoxState,
    BoxType,
    ScoreRecordView,
    ScoreSubmission,
    ScoreSummary,
)

logger = structlog.get_logger(__name__)

SHARE_POST_URL_RE = re.compile(
    r"^https?://(twitter|x)\.com/[A-Za-z0-9_]{1,50}/status/[0-9]{5,25}(\?.*)?$"
)
SHARE_POST_URL_MAX_LENGTH = 500


def validate_box_points(submission: ScoreSubmission) -> None:
    declared_total = submission.declared_total
    if declared_total < 0 or declared_total > MAX_TOTAL_POINTS:
        raise TotalOutOfBoundsError(str(declared_total))

    seen: set[BoxType] = set()
    tier = tier_for_followers(submission.followers_count)
    for box in submission.boxes:
        if box.box_type in seen:
            raise DuplicateBoxTypeError(box.box_type.value)
        seen.add(box.box_type)

        if box.points < 0:
            raise PointsOutOfRangeError(f"{box.box_type.value}={box.points}")
        if box.points == 0:
            continue

        min_points, max_points = BOX_POINT_RANGES[box.box_type.value]
        if not min_points <= box.points <= max_points:
            raise PointsOutOfRangeError(f"{box.box_type.value}={box.points}")
        if box.box_type is BoxType.GOLD and not (
            tier.gold_points_min <= box.points <= tier.gold_points_max
        ):
            raise PointsOutOfRangeError(f"gold={box.points} tier={tier.label}")

    computed_total = sum(box.points for box in submission.boxes)
    if abs(computed_total - declared_total) > TOTAL_MISMATCH_TOLERANCE:
        raise TotalMismatchError(f"declared={declared_total} computed={computed_total}")


def verify_box_tokens(
    submission: ScoreSubmission,
    *,
    secret: str,
    ttl: timedelta,
    require_tokens: bool,
    now_ms: int,
) -> None:
    revealed = [box for box in submission.boxes if box.points > 0]
    unsigned = [box for box in revealed if not box.token]

    for box in revealed:
        if not box.token:
            continue
        try:
            check_score_token(
                submission.user_id,
                box.box_type,
                box.points,
                box.tier_label,
                box.issued_at,
                box.token,
                secret=secret,
                ttl=ttl,
                now_ms=now_ms,
            )
        except ScoreTokenExpiredError as exc:
            _log_forgery(submission, box, reason="expired")
            raise ScoreForgeryError(box_type=box.box_type.value, reason="expired") from exc
        except ScoreTokenInvalidError as exc:
            _log_forgery(submission, box, reason="invalid")
            raise ScoreForgeryError(box_type=box.box_type.value, reason="invalid") from exc

    if not unsigned:
        return
    if require_tokens:
        _log_forgery(submission, unsigned[0], reason="missing_token")
        raise ScoreForgeryError(box_type=unsigned[0].box_type.value, reason="missing_token")

    logger.warning(
        "score_submitted_without_token",
        user_id=submission.user_id,
        username=submission.username,
        unsigned_boxes=[box.box_type.value for box in unsigned],
        signed_boxes=len(revealed) - len(unsigned),
    )


def _log_forgery(submission: ScoreSubmission, box: BoxClaim, *, reason: str) -> None:
    logger.warning(
        "score_forgery_detected",
        security_event=True,
        reason=reason,
        user_id=submission.user_id,
        username=submission.username,
        box_type=box.box_type.value,
        points=box.points,
        issued_at=box.issued_at,
    )


def _box_by_type(boxes: Iterable[BoxClaim], box_type: BoxType) -> BoxClaim | None:
    return next((box for box in boxes if box.box_type is box_type), None)


def build_record_view(score: Score) -> ScoreRecordView:
    return ScoreRecordView(
        user_id=score.user_id,
        username=score.username,
        followers_count=int(score.followers_count or 0),
        boxes=(
            BoxState(BoxType.BRONZE, int(score.bronze_points or 0), score.bronze_tier),
            BoxState(BoxType.SILVER, int(score.silver_points or 0), score.silver_tier),
            BoxState(BoxType.GOLD, int(score.gold_points or 0), score.gold_tier),
        ),
        referral_code=score.referral_code,
        referred_by=score.referred_by,
        referral_bonus_points=int(score.referral_bonus_points or 0),
        referral_count=int(score.referral_count or 0),
        total_points=int(score.total_points or 0),
        shared_at=score.shared_at,
        share_post_url=score.share_post_url,
        updated_at=score.updated_at,
    )


def summarize(record: ScoreRecordView) -> ScoreSummary:
    tier = tier_for_followers(record.followers_count)
    return ScoreSummary(
        record=record,
        tier=tier,
        dollar_headline=dollar_headline(record.total_points),
        split=reward_split(record.total_points, tier),
    )


def normalize_share_url(raw_url: str | None) -> str | None:
    if raw_url is None:
        return None
    candidate = raw_url.strip()[:SHARE_POST_URL_MAX_LENGTH]
    if not candidate:
        return None
    if SHARE_POST_URL_RE.match(candidate) is None:
        raise InvalidShareUrlError(candidate)
    return candidate


class ScoreLedgerService:
    @staticmethod
    async def submit(
        session: AsyncSession,
        *,
        submission: ScoreSubmission,
        secret: str | None = None,
        ttl: timedelta | None = None,
        require_tokens: bool | None = None,
        now_ms: int | None = None,
    ) -> ScoreRecordView:
        settings = get_settings()
        resolved_secret = settings.score_token_secret if secret is None else secret
        resolved_require_tokens = (
            settings.require_score_tokens if require_tokens is None else require_tokens
        )
        resolved_ttl = (
            timedelta(seconds=settings.score_token_ttl_seconds) if ttl is None else ttl
        )
        resolved_now_ms = now_epoch_ms() if now_ms is None else now_ms

        validate_box_points(submission)
        verify_box_tokens(
            submission,
            secret=resolved_secret,
            ttl=resolved_ttl,
            require_tokens=resolved_require_tokens,
            now_ms=resolved_now_ms,
        )

        bronze = _box_by_type(submission.boxes, BoxType.BRONZE)
        silver = _box_by_type(submission.boxes, BoxType.SILVER)
        gold = _box_by_type(submission.boxes, BoxType.GOLD)
        now_utc = datetime.fromtimestamp(resolved_now_ms / 1000, tz=timezone.utc)
        score = await ScoresRepo.upsert_boxes(
            session,
            user_id=submission.user_id,
            username=submission.username,
            followers_count=submission.followers_count,
            bronze_points=bronze.points if bronze is not None else 0,
            bronze_tier=bronze.tier_label if bronze is not None else None,
            silver_points=silver.points if silver is not None else 0,
            silver_tier=silver.tier_label if silver is not None else None,
            gold_points=gold.points if gold is not None else 0,
            gold_tier=gold.tier_label if gold is not None else None,
            referral_code=generate_referral_code(
                submission.user_id,
                salt=settings.referral_code_salt,
            ),
            now_utc=now_utc,
        )
        record = build_record_view(score)
        logger.info(
            "score_submitted",
            user_id=record.user_id,
            username=record.username,
            total_points=record.total_points,
        )
        return record

    @staticmethod
    async def get_record(session: AsyncSession, user_id: str) -> ScoreRecordView | None:
        score = await ScoresRepo.get_by_user_id(session, user_id)
        if score is None:
            return None
        return build_record_view(score)

    @staticmethod
    async def get_summary(session: AsyncSession, user_id: str) -> ScoreSummary | None:
        record = await ScoreLedgerService.get_record(session, user_id)
        if record is None:
            return None
        return summarize(record)

    @staticmethod
    async def record_share(
        session: AsyncSession,
        *,
        user_id: str,
        post_url: str | None,
        now_utc: datetime | None = None,
    ) -> ScoreRecordView:
        now_utc = now_utc or datetime.now(timezone.utc)
        normalized_url = normalize_share_url(post_url)
        score = await ScoresRepo.record_share(
            session,
            user_id=user_id,
            post_url=normalized_url,
            referral_code=generate_referral_code(user_id, salt=get_settings().referral_code_salt),
            now_utc=now_utc,
        )
        logger.info("share_recorded", user_id=user_id, has_post_url=normalized_url is not None)
        return build_record_view(score)
