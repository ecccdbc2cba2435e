from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.exc import DBAPIError

from app.api.routes.scores_models import (
    BoxRollResponse,
    BoxStateResponse,
    RewardSplitResponse,
    ScoreRecordResponse,
    ScoreSubmitRequest,
    ScoreSummaryResponse,
    ShareRequest,
)
from app.core.config import get_settings
from app.db.retry import run_read_with_retry
from app.db.session import SessionLocal
from app.economy.leaderboard.service import LeaderboardService
from app.economy.rewards.errors import (
    DuplicateBoxTypeError,
    InvalidBoxTypeError,
    InvalidShareUrlError,
    PointsOutOfRangeError,
    ScoreIntegrityError,
    TotalMismatchError,
    TotalOutOfBoundsError,
)
from app.economy.rewards.ledger import ScoreLedgerService
from app.economy.rewards.roller import parse_box_type
from app.economy.rewards.score_tokens import issue_box_roll
from app.economy.rewards.types import (
    BoxClaim,
    BoxType,
    ScoreRecordView,
    ScoreSubmission,
    ScoreSummary,
)
from app.services.cache import get_cache
from app.services.user_identity import UserIdentityService

router = APIRouter(tags=["scores"])
logger = structlog.get_logger(__name__)


def _as_record_response(record: ScoreRecordView) -> ScoreRecordResponse:
    return ScoreRecordResponse(
        user_id=record.user_id,
        username=record.username,
        followers_count=record.followers_count,
        boxes=[
            BoxStateResponse(
                box_type=box.box_type.value,
                points=box.points,
                tier_label=box.tier_label,
                revealed=box.revealed,
            )
            for box in record.boxes
        ],
        referral_code=record.referral_code,
        referred_by=record.referred_by,
        referral_bonus_points=record.referral_bonus_points,
        referral_count=record.referral_count,
        total_points=record.total_points,
        shared_at=record.shared_at,
        share_post_url=record.share_post_url,
        updated_at=record.updated_at,
    )


def _as_summary_response(summary: ScoreSummary) -> ScoreSummaryResponse:
    return ScoreSummaryResponse(
        record=_as_record_response(summary.record),
        tier_label=summary.tier.label,
        gold_points_min=summary.tier.gold_points_min,
        gold_points_max=summary.tier.gold_points_max,
        max_power_score=summary.tier.max_power_score,
        dollar_headline=summary.dollar_headline,
        split=RewardSplitResponse(
            free_play_points=summary.split.free_play_points,
            real_points=summary.split.real_points,
            free_play_dollars=summary.split.free_play_dollars,
        ),
    )


@router.get("/scores/roll", response_model=BoxRollResponse)
async def roll_box(
    box_type: str = Query(min_length=1, max_length=16),
    user_id: str = Query(min_length=1, max_length=100),
    followers_count: int = Query(default=0, ge=0),
) -> BoxRollResponse:
    try:
        resolved_box_type = parse_box_type(box_type)
    except InvalidBoxTypeError as exc:
        raise HTTPException(status_code=400, detail={"code": "E_INVALID_BOX_TYPE"}) from exc

    async def _resolve_followers() -> int:
        async with SessionLocal() as session:
            return await UserIdentityService.resolve_followers_count(
                session,
                user_id,
                followers_count,
            )

    try:
        resolved_followers = await run_read_with_retry(_resolve_followers, name="roll_followers")
    except DBAPIError as exc:
        raise HTTPException(status_code=503, detail={"code": "E_RETRYABLE"}) from exc

    roll = issue_box_roll(
        user_id,
        resolved_box_type,
        resolved_followers,
        secret=get_settings().score_token_secret,
    )
    logger.info(
        "box_rolled",
        user_id=user_id,
        box_type=roll.box_type.value,
        points=roll.points,
        followers_count=resolved_followers,
    )
    return BoxRollResponse(
        box_type=roll.box_type.value,
        points=roll.points,
        tier_label=roll.tier_label,
        token=roll.token,
        issued_at=roll.issued_at,
    )


@router.post("/scores", response_model=ScoreRecordResponse)
async def submit_scores(payload: ScoreSubmitRequest) -> ScoreRecordResponse:
    boxes = tuple(
        BoxClaim(
            box_type=BoxType(box.box_type),
            points=box.points,
            tier_label=box.tier_label,
            issued_at=box.issued_at,
            token=box.token,
        )
        for box in payload.boxes
    )
    try:
        async with SessionLocal.begin() as session:
            followers_count = await UserIdentityService.resolve_followers_count(
                session,
                payload.user_id,
                payload.followers_count,
            )
            record = await ScoreLedgerService.submit(
                session,
                submission=ScoreSubmission(
                    user_id=payload.user_id,
                    username=payload.username,
                    followers_count=followers_count,
                    boxes=boxes,
                    declared_total=payload.total_points,
                ),
            )
    except ScoreIntegrityError as exc:
        raise HTTPException(status_code=400, detail={"code": "E_SCORE_VERIFICATION_FAILED"}) from exc
    except TotalOutOfBoundsError as exc:
        logger.info("score_rejected", user_id=payload.user_id, reason="total_out_of_bounds")
        raise HTTPException(status_code=400, detail={"code": "E_TOTAL_OUT_OF_BOUNDS"}) from exc
    except PointsOutOfRangeError as exc:
        logger.info("score_rejected", user_id=payload.user_id, reason="points_out_of_range")
        raise HTTPException(status_code=400, detail={"code": "E_POINTS_OUT_OF_RANGE"}) from exc
    except TotalMismatchError as exc:
        logger.info("score_rejected", user_id=payload.user_id, reason="total_mismatch")
        raise HTTPException(status_code=400, detail={"code": "E_TOTAL_MISMATCH"}) from exc
    except DuplicateBoxTypeError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_DUPLICATE_BOX_TYPE"}) from exc
    except DBAPIError as exc:
        logger.warning("score_submit_failed", user_id=payload.user_id, error_type=type(exc).__name__)
        raise HTTPException(status_code=503, detail={"code": "E_RETRYABLE"}) from exc

    await LeaderboardService.invalidate(get_cache())
    return _as_record_response(record)


@router.post("/scores/share", response_model=ScoreRecordResponse)
async def record_share(payload: ShareRequest) -> ScoreRecordResponse:
    try:
        async with SessionLocal.begin() as session:
            record = await ScoreLedgerService.record_share(
                session,
                user_id=payload.user_id,
                post_url=payload.post_url,
            )
    except InvalidShareUrlError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_INVALID_SHARE_URL"}) from exc
    except DBAPIError as exc:
        raise HTTPException(status_code=503, detail={"code": "E_RETRYABLE"}) from exc

    await LeaderboardService.invalidate(get_cache())
    return _as_record_response(record)


@router.get("/scores/{user_id}", response_model=ScoreSummaryResponse | None)
async def get_scores(user_id: str) -> ScoreSummaryResponse | None:
    async def _load() -> ScoreSummary | None:
        async with SessionLocal() as session:
            return await ScoreLedgerService.get_summary(session, user_id)

    try:
        summary = await run_read_with_retry(_load, name="score_summary")
    except DBAPIError as exc:
        raise HTTPException(status_code=503, detail={"code": "E_RETRYABLE"}) from exc
    if summary is None:
        return None
    return _as_summary_response(summary)
