from __future__ import annotations

from datetime import datetime

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import DBAPIError

from app.db.retry import run_read_with_retry
from app.db.session import SessionLocal
from app.economy.leaderboard.service import LeaderboardService
from app.economy.referrals.errors import (
    AlreadyReferredError,
    InvalidReferralCodeError,
    NotFirstSignupError,
    SelfReferralError,
)
from app.economy.referrals.service import ReferralService
from app.economy.referrals.types import ReferralCodeCheck
from app.services.cache import get_cache

router = APIRouter(tags=["referrals"])
logger = structlog.get_logger(__name__)


class ReferredUserResponse(BaseModel):
    username: str | None = None
    bonus: int = Field(ge=0)
    status: str
    total_points: int = Field(ge=0)
    created_at: datetime
    converted_at: datetime | None = None


class ReferralOverviewResponse(BaseModel):
    referral_code: str
    referral_bonus_points: int = Field(ge=0)
    referral_count: int = Field(ge=0)
    referred_by: str | None = None
    max_bonus: int = Field(ge=0)
    bonus_per_referral: int = Field(ge=0)
    referred_bonus: int = Field(ge=0)
    referrals: list[ReferredUserResponse]


class ReferralValidateResponse(BaseModel):
    valid: bool
    referrer_username: str | None = None


class ReferralApplyRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=100)
    referral_code: str = Field(min_length=1, max_length=20)
    username: str | None = Field(default=None, max_length=100)


class ReferralApplyResponse(BaseModel):
    referrer_user_id: str
    referrer_username: str | None = None
    referrer_bonus: int = Field(ge=0)
    referred_bonus: int = Field(ge=0)


@router.get("/referral/validate/{referral_code}", response_model=ReferralValidateResponse)
async def validate_referral_code(referral_code: str) -> ReferralValidateResponse:
    async def _check() -> ReferralCodeCheck:
        async with SessionLocal() as session:
            return await ReferralService.check_code(session, referral_code=referral_code)

    try:
        check = await run_read_with_retry(_check, name="referral_code_check")
    except DBAPIError as exc:
        raise HTTPException(status_code=503, detail={"code": "E_RETRYABLE"}) from exc
    return ReferralValidateResponse(valid=check.valid, referrer_username=check.referrer_username)


@router.get("/referral/{user_id}", response_model=ReferralOverviewResponse)
async def get_referral_overview(user_id: str) -> ReferralOverviewResponse:
    try:
        async with SessionLocal.begin() as session:
            overview = await ReferralService.get_overview(session, user_id=user_id)
    except DBAPIError as exc:
        raise HTTPException(status_code=503, detail={"code": "E_RETRYABLE"}) from exc

    return ReferralOverviewResponse(
        referral_code=overview.referral_code,
        referral_bonus_points=overview.referral_bonus_points,
        referral_count=overview.referral_count,
        referred_by=overview.referred_by,
        max_bonus=overview.max_bonus,
        bonus_per_referral=overview.bonus_per_referral,
        referred_bonus=overview.referred_bonus,
        referrals=[
            ReferredUserResponse(
                username=item.username,
                bonus=item.bonus,
                status=item.status,
                total_points=item.total_points,
                created_at=item.created_at,
                converted_at=item.converted_at,
            )
            for item in overview.referrals
        ],
    )


@router.post("/referral/apply", response_model=ReferralApplyResponse)
async def apply_referral(payload: ReferralApplyRequest) -> ReferralApplyResponse:
    try:
        async with SessionLocal.begin() as session:
            result = await ReferralService.apply(
                session,
                referred_user_id=payload.user_id,
                referral_code=payload.referral_code,
                username=payload.username,
            )
    except NotFirstSignupError as exc:
        raise HTTPException(status_code=400, detail={"code": "E_NOT_FIRST_SIGNUP"}) from exc
    except AlreadyReferredError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_ALREADY_REFERRED"}) from exc
    except InvalidReferralCodeError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_INVALID_REFERRAL_CODE"}) from exc
    except SelfReferralError as exc:
        raise HTTPException(status_code=400, detail={"code": "E_SELF_REFERRAL"}) from exc
    except DBAPIError as exc:
        logger.warning(
            "referral_apply_failed",
            referred_user_id=payload.user_id,
            error_type=type(exc).__name__,
        )
        raise HTTPException(status_code=503, detail={"code": "E_RETRYABLE"}) from exc

    await LeaderboardService.invalidate(get_cache())
    return ReferralApplyResponse(
        referrer_user_id=result.referrer_user_id,
        referrer_username=result.referrer_username,
        referrer_bonus=result.referrer_bonus,
        referred_bonus=result.referred_bonus,
    )
