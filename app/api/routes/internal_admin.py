from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

import structlog
from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from app.db.session import SessionLocal
from app.economy.leaderboard.service import LeaderboardService
from app.services.admin import AdminService
from app.services.cache import get_cache
from app.services.internal_auth import assert_internal_access

router = APIRouter(tags=["internal", "admin"])
logger = structlog.get_logger(__name__)


class CampaignStatsResponse(BaseModel):
    generated_at: datetime
    score_rows: int = Field(ge=0)
    scored_users: int = Field(ge=0)
    total_points: int = Field(ge=0)
    shared_users: int = Field(ge=0)
    referrals: int = Field(ge=0)
    identities: int = Field(ge=0)


class WipeRequest(BaseModel):
    confirm: Literal["WIPE"]
    requested_by: str | None = Field(default=None, max_length=100)


class WipeResponse(BaseModel):
    wiped_tables: list[str]


@router.get("/internal/admin/stats", response_model=CampaignStatsResponse)
async def get_campaign_stats(request: Request) -> CampaignStatsResponse:
    assert_internal_access(request, scope="admin")

    async with SessionLocal() as session:
        stats = await AdminService.stats(session)

    return CampaignStatsResponse(
        generated_at=datetime.now(timezone.utc),
        score_rows=stats.score_rows,
        scored_users=stats.scored_users,
        total_points=stats.total_points,
        shared_users=stats.shared_users,
        referrals=stats.referrals,
        identities=stats.identities,
    )


@router.post("/internal/admin/wipe", response_model=WipeResponse)
async def wipe_campaign_data(payload: WipeRequest, request: Request) -> WipeResponse:
    assert_internal_access(request, scope="admin")

    async with SessionLocal.begin() as session:
        wiped_tables = await AdminService.wipe(session, requested_by=payload.requested_by)

    await LeaderboardService.invalidate(get_cache())
    return WipeResponse(wiped_tables=list(wiped_tables))
