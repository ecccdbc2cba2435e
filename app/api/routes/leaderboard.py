from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.exc import DBAPIError

from app.db.session import SessionLocal
from app.economy.leaderboard.service import LEADERBOARD_DEFAULT_LIMIT, LeaderboardService
from app.services.cache import get_cache

router = APIRouter(tags=["leaderboard"])


class LeaderboardEntryResponse(BaseModel):
    rank: int = Field(ge=1)
    username: str | None = None
    followers_count: int = Field(ge=0)
    total_points: int = Field(ge=0)
    real_points: int = Field(ge=0)
    bronze_points: int = Field(ge=0)
    silver_points: int = Field(ge=0)
    gold_points: int = Field(ge=0)


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryResponse]
    total_users: int = Field(ge=0)
    limit: int = Field(ge=1)
    offset: int = Field(ge=0)


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: int = Query(default=LEADERBOARD_DEFAULT_LIMIT),
    offset: int = Query(default=0, ge=0),
) -> LeaderboardResponse:
    try:
        page = await LeaderboardService.ranked_page(
            SessionLocal,
            get_cache(),
            limit=limit,
            offset=offset,
        )
    except DBAPIError as exc:
        raise HTTPException(status_code=503, detail={"code": "E_RETRYABLE"}) from exc

    return LeaderboardResponse(
        entries=[
            LeaderboardEntryResponse(
                rank=entry.rank,
                username=entry.username,
                followers_count=entry.followers_count,
                total_points=entry.total_points,
                real_points=entry.real_points,
                bronze_points=entry.bronze_points,
                silver_points=entry.silver_points,
                gold_points=entry.gold_points,
            )
            for entry in page.entries
        ],
        total_users=page.total_users,
        limit=page.limit,
        offset=page.offset,
    )
