from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import asdict

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.repo.scores_repo import ScoresRepo
from app.db.retry import run_read_with_retry
from app.economy.leaderboard.types import LeaderboardEntry, LeaderboardPage
from app.economy.rewards.constants import REAL_POINTS_SHARE_PERCENT
from app.services.cache import TTLCache

logger = structlog.get_logger(__name__)

LEADERBOARD_CACHE_KEY = "leaderboard:top100"
LEADERBOARD_CACHED_PAGE_MAX_LIMIT = 100
LEADERBOARD_MAX_LIMIT = 500
LEADERBOARD_DEFAULT_LIMIT = 100


def clamp_limit(limit: int) -> int:
    return max(1, min(LEADERBOARD_MAX_LIMIT, int(limit)))


def _is_cacheable(*, limit: int, offset: int) -> bool:
    return offset == 0 and limit <= LEADERBOARD_CACHED_PAGE_MAX_LIMIT


def _encode_page(page: LeaderboardPage) -> str:
    return json.dumps(asdict(page), separators=(",", ":"))


def _decode_page(raw: str) -> LeaderboardPage:
    payload = json.loads(raw)
    return LeaderboardPage(
        entries=tuple(LeaderboardEntry(**entry) for entry in payload["entries"]),
        total_users=int(payload["total_users"]),
        limit=int(payload["limit"]),
        offset=int(payload["offset"]),
    )


class LeaderboardService:
    @staticmethod
    async def load_page(session: AsyncSession, *, limit: int, offset: int) -> LeaderboardPage:
        ranked = await ScoresRepo.list_ranked(session, limit=limit, offset=offset)
        total_users = await ScoresRepo.count_ranked(session)
        return LeaderboardPage(
            entries=tuple(
                LeaderboardEntry(
                    rank=rank,
                    username=score.username,
                    followers_count=int(score.followers_count or 0),
                    total_points=int(score.total_points),
                    real_points=(int(score.total_points) * REAL_POINTS_SHARE_PERCENT) // 100,
                    bronze_points=int(score.bronze_points or 0),
                    silver_points=int(score.silver_points or 0),
                    gold_points=int(score.gold_points or 0),
                )
                for rank, score in ranked
            ),
            total_users=total_users,
            limit=limit,
            offset=offset,
        )

    @staticmethod
    async def ranked_page(
        session_factory: Callable[[], AsyncSession],
        cache: TTLCache,
        *,
        limit: int = LEADERBOARD_DEFAULT_LIMIT,
        offset: int = 0,
    ) -> LeaderboardPage:
        resolved_limit = clamp_limit(limit)
        resolved_offset = max(0, int(offset))
        cacheable = _is_cacheable(limit=resolved_limit, offset=resolved_offset)

        if cacheable:
            cached = await cache.get(LEADERBOARD_CACHE_KEY)
            if cached is not None:
                page = _decode_page(cached)
                if page.limit >= resolved_limit:
                    return LeaderboardPage(
                        entries=page.entries[:resolved_limit],
                        total_users=page.total_users,
                        limit=resolved_limit,
                        offset=0,
                    )

        async def _load() -> LeaderboardPage:
            async with session_factory() as session:
                return await LeaderboardService.load_page(
                    session,
                    # The cached first page always holds the full top slice.
                    limit=LEADERBOARD_CACHED_PAGE_MAX_LIMIT if cacheable else resolved_limit,
                    offset=resolved_offset,
                )

        page = await run_read_with_retry(_load, name="leaderboard_page")
        if not cacheable:
            return page

        await cache.set_with_expiry(
            LEADERBOARD_CACHE_KEY,
            _encode_page(page),
            get_settings().leaderboard_cache_ttl_seconds,
        )
        return LeaderboardPage(
            entries=page.entries[:resolved_limit],
            total_users=page.total_users,
            limit=resolved_limit,
            offset=0,
        )

    @staticmethod
    async def invalidate(cache: TTLCache) -> None:
        await cache.delete(LEADERBOARD_CACHE_KEY)
        logger.debug("leaderboard_cache_invalidated")
