from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.scores_repo import ScoresRepo
from app.db.repo.users_repo import UsersRepo

WIPED_TABLES = ("referrals", "scores", "users")

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CampaignStats:
    score_rows: int
    scored_users: int
    total_points: int
    shared_users: int
    referrals: int
    identities: int


class AdminService:
    @staticmethod
    async def stats(session: AsyncSession) -> CampaignStats:
        aggregates = await ScoresRepo.aggregate_stats(session)
        identities = await UsersRepo.count_all(session)
        return CampaignStats(identities=identities, **aggregates)

    @staticmethod
    async def wipe(session: AsyncSession, *, requested_by: str | None = None) -> tuple[str, ...]:
        await session.execute(text(f"TRUNCATE TABLE {', '.join(WIPED_TABLES)} RESTART IDENTITY"))
        logger.warning(
            "campaign_data_wiped",
            security_event=True,
            tables=list(WIPED_TABLES),
            requested_by=requested_by,
        )
        return WIPED_TABLES
