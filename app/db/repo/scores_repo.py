from __future__ import annotations

from datetime import datetime

from sqlalchemy import case, func, literal, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.referrals import Referral
from app.db.models.scores import Score


class ScoresRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: str) -> Score | None:
        stmt = select(Score).where(Score.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_user_id_for_update(session: AsyncSession, user_id: str) -> Score | None:
        stmt = select(Score).where(Score.user_id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_referral_code(session: AsyncSession, referral_code: str) -> Score | None:
        stmt = select(Score).where(Score.referral_code == referral_code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_referral_code_for_update(
        session: AsyncSession,
        referral_code: str,
    ) -> Score | None:
        stmt = select(Score).where(Score.referral_code == referral_code).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert_boxes(
        session: AsyncSession,
        *,
        user_id: str,
        username: str | None,
        followers_count: int,
        bronze_points: int,
        bronze_tier: str | None,
        silver_points: int,
        silver_tier: str | None,
        gold_points: int,
        gold_tier: str | None,
        referral_code: str,
        now_utc: datetime,
    ) -> Score:
        box_total = bronze_points + silver_points + gold_points
        stmt = insert(Score).values(
            user_id=user_id,
            username=username,
            followers_count=followers_count,
            bronze_points=bronze_points,
            bronze_tier=bronze_tier,
            silver_points=silver_points,
            silver_tier=silver_tier,
            gold_points=gold_points,
            gold_tier=gold_tier,
            referral_code=referral_code,
            referral_bonus_points=0,
            referral_count=0,
            total_points=box_total,
            created_at=now_utc,
            updated_at=now_utc,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Score.user_id],
            set_={
                "username": func.coalesce(stmt.excluded.username, Score.username),
                "followers_count": stmt.excluded.followers_count,
                "bronze_points": stmt.excluded.bronze_points,
                "bronze_tier": stmt.excluded.bronze_tier,
                "silver_points": stmt.excluded.silver_points,
                "silver_tier": stmt.excluded.silver_tier,
                "gold_points": stmt.excluded.gold_points,
                "gold_tier": stmt.excluded.gold_tier,
                "referral_code": func.coalesce(Score.referral_code, stmt.excluded.referral_code),
                "total_points": literal(box_total) + Score.referral_bonus_points,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(Score)
        result = await session.execute(stmt, execution_options={"populate_existing": True})
        return result.scalar_one()

    @staticmethod
    async def ensure_referral_code(
        session: AsyncSession,
        *,
        user_id: str,
        referral_code: str,
        now_utc: datetime,
    ) -> str:
        stmt = insert(Score).values(
            user_id=user_id,
            referral_code=referral_code,
            created_at=now_utc,
            updated_at=now_utc,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Score.user_id],
            set_={"referral_code": func.coalesce(Score.referral_code, stmt.excluded.referral_code)},
        ).returning(Score.referral_code)
        result = await session.execute(stmt)
        return str(result.scalar_one())

    @staticmethod
    async def credit_referrer(
        session: AsyncSession,
        *,
        user_id: str,
        bonus_points: int,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Score)
            .where(Score.user_id == user_id)
            .values(
                referral_bonus_points=Score.referral_bonus_points + bonus_points,
                referral_count=Score.referral_count + 1,
                total_points=Score.total_points + bonus_points,
                updated_at=now_utc,
            )
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def credit_referred(
        session: AsyncSession,
        *,
        user_id: str,
        username: str | None,
        referred_by: str,
        bonus_points: int,
        referral_code: str,
        now_utc: datetime,
    ) -> None:
        stmt = insert(Score).values(
            user_id=user_id,
            username=username,
            referred_by=referred_by,
            referral_bonus_points=bonus_points,
            total_points=bonus_points,
            referral_code=referral_code,
            created_at=now_utc,
            updated_at=now_utc,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Score.user_id],
            set_={
                "username": func.coalesce(Score.username, stmt.excluded.username),
                "referred_by": stmt.excluded.referred_by,
                "referral_bonus_points": Score.referral_bonus_points + bonus_points,
                "total_points": Score.total_points + bonus_points,
                "referral_code": func.coalesce(Score.referral_code, stmt.excluded.referral_code),
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await session.execute(stmt)

    @staticmethod
    async def record_share(
        session: AsyncSession,
        *,
        user_id: str,
        post_url: str | None,
        referral_code: str,
        now_utc: datetime,
    ) -> Score:
        stmt = insert(Score).values(
            user_id=user_id,
            share_post_url=post_url,
            shared_at=now_utc,
            referral_code=referral_code,
            created_at=now_utc,
            updated_at=now_utc,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Score.user_id],
            set_={
                "share_post_url": func.coalesce(stmt.excluded.share_post_url, Score.share_post_url),
                "shared_at": func.coalesce(Score.shared_at, stmt.excluded.shared_at),
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(Score)
        result = await session.execute(stmt, execution_options={"populate_existing": True})
        return result.scalar_one()

    @staticmethod
    async def list_ranked(
        session: AsyncSession,
        *,
        limit: int,
        offset: int,
    ) -> list[tuple[int, Score]]:
        rank = func.rank().over(order_by=Score.total_points.desc()).label("rank")
        stmt = (
            select(rank, Score)
            .where(Score.total_points > 0)
            .order_by(Score.total_points.desc(), Score.id.asc())
            .limit(limit)
            .offset(offset)
        )
        result = await session.execute(stmt)
        return [(int(rank_raw), score) for rank_raw, score in result.all()]

    @staticmethod
    async def count_ranked(session: AsyncSession) -> int:
        stmt = select(func.count(Score.id)).where(Score.total_points > 0)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def aggregate_stats(session: AsyncSession) -> dict[str, int]:
        stmt = select(
            func.count(Score.id),
            func.count(case((Score.total_points > 0, 1))),
            func.coalesce(func.sum(Score.total_points), 0),
            func.count(case((Score.shared_at.is_not(None), 1))),
            select(func.count(Referral.id)).scalar_subquery(),
        )
        result = await session.execute(stmt)
        rows_total, scored_total, points_total, shared_total, referrals_total = result.one()
        return {
            "score_rows": int(rows_total or 0),
            "scored_users": int(scored_total or 0),
            "total_points": int(points_total or 0),
            "shared_users": int(shared_total or 0),
            "referrals": int(referrals_total or 0),
        }
