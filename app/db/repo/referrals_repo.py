from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.referrals import Referral
from app.db.models.scores import Score


class ReferralsRepo:
    @staticmethod
    async def get_by_referred_user_id(
        session: AsyncSession,
        *,
        referred_user_id: str,
    ) -> Referral | None:
        stmt = select(Referral).where(Referral.referred_user_id == referred_user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def insert_if_absent(
        session: AsyncSession,
        *,
        referrer_user_id: str,
        referred_user_id: str,
        referral_code: str,
        referrer_bonus: int,
        referred_bonus: int,
        now_utc: datetime,
    ) -> int | None:
        """Returns the new row id, or ``None`` when the referred user already has one.

        The unique index on ``referred_user_id`` makes a concurrent duplicate
        wait for the first transaction and then insert nothing.
        """
        stmt = (
            insert(Referral)
            .values(
                referrer_user_id=referrer_user_id,
                referred_user_id=referred_user_id,
                referral_code=referral_code,
                referrer_bonus=referrer_bonus,
                referred_bonus=referred_bonus,
                status="CONVERTED",
                created_at=now_utc,
                converted_at=now_utc,
            )
            .on_conflict_do_nothing(index_elements=[Referral.referred_user_id])
            .returning(Referral.id)
        )
        result = await session.execute(stmt)
        inserted_id = result.scalar_one_or_none()
        return int(inserted_id) if inserted_id is not None else None

    @staticmethod
    async def list_for_referrer(
        session: AsyncSession,
        *,
        referrer_user_id: str,
        limit: int = 50,
    ) -> list[tuple[Referral, str | None, int]]:
        stmt = (
            select(Referral, Score.username, Score.total_points)
            .outerjoin(Score, Score.user_id == Referral.referred_user_id)
            .where(Referral.referrer_user_id == referrer_user_id)
            .order_by(Referral.created_at.desc(), Referral.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [
            (referral, username, int(total_points or 0))
            for referral, username, total_points in result.all()
        ]
