from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_provider_user_id(
        session: AsyncSession,
        *,
        provider_user_id: str,
        provider: str | None = None,
    ) -> User | None:
        stmt = select(User).where(User.provider_user_id == provider_user_id)
        if provider is not None:
            stmt = stmt.where(User.provider == provider)
        stmt = stmt.order_by(User.login_count.desc()).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert_login(
        session: AsyncSession,
        *,
        provider: str,
        provider_user_id: str,
        username: str | None,
        display_name: str | None,
        avatar_url: str | None,
        followers_count: int,
        now_utc: datetime,
    ) -> User:
        stmt = insert(User).values(
            provider=provider,
            provider_user_id=provider_user_id,
            username=username,
            display_name=display_name,
            avatar_url=avatar_url,
            followers_count=followers_count,
            login_count=1,
            created_at=now_utc,
            last_login_at=now_utc,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_users_provider_identity",
            set_={
                "username": func.coalesce(stmt.excluded.username, User.username),
                "display_name": func.coalesce(stmt.excluded.display_name, User.display_name),
                "avatar_url": func.coalesce(stmt.excluded.avatar_url, User.avatar_url),
                "followers_count": stmt.excluded.followers_count,
                "login_count": User.login_count + 1,
                "last_login_at": stmt.excluded.last_login_at,
            },
        ).returning(User)
        result = await session.execute(stmt, execution_options={"populate_existing": True})
        return result.scalar_one()

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(User.id)))
        return int(result.scalar_one() or 0)
