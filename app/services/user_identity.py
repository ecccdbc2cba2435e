from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.repo.users_repo import UsersRepo

DEFAULT_IDENTITY_PROVIDER = "twitter"

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class LoginResult:
    user_id: int
    login_count: int
    is_first_login: bool


class UserIdentityService:
    @staticmethod
    async def record_login(
        session: AsyncSession,
        *,
        provider_user_id: str,
        username: str | None,
        display_name: str | None = None,
        avatar_url: str | None = None,
        followers_count: int = 0,
        provider: str = DEFAULT_IDENTITY_PROVIDER,
        now_utc: datetime | None = None,
    ) -> LoginResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        user = await UsersRepo.upsert_login(
            session,
            provider=provider,
            provider_user_id=provider_user_id,
            username=username,
            display_name=display_name,
            avatar_url=avatar_url,
            followers_count=max(0, followers_count),
            now_utc=now_utc,
        )
        result = LoginResult(
            user_id=user.id,
            login_count=user.login_count,
            is_first_login=user.login_count <= 1,
        )
        logger.info(
            "identity_login_recorded",
            provider=provider,
            provider_user_id=provider_user_id,
            login_count=result.login_count,
            is_first_login=result.is_first_login,
        )
        return result

    @staticmethod
    async def resolve_followers_count(
        session: AsyncSession,
        provider_user_id: str,
        fallback: int,
        *,
        trust_fallback: bool | None = None,
    ) -> int:
        user = await UsersRepo.get_by_provider_user_id(
            session,
            provider_user_id=provider_user_id,
        )
        if user is None:
            if trust_fallback is None:
                trust_fallback = get_settings().trust_client_followers
            if trust_fallback:
                return max(0, fallback)
            if fallback > 0:
                logger.info(
                    "client_followers_ignored",
                    provider_user_id=provider_user_id,
                    declared_followers=fallback,
                )
            return 0
        return int(user.followers_count)
