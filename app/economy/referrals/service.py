from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.referral_codes import generate_referral_code, normalize_referral_code
from app.db.repo.referrals_repo import ReferralsRepo
from app.db.repo.scores_repo import ScoresRepo
from app.db.repo.users_repo import UsersRepo
from app.economy.referrals.constants import (
    FIRST_SIGNUP_MAX_LOGINS,
    MAX_REFERRAL_BONUS,
    REFERRAL_BONUS_REFERRED,
    REFERRAL_BONUS_REFERRER,
    REFERRAL_OVERVIEW_LIST_LIMIT,
)
from app.economy.referrals.errors import (
    AlreadyReferredError,
    InvalidReferralCodeError,
    NotFirstSignupError,
    SelfReferralError,
)
from app.economy.referrals.types import (
    ReferralApplyResult,
    ReferralCodeCheck,
    ReferralOverview,
    ReferredUserItem,
)

logger = structlog.get_logger(__name__)


def referrer_bonus_for(current_bonus_points: int) -> int:
    remaining = MAX_REFERRAL_BONUS - max(0, int(current_bonus_points))
    return max(0, min(REFERRAL_BONUS_REFERRER, remaining))


class ReferralService:
    @staticmethod
    def code_for(user_id: str) -> str:
        return generate_referral_code(user_id, salt=get_settings().referral_code_salt)

    @staticmethod
    async def ensure_code(
        session: AsyncSession,
        *,
        user_id: str,
        now_utc: datetime | None = None,
    ) -> str:
        now_utc = now_utc or datetime.now(timezone.utc)
        return await ScoresRepo.ensure_referral_code(
            session,
            user_id=user_id,
            referral_code=ReferralService.code_for(user_id),
            now_utc=now_utc,
        )

    @staticmethod
    async def get_overview(
        session: AsyncSession,
        *,
        user_id: str,
        now_utc: datetime | None = None,
    ) -> ReferralOverview:
        referral_code = await ReferralService.ensure_code(session, user_id=user_id, now_utc=now_utc)
        score = await ScoresRepo.get_by_user_id(session, user_id)
        referrals = await ReferralsRepo.list_for_referrer(
            session,
            referrer_user_id=user_id,
            limit=REFERRAL_OVERVIEW_LIST_LIMIT,
        )
        return ReferralOverview(
            referral_code=referral_code,
            referral_bonus_points=int(score.referral_bonus_points or 0) if score else 0,
            referral_count=int(score.referral_count or 0) if score else 0,
            referred_by=score.referred_by if score else None,
            max_bonus=MAX_REFERRAL_BONUS,
            bonus_per_referral=REFERRAL_BONUS_REFERRER,
            referred_bonus=REFERRAL_BONUS_REFERRED,
            referrals=tuple(
                ReferredUserItem(
                    username=username,
                    bonus=referral.referrer_bonus,
                    status=referral.status,
                    total_points=total_points,
                    created_at=referral.created_at,
                    converted_at=referral.converted_at,
                )
                for referral, username, total_points in referrals
            ),
        )

    @staticmethod
    async def check_code(session: AsyncSession, *, referral_code: str) -> ReferralCodeCheck:
        normalized = normalize_referral_code(referral_code)
        if not normalized:
            return ReferralCodeCheck(valid=False)
        referrer = await ScoresRepo.get_by_referral_code(session, normalized)
        if referrer is None:
            return ReferralCodeCheck(valid=False)
        return ReferralCodeCheck(valid=True, referrer_username=referrer.username)

    @staticmethod
    async def apply(
        session: AsyncSession,
        *,
        referred_user_id: str,
        referral_code: str,
        username: str | None,
        now_utc: datetime | None = None,
    ) -> ReferralApplyResult:
        """Credits a referral once per referred user, inside the caller's transaction.

        Row locks are taken referred-first, then referrer. The unique index on
        ``referrals.referred_user_id`` decides concurrent duplicates: the loser
        inserts nothing and the whole unit rolls back.
        """
        now_utc = now_utc or datetime.now(timezone.utc)

        identity = await UsersRepo.get_by_provider_user_id(
            session,
            provider_user_id=referred_user_id,
        )
        if identity is not None and identity.login_count > FIRST_SIGNUP_MAX_LOGINS:
            raise NotFirstSignupError

        referred_score = await ScoresRepo.get_by_user_id_for_update(session, referred_user_id)
        if referred_score is not None and referred_score.referred_by:
            raise AlreadyReferredError

        normalized_code = normalize_referral_code(referral_code)
        if not normalized_code:
            raise InvalidReferralCodeError
        referrer = await ScoresRepo.get_by_referral_code_for_update(session, normalized_code)
        if referrer is None:
            raise InvalidReferralCodeError
        if referrer.user_id == referred_user_id:
            raise SelfReferralError

        referrer_bonus = referrer_bonus_for(referrer.referral_bonus_points)
        referral_id = await ReferralsRepo.insert_if_absent(
            session,
            referrer_user_id=referrer.user_id,
            referred_user_id=referred_user_id,
            referral_code=normalized_code,
            referrer_bonus=referrer_bonus,
            referred_bonus=REFERRAL_BONUS_REFERRED,
            now_utc=now_utc,
        )
        if referral_id is None:
            raise AlreadyReferredError

        await ScoresRepo.credit_referrer(
            session,
            user_id=referrer.user_id,
            bonus_points=referrer_bonus,
            now_utc=now_utc,
        )
        await ScoresRepo.credit_referred(
            session,
            user_id=referred_user_id,
            username=username,
            referred_by=referrer.user_id,
            bonus_points=REFERRAL_BONUS_REFERRED,
            referral_code=ReferralService.code_for(referred_user_id),
            now_utc=now_utc,
        )

        logger.info(
            "referral_applied",
            referral_id=referral_id,
            referrer_user_id=referrer.user_id,
            referred_user_id=referred_user_id,
            referral_code=normalized_code,
            referrer_bonus=referrer_bonus,
            referred_bonus=REFERRAL_BONUS_REFERRED,
            referrer_capped=referrer_bonus < REFERRAL_BONUS_REFERRER,
        )
        return ReferralApplyResult(
            referrer_user_id=referrer.user_id,
            referrer_username=referrer.username,
            referrer_bonus=referrer_bonus,
            referred_bonus=REFERRAL_BONUS_REFERRED,
        )
