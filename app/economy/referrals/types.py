from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ReferralApplyResult:
    referrer_user_id: str
    referrer_username: str | None
    referrer_bonus: int
    referred_bonus: int


@dataclass(frozen=True, slots=True)
class ReferredUserItem:
    username: str | None
    bonus: int
    status: str
    total_points: int
    created_at: datetime
    converted_at: datetime | None


@dataclass(frozen=True, slots=True)
class ReferralOverview:
    referral_code: str
    referral_bonus_points: int
    referral_count: int
    referred_by: str | None
    max_bonus: int
    bonus_per_referral: int
    referred_bonus: int
    referrals: tuple[ReferredUserItem, ...]


@dataclass(frozen=True, slots=True)
class ReferralCodeCheck:
    valid: bool
    referrer_username: str | None = None
