from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class BoxType(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"


@dataclass(frozen=True, slots=True)
class FollowerTier:
    min_followers: int
    max_followers: int | None
    label: str
    gold_points_min: int
    gold_points_max: int
    max_power_score: int
    max_free_play_dollars: Decimal
    max_real_points: int

    def contains(self, followers: int) -> bool:
        if followers < self.min_followers:
            return False
        return self.max_followers is None or followers < self.max_followers


@dataclass(frozen=True, slots=True)
class RolledBox:
    points: int
    tier_label: str


@dataclass(frozen=True, slots=True)
class BoxRoll:
    user_id: str
    box_type: BoxType
    points: int
    tier_label: str
    issued_at: int
    token: str


@dataclass(frozen=True, slots=True)
class BoxClaim:
    box_type: BoxType
    points: int
    tier_label: str | None = None
    issued_at: int | None = None
    token: str | None = None


@dataclass(frozen=True, slots=True)
class ScoreSubmission:
    user_id: str
    username: str | None
    followers_count: int
    boxes: tuple[BoxClaim, ...]
    declared_total: int


@dataclass(frozen=True, slots=True)
class RewardSplit:
    free_play_points: int
    real_points: int
    free_play_dollars: Decimal


@dataclass(frozen=True, slots=True)
class BoxState:
    box_type: BoxType
    points: int
    tier_label: str | None

    @property
    def revealed(self) -> bool:
        return self.points > 0


@dataclass(frozen=True, slots=True)
class ScoreRecordView:
    user_id: str
    username: str | None
    followers_count: int
    boxes: tuple[BoxState, ...]
    referral_code: str | None
    referred_by: str | None
    referral_bonus_points: int
    referral_count: int
    total_points: int
    shared_at: datetime | None
    share_post_url: str | None
    updated_at: datetime | None


@dataclass(frozen=True, slots=True)
class ScoreSummary:
    record: ScoreRecordView
    tier: FollowerTier
    dollar_headline: Decimal
    split: RewardSplit
