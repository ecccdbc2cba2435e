from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from app.economy.rewards.constants import (
    FREE_PLAY_SHARE_PERCENT,
    POINTS_PER_DOLLAR,
    REAL_POINTS_SHARE_PERCENT,
)
from app.economy.rewards.types import FollowerTier, RewardSplit

_CENTS = Decimal("0.01")


def _to_cents(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def dollar_headline(power_score: int) -> Decimal:
    return _to_cents(Decimal(power_score) / POINTS_PER_DOLLAR)


def reward_split(power_score: int, tier: FollowerTier) -> RewardSplit:
    # Integer math keeps floor() exact for large scores.
    free_play_points = (power_score * FREE_PLAY_SHARE_PERCENT) // 100
    real_points = (power_score * REAL_POINTS_SHARE_PERCENT) // 100
    free_play_dollars = min(
        Decimal(free_play_points) / POINTS_PER_DOLLAR,
        tier.max_free_play_dollars,
    )
    return RewardSplit(
        free_play_points=free_play_points,
        real_points=real_points,
        free_play_dollars=_to_cents(free_play_dollars),
    )
