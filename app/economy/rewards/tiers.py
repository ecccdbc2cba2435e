"""Season follower tiers.

Each bracket of social followers maps to the gold box point range and the
per-tier exposure caps the campaign operator is bound by. Brackets are
half-open (``min <= followers < max``) and together cover ``[0, inf)``.
"""

from __future__ import annotations

from decimal import Decimal

from app.economy.rewards.types import FollowerTier

# (min, max, label, gold_min, gold_max, max_power_score, max_free_play_dollars, max_real_points)
_TIER_ROWS: tuple[tuple[int, int | None, str, int, int, int, str, int], ...] = (
    (0, 1_000, "<1K", 0, 1_000, 2_100, "63.00", 840),
    (1_000, 2_000, "1K-2K", 1_001, 1_800, 2_900, "87.00", 1_160),
    (2_000, 3_000, "2K-3K", 1_801, 2_400, 3_500, "105.00", 1_400),
    (3_000, 5_000, "3K-5K", 2_401, 3_000, 4_100, "123.00", 1_640),
    (5_000, 7_500, "5K-7.5K", 3_001, 4_500, 5_600, "168.00", 2_240),
    (7_500, 10_000, "7.5K-10K", 4_501, 6_000, 7_100, "213.00", 2_840),
    (10_000, 15_000, "10K-15K", 6_001, 8_500, 9_600, "288.00", 3_840),
    (15_000, 20_000, "15K-20K", 8_501, 11_000, 12_100, "363.00", 4_840),
    (20_000, 25_000, "20K-25K", 11_001, 13_000, 14_100, "423.00", 5_640),
    (25_000, 30_000, "25K-30K", 13_001, 14_500, 15_600, "468.00", 6_240),
    (30_000, 35_000, "30K-35K", 14_501, 16_000, 17_100, "513.00", 6_840),
    (35_000, 40_000, "35K-40K", 16_001, 18_000, 19_100, "573.00", 7_640),
    (40_000, 45_000, "40K-45K", 18_001, 20_000, 21_100, "633.00", 8_440),
    (45_000, 50_000, "45K-50K", 20_001, 22_000, 23_100, "693.00", 9_240),
    (50_000, 60_000, "50K-60K", 22_001, 25_000, 26_100, "783.00", 10_440),
    (60_000, 70_000, "60K-70K", 25_001, 28_000, 29_100, "873.00", 11_640),
    (70_000, 80_000, "70K-80K", 28_001, 31_000, 32_100, "963.00", 12_840),
    (80_000, 90_000, "80K-90K", 31_001, 34_000, 35_100, "1053.00", 14_040),
    (90_000, 100_000, "90K-100K", 34_001, 37_000, 38_100, "1143.00", 15_240),
    (100_000, 125_000, "100K-125K", 37_001, 42_000, 43_100, "1293.00", 17_240),
    (125_000, 150_000, "125K-150K", 42_001, 47_000, 48_100, "1443.00", 19_240),
    (150_000, 200_000, "150K-200K", 47_001, 53_000, 54_100, "1623.00", 21_640),
    (200_000, 250_000, "200K-250K", 53_001, 60_000, 61_100, "1833.00", 24_440),
    (250_000, None, "250K+", 60_001, 70_000, 71_100, "2133.00", 28_440),
)

FOLLOWER_TIERS: tuple[FollowerTier, ...] = tuple(
    FollowerTier(
        min_followers=min_followers,
        max_followers=max_followers,
        label=label,
        gold_points_min=gold_min,
        gold_points_max=gold_max,
        max_power_score=max_power_score,
        max_free_play_dollars=Decimal(max_free_play),
        max_real_points=max_real_points,
    )
    for (
        min_followers,
        max_followers,
        label,
        gold_min,
        gold_max,
        max_power_score,
        max_free_play,
        max_real_points,
    ) in _TIER_ROWS
)


def tier_for_followers(followers: int) -> FollowerTier:
    for tier in FOLLOWER_TIERS:
        if tier.contains(followers):
            return tier
    return FOLLOWER_TIERS[0]


def gold_range_for_followers(followers: int) -> tuple[int, int]:
    tier = tier_for_followers(followers)
    return tier.gold_points_min, tier.gold_points_max
