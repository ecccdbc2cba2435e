from __future__ import annotations

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from app.economy.rewards.tiers import FOLLOWER_TIERS, gold_range_for_followers, tier_for_followers


def test_tiers_are_contiguous_and_cover_all_follower_counts() -> None:
    assert FOLLOWER_TIERS[0].min_followers == 0
    assert FOLLOWER_TIERS[-1].max_followers is None
    for lower, upper in zip(FOLLOWER_TIERS, FOLLOWER_TIERS[1:]):
        assert lower.max_followers == upper.min_followers


def test_gold_ranges_never_overlap_and_grow_with_followers() -> None:
    for lower, upper in zip(FOLLOWER_TIERS, FOLLOWER_TIERS[1:]):
        assert lower.gold_points_max < upper.gold_points_min


@pytest.mark.parametrize(
    ("followers", "expected_label"),
    [
        (0, "<1K"),
        (999, "<1K"),
        (1_000, "1K-2K"),
        (5_000, "5K-7.5K"),
        (7_499, "5K-7.5K"),
        (249_999, "200K-250K"),
        (10_000_000, "250K+"),
    ],
)
def test_tier_for_followers_uses_half_open_brackets(followers: int, expected_label: str) -> None:
    assert tier_for_followers(followers).label == expected_label


def test_negative_followers_fall_back_to_lowest_tier() -> None:
    assert tier_for_followers(-5) is FOLLOWER_TIERS[0]


def test_five_thousand_followers_gold_range() -> None:
    assert gold_range_for_followers(5_000) == (3_001, 4_500)


def test_caps_are_consistent_with_max_power_score() -> None:
    for tier in FOLLOWER_TIERS:
        assert tier.max_real_points == tier.max_power_score * 40 // 100
        assert tier.max_free_play_dollars == Decimal(tier.max_power_score * 60 // 100) / 20


@given(st.integers(min_value=0, max_value=5_000_000))
def test_exactly_one_tier_contains_each_follower_count(followers: int) -> None:
    matching = [tier for tier in FOLLOWER_TIERS if tier.contains(followers)]
    assert len(matching) == 1
    assert tier_for_followers(followers) is matching[0]
