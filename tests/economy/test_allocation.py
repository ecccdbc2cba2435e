from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from app.economy.rewards.allocation import dollar_headline, reward_split
from app.economy.rewards.tiers import FOLLOWER_TIERS, tier_for_followers


def test_dollar_headline_is_points_over_twenty() -> None:
    assert dollar_headline(1_000) == Decimal("50.00")
    assert dollar_headline(0) == Decimal("0.00")
    assert dollar_headline(71_600) == Decimal("3580.00")


def test_dollar_headline_rounds_to_cents() -> None:
    assert dollar_headline(1) == Decimal("0.05")
    assert dollar_headline(3) == Decimal("0.15")


def test_reward_split_for_uncapped_tier() -> None:
    tier = replace(FOLLOWER_TIERS[0], max_free_play_dollars=Decimal("1000"))

    split = reward_split(1_000, tier)

    assert split.free_play_points == 600
    assert split.real_points == 400
    assert split.free_play_dollars == Decimal("30.00")


def test_reward_split_floors_point_shares() -> None:
    split = reward_split(1_001, tier_for_followers(0))
    assert split.free_play_points == 600
    assert split.real_points == 400


def test_free_play_dollars_capped_by_tier() -> None:
    tier = tier_for_followers(500)

    split = reward_split(50_000, tier)

    assert split.free_play_dollars == tier.max_free_play_dollars


@given(st.integers(min_value=0, max_value=71_600), st.sampled_from(FOLLOWER_TIERS))
def test_split_never_exceeds_inputs(power_score: int, tier) -> None:
    split = reward_split(power_score, tier)

    assert split.free_play_points + split.real_points <= power_score
    assert split.free_play_dollars <= tier.max_free_play_dollars
    assert split.free_play_dollars >= 0
