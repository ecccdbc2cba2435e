from __future__ import annotations

import random
import secrets

from app.economy.rewards.constants import BOX_POINT_RANGES, BOX_TIER_LABELS
from app.economy.rewards.errors import InvalidBoxTypeError
from app.economy.rewards.tiers import gold_range_for_followers
from app.economy.rewards.types import BoxType, RolledBox

# Box outcomes carry monetary value, so draws come from the OS CSPRNG.
_SYSTEM_RANDOM = secrets.SystemRandom()


def parse_box_type(raw_box_type: str | BoxType) -> BoxType:
    if isinstance(raw_box_type, BoxType):
        return raw_box_type
    try:
        return BoxType(str(raw_box_type).strip().lower())
    except ValueError as exc:
        raise InvalidBoxTypeError(str(raw_box_type)) from exc


def point_range_for_box(box_type: BoxType, *, followers_count: int) -> tuple[int, int]:
    if box_type is BoxType.GOLD:
        return gold_range_for_followers(followers_count)
    return BOX_POINT_RANGES[box_type.value]


def roll_box(
    box_type: str | BoxType,
    followers_count: int,
    *,
    rng: random.Random | None = None,
) -> RolledBox:
    resolved_type = parse_box_type(box_type)
    source = rng or _SYSTEM_RANDOM
    min_points, max_points = point_range_for_box(
        resolved_type,
        followers_count=max(0, int(followers_count)),
    )
    return RolledBox(
        points=source.randint(min_points, max_points),
        tier_label=source.choice(BOX_TIER_LABELS[resolved_type.value]),
    )
