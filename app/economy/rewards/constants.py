from __future__ import annotations

from datetime import timedelta

BOX_POINT_RANGES: dict[str, tuple[int, int]] = {
    "bronze": (100, 500),
    "silver": (500, 1100),
    "gold": (0, 70000),
}
MAX_TOTAL_POINTS = sum(upper for _, upper in BOX_POINT_RANGES.values())
TOTAL_MISMATCH_TOLERANCE = 1

BOX_TIER_LABELS: dict[str, tuple[str, ...]] = {
    "bronze": ("Pit Boss Prospect", "Table Rookie", "Chip Stacker", "House Hopeful"),
    "silver": ("High Roller", "VIP Candidate", "Felt Walker", "Card Counter"),
    "gold": ("House Legend", "Whale Status", "Inner Circle", "The Chosen"),
}

SCORE_TOKEN_TTL = timedelta(hours=2)

POINTS_PER_DOLLAR = 20
FREE_PLAY_SHARE_PERCENT = 60
REAL_POINTS_SHARE_PERCENT = 40
