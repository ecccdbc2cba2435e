from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    username: str | None
    followers_count: int
    total_points: int
    real_points: int
    bronze_points: int
    silver_points: int
    gold_points: int


@dataclass(frozen=True, slots=True)
class LeaderboardPage:
    entries: tuple[LeaderboardEntry, ...]
    total_users: int
    limit: int
    offset: int
