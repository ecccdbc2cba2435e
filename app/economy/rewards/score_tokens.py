"""Server-issued score attestations.

A roll is signed over ``user:box:points:label:issued_at`` so the client can
neither inflate the points nor move them to another user or box. Tokens are
verified statelessly: the digest is recomputed and the issue time must lie
within the TTL. Nothing marks a token as spent, so a captured token can be
replayed inside its window; submissions store absolute values, which makes
such a replay an identical rewrite.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from datetime import timedelta

from app.economy.rewards.constants import SCORE_TOKEN_TTL
from app.economy.rewards.errors import ScoreTokenExpiredError, ScoreTokenInvalidError
from app.economy.rewards.roller import parse_box_type, roll_box
from app.economy.rewards.types import BoxRoll, BoxType


def now_epoch_ms() -> int:
    return int(time.time() * 1000)


def _canonical_payload(
    user_id: str,
    box_type: BoxType,
    points: int,
    tier_label: str | None,
    issued_at: int,
) -> bytes:
    return f"{user_id}:{box_type.value}:{int(points)}:{tier_label or ''}:{int(issued_at)}".encode(
        "utf-8"
    )


def sign_score(
    user_id: str,
    box_type: str | BoxType,
    points: int,
    tier_label: str | None,
    issued_at: int,
    *,
    secret: str,
) -> str:
    payload = _canonical_payload(user_id, parse_box_type(box_type), points, tier_label, issued_at)
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def check_score_token(
    user_id: str,
    box_type: str | BoxType,
    points: int,
    tier_label: str | None,
    issued_at: int | None,
    token: str | None,
    *,
    secret: str,
    ttl: timedelta = SCORE_TOKEN_TTL,
    now_ms: int | None = None,
) -> None:
    if issued_at is None:
        raise ScoreTokenExpiredError("issued_at missing")
    resolved_now_ms = now_epoch_ms() if now_ms is None else now_ms
    if resolved_now_ms - int(issued_at) > int(ttl.total_seconds() * 1000):
        raise ScoreTokenExpiredError("token older than ttl")
    if not token:
        raise ScoreTokenInvalidError("token missing")

    expected = sign_score(user_id, box_type, points, tier_label, issued_at, secret=secret)
    # Hex is case-insensitive on the wire; the digest is always emitted lowercase.
    presented = token.strip().lower().encode("utf-8")
    if not hmac.compare_digest(expected.encode("ascii"), presented):
        raise ScoreTokenInvalidError("digest mismatch")


def verify_score(
    user_id: str,
    box_type: str | BoxType,
    points: int,
    tier_label: str | None,
    issued_at: int | None,
    token: str | None,
    *,
    secret: str,
    ttl: timedelta = SCORE_TOKEN_TTL,
    now_ms: int | None = None,
) -> bool:
    try:
        check_score_token(
            user_id,
            box_type,
            points,
            tier_label,
            issued_at,
            token,
            secret=secret,
            ttl=ttl,
            now_ms=now_ms,
        )
    except (ScoreTokenExpiredError, ScoreTokenInvalidError):
        return False
    return True


def issue_box_roll(
    user_id: str,
    box_type: str | BoxType,
    followers_count: int,
    *,
    secret: str,
    now_ms: int | None = None,
) -> BoxRoll:
    resolved_type = parse_box_type(box_type)
    rolled = roll_box(resolved_type, followers_count)
    issued_at = now_epoch_ms() if now_ms is None else now_ms
    return BoxRoll(
        user_id=user_id,
        box_type=resolved_type,
        points=rolled.points,
        tier_label=rolled.tier_label,
        issued_at=issued_at,
        token=sign_score(
            user_id,
            resolved_type,
            rolled.points,
            rolled.tier_label,
            issued_at,
            secret=secret,
        ),
    )
