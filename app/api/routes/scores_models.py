from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class _BoxClaimBase(BaseModel):
    points: int
    tier_label: str | None = Field(default=None, max_length=100)
    issued_at: int | None = Field(default=None, ge=0)
    token: str | None = Field(default=None, max_length=128)


class BronzeBoxClaim(_BoxClaimBase):
    box_type: Literal["bronze"]


class SilverBoxClaim(_BoxClaimBase):
    box_type: Literal["silver"]


class GoldBoxClaim(_BoxClaimBase):
    box_type: Literal["gold"]


BoxClaimPayload = Annotated[
    BronzeBoxClaim | SilverBoxClaim | GoldBoxClaim,
    Field(discriminator="box_type"),
]


class ScoreSubmitRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=100)
    username: str | None = Field(default=None, max_length=100)
    followers_count: int = Field(default=0, ge=0)
    boxes: list[BoxClaimPayload] = Field(max_length=3)
    total_points: int


class BoxRollResponse(BaseModel):
    box_type: str
    points: int = Field(ge=0)
    tier_label: str
    token: str
    issued_at: int = Field(ge=0)


class BoxStateResponse(BaseModel):
    box_type: str
    points: int = Field(ge=0)
    tier_label: str | None = None
    revealed: bool


class ScoreRecordResponse(BaseModel):
    user_id: str
    username: str | None = None
    followers_count: int = Field(ge=0)
    boxes: list[BoxStateResponse]
    referral_code: str | None = None
    referred_by: str | None = None
    referral_bonus_points: int = Field(ge=0)
    referral_count: int = Field(ge=0)
    total_points: int = Field(ge=0)
    shared_at: datetime | None = None
    share_post_url: str | None = None
    updated_at: datetime | None = None


class RewardSplitResponse(BaseModel):
    free_play_points: int = Field(ge=0)
    real_points: int = Field(ge=0)
    free_play_dollars: Decimal


class ScoreSummaryResponse(BaseModel):
    record: ScoreRecordResponse
    tier_label: str
    gold_points_min: int
    gold_points_max: int
    max_power_score: int
    dollar_headline: Decimal
    split: RewardSplitResponse


class ShareRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=100)
    post_url: str | None = Field(default=None, max_length=2000)
