from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Score(Base):
    __tablename__ = "scores"
    __table_args__ = (
        CheckConstraint("bronze_points >= 0", name="bronze_points_non_negative"),
        CheckConstraint("silver_points >= 0", name="silver_points_non_negative"),
        CheckConstraint("gold_points >= 0", name="gold_points_non_negative"),
        CheckConstraint("referral_bonus_points >= 0", name="referral_bonus_non_negative"),
        CheckConstraint("referral_count >= 0", name="referral_count_non_negative"),
        CheckConstraint(
            "total_points = bronze_points + silver_points + gold_points + referral_bonus_points",
            name="total_points_consistent",
        ),
        Index("idx_scores_total_points", text("total_points DESC"), "id"),
        Index("idx_scores_referred_by", "referred_by"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    username: Mapped[str | None] = mapped_column(String(100), nullable=True)
    followers_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    bronze_points: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    bronze_tier: Mapped[str | None] = mapped_column(String(100), nullable=True)
    silver_points: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    silver_tier: Mapped[str | None] = mapped_column(String(100), nullable=True)
    gold_points: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    gold_tier: Mapped[str | None] = mapped_column(String(100), nullable=True)
    referral_code: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    referred_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    referral_bonus_points: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
    referral_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    share_post_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    shared_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
