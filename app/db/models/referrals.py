from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Referral(Base):
    __tablename__ = "referrals"
    __table_args__ = (
        CheckConstraint("status IN ('PENDING','CONVERTED')", name="status"),
        CheckConstraint("referrer_user_id <> referred_user_id", name="no_self_referral"),
        CheckConstraint("referrer_bonus >= 0", name="referrer_bonus_non_negative"),
        CheckConstraint("referred_bonus >= 0", name="referred_bonus_non_negative"),
        Index("idx_referrals_referrer_created", "referrer_user_id", "created_at"),
        Index("idx_referrals_code", "referral_code"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    referrer_user_id: Mapped[str] = mapped_column(String(100), nullable=False)
    referred_user_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    referral_code: Mapped[str] = mapped_column(String(20), nullable=False)
    referrer_bonus: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    referred_bonus: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    converted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
