"""campaign_core_data_model

Revision ID: 3c1e7a5b9d20
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "3c1e7a5b9d20"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("provider", sa.String(20), nullable=False),
        sa.Column("provider_user_id", sa.String(100), nullable=False),
        sa.Column("username", sa.String(100), nullable=True),
        sa.Column("display_name", sa.String(200), nullable=True),
        sa.Column("followers_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("login_count", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("login_count >= 0", name="ck_users_login_count_non_negative"),
        sa.CheckConstraint("followers_count >= 0", name="ck_users_followers_count_non_negative"),
        sa.UniqueConstraint("provider", "provider_user_id", name="uq_users_provider_identity"),
    )
    op.create_index("idx_users_created_at", "users", ["created_at"])

    op.create_table(
        "scores",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.String(100), nullable=False),
        sa.Column("username", sa.String(100), nullable=True),
        sa.Column("followers_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("bronze_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("bronze_tier", sa.String(100), nullable=True),
        sa.Column("silver_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("silver_tier", sa.String(100), nullable=True),
        sa.Column("gold_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("gold_tier", sa.String(100), nullable=True),
        sa.Column("referral_code", sa.String(20), nullable=True),
        sa.Column("referred_by", sa.String(100), nullable=True),
        sa.Column("referral_bonus_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("referral_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("share_post_url", sa.Text(), nullable=True),
        sa.Column("shared_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("bronze_points >= 0", name="ck_scores_bronze_points_non_negative"),
        sa.CheckConstraint("silver_points >= 0", name="ck_scores_silver_points_non_negative"),
        sa.CheckConstraint("gold_points >= 0", name="ck_scores_gold_points_non_negative"),
        sa.CheckConstraint("referral_bonus_points >= 0", name="ck_scores_referral_bonus_non_negative"),
        sa.CheckConstraint("referral_count >= 0", name="ck_scores_referral_count_non_negative"),
        sa.CheckConstraint(
            "total_points = bronze_points + silver_points + gold_points + referral_bonus_points",
            name="ck_scores_total_points_consistent",
        ),
        sa.UniqueConstraint("user_id", name="uq_scores_user_id"),
        sa.UniqueConstraint("referral_code", name="uq_scores_referral_code"),
    )
    op.create_index("idx_scores_total_points", "scores", [sa.text("total_points DESC"), "id"])
    op.create_index("idx_scores_referred_by", "scores", ["referred_by"])

    op.create_table(
        "referrals",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("referrer_user_id", sa.String(100), nullable=False),
        sa.Column("referred_user_id", sa.String(100), nullable=False),
        sa.Column("referral_code", sa.String(20), nullable=False),
        sa.Column("referrer_bonus", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("referred_bonus", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("converted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('PENDING','CONVERTED')", name="ck_referrals_status"),
        sa.CheckConstraint(
            "referrer_user_id <> referred_user_id",
            name="ck_referrals_no_self_referral",
        ),
        sa.CheckConstraint("referrer_bonus >= 0", name="ck_referrals_referrer_bonus_non_negative"),
        sa.CheckConstraint("referred_bonus >= 0", name="ck_referrals_referred_bonus_non_negative"),
        sa.UniqueConstraint("referred_user_id", name="uq_referrals_referred_user_id"),
    )
    op.create_index(
        "idx_referrals_referrer_created",
        "referrals",
        ["referrer_user_id", "created_at"],
    )
    op.create_index("idx_referrals_code", "referrals", ["referral_code"])


def downgrade() -> None:
    op.drop_index("idx_referrals_code", table_name="referrals")
    op.drop_index("idx_referrals_referrer_created", table_name="referrals")
    op.drop_table("referrals")
    op.drop_index("idx_scores_referred_by", table_name="scores")
    op.drop_index("idx_scores_total_points", table_name="scores")
    op.drop_table("scores")
    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_table("users")
