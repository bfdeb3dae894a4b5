"""Initial schema — the 11 marketplace tables.

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def _user_fk(name: str = "user_id", unique: bool = False, index: bool = False) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        unique=unique,
        index=index,
        nullable=False,
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _updated_at(nullable: bool = True) -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    # ── 1. users ────────────────────────────────────────────────────
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.String, unique=True, index=True, nullable=False),
        sa.Column("password_hash", sa.String, nullable=False),
        sa.Column(
            "role",
            sa.String,
            nullable=False,
            comment="client / companion / admin",
        ),
        sa.Column("first_name", sa.String, nullable=True),
        sa.Column("last_name", sa.String, nullable=True),
        sa.Column("phone", sa.String, nullable=True),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("gender", sa.String, nullable=True),
        sa.Column("location", postgresql.JSONB, nullable=True),
        sa.Column("profile_picture", sa.String, nullable=True),
        sa.Column("is_verified", sa.Boolean, server_default="false", nullable=False),
        sa.Column(
            "verification_status",
            postgresql.JSONB,
            nullable=False,
            comment="Per-channel {status, submitted_at, verified_at}",
        ),
        sa.Column("subscription_status", postgresql.JSONB, nullable=True),
        sa.Column("agreement_status", postgresql.JSONB, nullable=True),
        sa.Column("age_verification", postgresql.JSONB, nullable=True),
        sa.Column("is_active", sa.Boolean, server_default="true", nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reset_password_token", sa.String, index=True, nullable=True),
        sa.Column("reset_password_expires", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )

    # ── 2. client_profiles ──────────────────────────────────────────
    op.create_table(
        "client_profiles",
        _uuid_pk(),
        _user_fk(unique=True),
        sa.Column("display_name", sa.String, nullable=True),
        sa.Column("age", sa.Integer, nullable=True),
        sa.Column("gender", sa.String, nullable=True),
        sa.Column("preferences", postgresql.JSONB, nullable=True),
        sa.Column(
            "favorites",
            postgresql.JSONB,
            nullable=False,
            comment="[{companion_id, added_at}]",
        ),
        sa.Column(
            "recently_viewed",
            postgresql.JSONB,
            nullable=False,
            comment="[{companion_id, viewed_at}], newest first, max 20",
        ),
        sa.Column("verification_level", sa.String, nullable=False),
        sa.Column("is_active", sa.Boolean, server_default="true", nullable=False),
        _created_at(),
        _updated_at(),
    )

    # ── 3. companion_profiles ───────────────────────────────────────
    op.create_table(
        "companion_profiles",
        _uuid_pk(),
        _user_fk(unique=True),
        sa.Column("display_name", sa.String, nullable=False),
        sa.Column("age", sa.Integer, nullable=True, comment="18-99"),
        sa.Column("height", sa.Integer, nullable=True, comment="cm, 140-220"),
        sa.Column("body_type", sa.String, nullable=True),
        sa.Column("ethnicity", sa.String, nullable=True),
        sa.Column("languages", postgresql.JSONB, nullable=False),
        sa.Column("about_me", sa.Text, nullable=True),
        sa.Column("services", postgresql.JSONB, nullable=False),
        sa.Column("rates", postgresql.JSONB, nullable=True),
        sa.Column("availability", postgresql.JSONB, nullable=True),
        sa.Column("location", postgresql.JSONB, nullable=True),
        sa.Column("social_media", postgresql.JSONB, nullable=True),
        sa.Column("preferences", postgresql.JSONB, nullable=True),
        sa.Column("photos", postgresql.JSONB, nullable=False),
        sa.Column("videos", postgresql.JSONB, nullable=False),
        sa.Column("audio_introduction", postgresql.JSONB, nullable=True),
        sa.Column("profile_views", sa.Integer, server_default="0", nullable=False),
        sa.Column("favorite_count", sa.Integer, server_default="0", nullable=False),
        sa.Column("rating", sa.Float, nullable=True),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_featured", sa.Boolean, server_default="false", nullable=False),
        sa.Column("featured_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_level", sa.String, server_default="free", nullable=False),
        sa.Column("subscription_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean, server_default="true", nullable=False),
        _created_at(),
        _updated_at(),
    )
    op.create_index(
        "ix_companion_profiles_featured",
        "companion_profiles",
        ["is_featured", "featured_until"],
    )
    op.create_index(
        "ix_companion_profiles_views",
        "companion_profiles",
        ["profile_views"],
    )

    # ── 4. verifications ────────────────────────────────────────────
    op.create_table(
        "verifications",
        _uuid_pk(),
        _user_fk(unique=True),
        sa.Column("id_verification", postgresql.JSONB, nullable=True),
        sa.Column("selfie_verification", postgresql.JSONB, nullable=True),
        sa.Column("comparison_media", postgresql.JSONB, nullable=True),
        sa.Column(
            "overall_status",
            sa.String,
            server_default="unverified",
            nullable=False,
            comment="unverified / partially_verified / fully_verified / rejected",
        ),
        _created_at(),
        _updated_at(),
    )

    # ── 5. conversations ────────────────────────────────────────────
    op.create_table(
        "conversations",
        _uuid_pk(),
        _user_fk("participant_a_id", index=True),
        _user_fk("participant_b_id", index=True),
        sa.Column("last_message", postgresql.JSONB, nullable=True),
        sa.Column(
            "unread_count",
            postgresql.JSONB,
            nullable=False,
            comment="user_id -> int",
        ),
        sa.Column("is_blocked", sa.Boolean, server_default="false", nullable=False),
        sa.Column(
            "blocked_by",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "is_deleted",
            postgresql.JSONB,
            nullable=False,
            comment="user_id -> bool",
        ),
        _created_at(),
        _updated_at(nullable=False),
    )

    # ── 6. messages ─────────────────────────────────────────────────
    op.create_table(
        "messages",
        _uuid_pk(),
        sa.Column(
            "conversation_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("conversations.id", ondelete="SET NULL"),
            index=True,
            nullable=True,
        ),
        _user_fk("sender_id"),
        _user_fk("recipient_id"),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("attachments", postgresql.JSONB, nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_deleted", sa.Boolean, server_default="false", nullable=False),
        _created_at(),
    )
    op.create_index(
        "ix_messages_conversation_created",
        "messages",
        ["conversation_id", "created_at"],
    )

    # ── 7. payments ─────────────────────────────────────────────────
    op.create_table(
        "payments",
        _uuid_pk(),
        _user_fk(index=True),
        sa.Column("amount", sa.Float, nullable=False),
        sa.Column("currency", sa.String, server_default="AUD", nullable=False),
        sa.Column("payment_method", sa.String, nullable=False),
        sa.Column(
            "payment_type",
            sa.String,
            nullable=False,
            comment="subscription / featured_listing / verification / other",
        ),
        sa.Column(
            "status",
            sa.String,
            server_default="pending",
            nullable=False,
            comment="pending / completed / failed / refunded",
        ),
        sa.Column("transaction_id", sa.String, nullable=True),
        sa.Column("receipt_url", sa.String, nullable=True),
        sa.Column("metadata", postgresql.JSONB, nullable=True),
        _created_at(),
        _updated_at(),
    )

    # ── 8. subscriptions ────────────────────────────────────────────
    op.create_table(
        "subscriptions",
        _uuid_pk(),
        _user_fk(index=True),
        sa.Column("plan", sa.String, nullable=False),
        sa.Column(
            "status",
            sa.String,
            server_default="active",
            nullable=False,
            comment="active / canceled / expired",
        ),
        sa.Column("features", postgresql.JSONB, nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("auto_renew", sa.Boolean, server_default="false", nullable=False),
        sa.Column("payment_method", sa.String, nullable=True),
        sa.Column(
            "last_payment_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("payments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("next_billing_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index(
        "ix_subscriptions_user_status",
        "subscriptions",
        ["user_id", "status"],
    )

    # ── 9. terms_of_service ─────────────────────────────────────────
    op.create_table(
        "terms_of_service",
        _uuid_pk(),
        sa.Column("version", sa.String, unique=True, nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column(
            "published_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean, server_default="false", nullable=False),
    )

    # ── 10. privacy_policies ────────────────────────────────────────
    op.create_table(
        "privacy_policies",
        _uuid_pk(),
        sa.Column("version", sa.String, unique=True, nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column(
            "published_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean, server_default="false", nullable=False),
    )

    # ── 11. user_agreements ─────────────────────────────────────────
    op.create_table(
        "user_agreements",
        _uuid_pk(),
        _user_fk(unique=True),
        sa.Column(
            "terms_of_service",
            postgresql.JSONB,
            nullable=False,
            comment="{version, agreed_at, ip_address}",
        ),
        sa.Column(
            "privacy_policy",
            postgresql.JSONB,
            nullable=False,
            comment="{version, agreed_at, ip_address}",
        ),
        sa.Column(
            "age_verification",
            postgresql.JSONB,
            nullable=False,
            comment="{is_verified, verified_at, method}",
        ),
        _created_at(),
        _updated_at(nullable=False),
    )


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_table("user_agreements")
    op.drop_table("privacy_policies")
    op.drop_table("terms_of_service")

    op.drop_index("ix_subscriptions_user_status", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_table("payments")

    op.drop_index("ix_messages_conversation_created", table_name="messages")
    op.drop_table("messages")
    op.drop_table("conversations")

    op.drop_table("verifications")

    op.drop_index("ix_companion_profiles_views", table_name="companion_profiles")
    op.drop_index("ix_companion_profiles_featured", table_name="companion_profiles")
    op.drop_table("companion_profiles")
    op.drop_table("client_profiles")
    op.drop_table("users")
