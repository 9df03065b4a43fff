"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("customer", "provider", "admin", name="userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("otp_code", sa.String(12), nullable=True),
        sa.Column("otp_expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role_active", "users", ["role", "is_active"], unique=False)

    op.create_table(
        "services",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(128), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("icon_url", sa.String(512), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "providers",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("location_lat", sa.Float, nullable=False, server_default="0"),
        sa.Column("location_lon", sa.Float, nullable=False, server_default="0"),
        sa.Column("service_radius_km", sa.Float, nullable=False, server_default="10"),
        sa.Column("payout_upi_id", sa.String(128), nullable=True),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("average_rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("review_count", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_providers_verified_rating", "providers", ["is_verified", "average_rating"], unique=False)

    op.create_table(
        "provider_services",
        sa.Column("provider_id", sa.Integer, sa.ForeignKey("providers.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("service_id", sa.Integer, sa.ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "wallets",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("balance", sa.Numeric(12, 2), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),
    )
    op.create_index("ix_wallets_user_id", "wallets", ["user_id"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "type",
            sa.Enum(
                "payment_sent",
                "payment_received",
                "deposit_admin_approved",
                "withdrawal_sent",
                name="transactiontype",
            ),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("related_id", sa.Integer, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_transactions_user_type", "transactions", ["user_id", "type"], unique=False)

    op.create_table(
        "wallet_requests",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", sa.Enum("deposit", "withdrawal", name="walletrequesttype"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("transaction_reference", sa.String(255), nullable=False),
        sa.Column("screenshot_url", sa.String(512), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "rejected", name="walletrequeststatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("rejection_reason", sa.String(255), nullable=True),
        sa.Column("processed_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_wallet_requests_user_id", "wallet_requests", ["user_id"], unique=False)
    op.create_index("ix_wallet_requests_status_type", "wallet_requests", ["status", "type"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("customer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("provider_id", sa.Integer, sa.ForeignKey("providers.id"), nullable=False),
        sa.Column("service_id", sa.Integer, sa.ForeignKey("services.id"), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("address", sa.String(512), nullable=False),
        sa.Column("service_description", sa.Text, nullable=False),
        sa.Column("customer_notes", sa.Text, nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "pending_provider",
                "awaiting_customer_confirmation",
                "accepted",
                "completed",
                "closed",
                "rejected",
                name="bookingstatus",
            ),
            nullable=False,
            server_default="pending_provider",
        ),
        *_timestamps(),
    )
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"], unique=False)
    op.create_index("ix_bookings_provider_id", "bookings", ["provider_id"], unique=False)
    op.create_index("ix_bookings_provider_status", "bookings", ["provider_id", "status"], unique=False)
    op.create_index("ix_bookings_customer_status", "bookings", ["customer_id", "status"], unique=False)

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("booking_id", sa.Integer, sa.ForeignKey("bookings.id"), nullable=False, unique=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.Enum("succeeded", name="paymentstatus"), nullable=False, server_default="succeeded"),
        sa.Column("reference", sa.String(64), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_payments_reference", "payments", ["reference"], unique=True)

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("booking_id", sa.Integer, sa.ForeignKey("bookings.id"), nullable=False, unique=True),
        sa.Column("customer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("provider_id", sa.Integer, sa.ForeignKey("providers.id"), nullable=False),
        sa.Column("rating", sa.Integer, nullable=False, server_default="0"),
        sa.Column("comment", sa.Text, nullable=True),
        *_timestamps(),
        sa.CheckConstraint("rating >= 0 AND rating <= 5", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_provider_rating", "reviews", ["provider_id", "rating"], unique=False)

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("booking_id", sa.Integer, sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("sender_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("recipient_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("file_url", sa.String(512), nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_messages_booking_id", "messages", ["booking_id"], unique=False)
    op.create_index("ix_messages_recipient_read", "messages", ["recipient_id", "is_read"], unique=False)


def downgrade():
    for index, table in (
        ("ix_messages_recipient_read", "messages"),
        ("ix_messages_booking_id", "messages"),
        ("ix_reviews_provider_rating", "reviews"),
        ("ix_payments_reference", "payments"),
        ("ix_bookings_customer_status", "bookings"),
        ("ix_bookings_provider_status", "bookings"),
        ("ix_bookings_provider_id", "bookings"),
        ("ix_bookings_customer_id", "bookings"),
        ("ix_wallet_requests_status_type", "wallet_requests"),
        ("ix_wallet_requests_user_id", "wallet_requests"),
        ("ix_transactions_user_type", "transactions"),
        ("ix_wallets_user_id", "wallets"),
        ("ix_providers_verified_rating", "providers"),
        ("ix_users_role_active", "users"),
        ("ix_users_email", "users"),
    ):
        op.drop_index(index, table_name=table)
    for table in (
        "messages",
        "reviews",
        "payments",
        "bookings",
        "wallet_requests",
        "transactions",
        "wallets",
        "provider_services",
        "providers",
        "services",
        "users",
    ):
        op.drop_table(table)
    for enum_name in (
        "bookingstatus",
        "paymentstatus",
        "walletrequeststatus",
        "walletrequesttype",
        "transactiontype",
        "userrole",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
