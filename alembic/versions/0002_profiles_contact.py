"""user profile fields and contact messages

Revision ID: 0002_profiles_contact
Revises: 0001_initial
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0002_profiles_contact"
down_revision = "0001_initial"
branch_labels = None
depends_on = None

_USER_COLUMNS = (
    ("profile_picture_url", sa.String(512)),
    ("phone_number", sa.String(32)),
    ("address_line_1", sa.String(255)),
    ("city", sa.String(128)),
    ("location_lat", sa.Float),
    ("location_lon", sa.Float),
)


def upgrade():
    for name, type_ in _USER_COLUMNS:
        op.add_column("users", sa.Column(name, type_, nullable=True))

    op.create_table(
        "contact_messages",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("sender_name", sa.String(255), nullable=False),
        sa.Column("sender_email", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_contact_messages_id", "contact_messages", ["id"], unique=False)


def downgrade():
    op.drop_index("ix_contact_messages_id", table_name="contact_messages")
    op.drop_table("contact_messages")
    for name, _ in reversed(_USER_COLUMNS):
        op.drop_column("users", name)
