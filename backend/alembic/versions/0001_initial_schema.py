"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

NOW = sa.text("CURRENT_TIMESTAMP")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("external_id", sa.Text, nullable=False, unique=True),
        sa.Column("email", sa.Text, nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("role", sa.Enum("ADMIN", "USER", name="user_role"), nullable=False, server_default=sa.text("'USER'")),
        sa.Column("phone", sa.Text),
        sa.Column("created_at", sa.DateTime, server_default=NOW),
        sa.Column("updated_at", sa.DateTime, server_default=NOW),
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "INACTIVE", "CANCELLED", "EXPIRED", name="subscription_status"),
            nullable=False,
            server_default=sa.text("'INACTIVE'"),
        ),
        sa.Column("plan_name", sa.Text, nullable=False, server_default=sa.text("'premium'")),
        sa.Column("preapproval_id", sa.Text, unique=True),
        sa.Column("start_date", sa.DateTime),
        sa.Column("end_date", sa.DateTime),
        sa.Column("next_billing_date", sa.DateTime),
        sa.Column("created_at", sa.DateTime, server_default=NOW),
        sa.Column("updated_at", sa.DateTime, server_default=NOW),
    )

    op.create_table(
        "business_hours",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("start_time", sa.Text, nullable=False, server_default=sa.text("'08:00'")),
        sa.Column("end_time", sa.Text, nullable=False, server_default=sa.text("'18:00'")),
        sa.Column("lunch_start", sa.Text, nullable=False, server_default=sa.text("'12:00'")),
        sa.Column("lunch_end", sa.Text, nullable=False, server_default=sa.text("'13:00'")),
        sa.Column("consultation_duration", sa.Integer, nullable=False, server_default=sa.text("30")),
        sa.Column("interval_between", sa.Integer, nullable=False, server_default=sa.text("15")),
        sa.Column("enable_lunch_break", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("allow_weekends", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("available_days", sa.Text, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("updated_at", sa.DateTime, server_default=NOW),
    )

    op.create_table(
        "ebook_categories",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.Text, nullable=False, unique=True),
        sa.Column("description", sa.Text),
        sa.Column("created_at", sa.DateTime, server_default=NOW),
        sa.Column("updated_at", sa.DateTime, server_default=NOW),
    )

    op.create_table(
        "ebooks",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("category_id", sa.Integer, sa.ForeignKey("ebook_categories.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("author", sa.Text, nullable=False),
        sa.Column("file_url", sa.Text, nullable=False),
        sa.Column("file_type", sa.Enum("pdf", "epub", "mobi", name="ebook_file_type"), nullable=False),
        sa.Column("is_premium", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("download_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("view_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("description", sa.Text),
        sa.Column("cover_image", sa.Text),
        sa.Column("price", sa.Float),
        sa.Column("file_size", sa.Integer),
        sa.Column("created_at", sa.DateTime, server_default=NOW),
        sa.Column("updated_at", sa.DateTime, server_default=NOW),
    )
    op.create_index("ix_ebooks_category_id", "ebooks", ["category_id"])

    op.create_table(
        "user_ebook_access",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ebook_id", sa.Integer, sa.ForeignKey("ebooks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("download_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("last_download", sa.DateTime),
        sa.Column("first_access", sa.DateTime, server_default=NOW),
        sa.Column("last_access", sa.DateTime, server_default=NOW),
        sa.Column("created_at", sa.DateTime, server_default=NOW),
        sa.Column("updated_at", sa.DateTime, server_default=NOW),
        sa.UniqueConstraint("user_id", "ebook_id"),
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Text, nullable=False),
        sa.Column("time", sa.Text, nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "CONFIRMED", "CANCELLED", "COMPLETED", name="appointment_status"),
            nullable=False,
            server_default=sa.text("'PENDING'"),
        ),
        sa.Column("consultation_type", sa.Text),
        sa.Column("notes", sa.Text),
        sa.Column("created_at", sa.DateTime, server_default=NOW),
        sa.Column("updated_at", sa.DateTime, server_default=NOW),
    )
    op.create_index("ix_appointments_date", "appointments", ["date"])
    op.create_index(
        "uq_appointments_active_slot",
        "appointments",
        ["date", "time"],
        unique=True,
        sqlite_where=sa.text("status != 'CANCELLED'"),
        postgresql_where=sa.text("status != 'CANCELLED'"),
    )


def downgrade():
    op.drop_index("uq_appointments_active_slot", table_name="appointments")
    op.drop_index("ix_appointments_date", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("user_ebook_access")
    op.drop_index("ix_ebooks_category_id", table_name="ebooks")
    op.drop_table("ebooks")
    op.drop_table("ebook_categories")
    op.drop_table("business_hours")
    op.drop_table("subscriptions")
    op.drop_table("users")
