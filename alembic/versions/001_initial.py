"""Initial migration — create the properties table.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── properties ──
    op.create_table(
        "properties",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("public_address", sa.String(500), nullable=False),
        sa.Column("full_address", sa.String(500), nullable=True),
        sa.Column("price", sa.Numeric(14, 2), nullable=False),
        sa.Column("listing_kind", sa.String(10), nullable=False),
        sa.Column("bedroom_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("bathroom_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("area_sq_meters", sa.Float, nullable=False),
        sa.Column("primary_image_ref", sa.String(2048), nullable=False),
        sa.Column("additional_image_refs", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(10), nullable=False, server_default="active"),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("featured", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("contact_phone", sa.String(50), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("price > 0", name="ck_properties_price_positive"),
        sa.CheckConstraint("area_sq_meters > 0", name="ck_properties_area_positive"),
        sa.CheckConstraint("bedroom_count >= 0 AND bathroom_count >= 0", name="ck_properties_rooms_non_negative"),
        sa.CheckConstraint("listing_kind IN ('rent', 'sale')", name="ck_properties_listing_kind"),
        sa.CheckConstraint("status IN ('active', 'pending', 'archived')", name="ck_properties_status"),
    )
    op.create_index("ix_properties_listing_kind", "properties", ["listing_kind"])
    op.create_index("ix_properties_status_is_public", "properties", ["status", "is_public"])
    op.create_index("ix_properties_price", "properties", ["price"])
    op.create_index("ix_properties_created_at", "properties", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_properties_created_at", table_name="properties")
    op.drop_index("ix_properties_price", table_name="properties")
    op.drop_index("ix_properties_status_is_public", table_name="properties")
    op.drop_index("ix_properties_listing_kind", table_name="properties")
    op.drop_table("properties")
