"""Create links table with preview fields

Revision ID: 3f9c2a7d1b4e
Revises:
Create Date: 2026-10-17 10:12:04.118251

"""

from typing import Sequence, Union

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d1b4e"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "links",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("metadata", sa.JSON(none_as_null=True), nullable=True),
        sa.Column(
            "preview_status",
            sa.String(length=16),
            server_default="pending",
            nullable=False,
        ),
        sa.Column("preview_fetched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("preview_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_links_category"), "links", ["category"], unique=False)
    # Stale-preview scans filter on status and expiry
    op.create_index(
        "ix_links_preview_status_expires_at",
        "links",
        ["preview_status", "preview_expires_at"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_links_preview_status_expires_at", table_name="links")
    op.drop_index(op.f("ix_links_category"), table_name="links")
    op.drop_table("links")
