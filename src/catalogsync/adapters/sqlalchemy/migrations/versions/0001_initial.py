"""Metadata elements and their external correlations.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "metadata_element",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("element_type", sa.String(length=32), nullable=False),
        sa.Column("qualified_name", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("properties", sa.JSON(), nullable=False),
        sa.Column("parent_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ["parent_id"],
            ["metadata_element.id"],
            name="fk_metadata_element_parent_id_metadata_element",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_metadata_element"),
        sa.UniqueConstraint("qualified_name", name="uq_metadata_element_qualified_name"),
    )
    op.create_index(
        "ix_metadata_element_members",
        "metadata_element",
        ["parent_id", "element_type", "qualified_name"],
    )

    op.create_table(
        "correlation_record",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("external_id", sa.String(), nullable=False),
        sa.Column("direction", sa.String(length=32), nullable=False),
        sa.Column("last_known_external_update", sa.DateTime(timezone=True), nullable=True),
        sa.Column("synchronized_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["owner_id"],
            ["metadata_element.id"],
            name="fk_correlation_record_owner_id_metadata_element",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_correlation_record"),
        sa.UniqueConstraint("owner_id", "source", name="uq_correlation_record_owner_source"),
    )
    op.create_index(
        "ix_correlation_record_external",
        "correlation_record",
        ["source", "external_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_correlation_record_external", table_name="correlation_record")
    op.drop_table("correlation_record")
    op.drop_index("ix_metadata_element_members", table_name="metadata_element")
    op.drop_table("metadata_element")
