"""Create links table.

Revision ID: 002
Revises: 001
Create Date: 2025-06-02

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the links table."""
    op.create_table(
        "links",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column(
            "short_code",
            sa.String(20),
            nullable=False,
            comment="Short code for the URL (generated or custom)",
        ),
        sa.Column(
            "original_url",
            sa.Text(),
            nullable=False,
            comment="The sanitized URL to redirect to",
        ),
        sa.Column(
            "validity_minutes",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("30"),
            comment="Validity period in minutes",
        ),
        sa.Column(
            "expires_at",
            sa.DateTime(),
            nullable=False,
            comment="created_at + validity_minutes",
        ),
        sa.Column(
            "clicks",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Successful redirect count",
        ),
        sa.Column(
            "is_active",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("true"),
            comment="Inactive links never redirect",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "last_accessed_at",
            sa.DateTime(),
            nullable=True,
            comment="Time of the last successful redirect",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_links")),
        sa.CheckConstraint("clicks >= 0", name=op.f("ck_links_clicks_non_negative")),
        sa.CheckConstraint(
            "validity_minutes BETWEEN 1 AND 525600",
            name=op.f("ck_links_validity_range"),
        ),
        schema="api",
    )
    op.create_index(
        op.f("ix_api_links_short_code"),
        "links",
        ["short_code"],
        unique=True,
        schema="api",
    )
    op.create_index(
        op.f("ix_api_links_original_url"),
        "links",
        ["original_url"],
        schema="api",
    )
    op.create_index(
        op.f("ix_api_links_expires_at"),
        "links",
        ["expires_at"],
        schema="api",
    )
    op.create_index(
        op.f("ix_api_links_created_at"),
        "links",
        ["created_at"],
        schema="api",
    )


def downgrade() -> None:
    """Drop the links table."""
    op.drop_index(op.f("ix_api_links_created_at"), table_name="links", schema="api")
    op.drop_index(op.f("ix_api_links_expires_at"), table_name="links", schema="api")
    op.drop_index(op.f("ix_api_links_original_url"), table_name="links", schema="api")
    op.drop_index(op.f("ix_api_links_short_code"), table_name="links", schema="api")
    op.drop_table("links", schema="api")
