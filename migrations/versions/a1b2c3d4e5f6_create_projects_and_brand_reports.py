"""create_projects_and_brand_reports

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("website", sa.String(length=512), nullable=True),
        sa.Column("competitor_details", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "brand_reports",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("project_id", sa.String(length=64), nullable=False),
        sa.Column("report_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("brand_name", sa.String(length=255), nullable=True),
        sa.Column("visibility", postgresql.JSONB(), nullable=True),
        sa.Column("sentiment", postgresql.JSONB(), nullable=True),
        sa.Column("alignment", postgresql.JSONB(), nullable=True),
        sa.Column("competition", postgresql.JSONB(), nullable=True),
        sa.Column("explorer", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_brand_reports_project_id", "brand_reports", ["project_id"])
    op.create_index("ix_brand_reports_report_date", "brand_reports", ["report_date"])
    op.create_index(
        "ix_brand_reports_project_date", "brand_reports", ["project_id", "report_date"]
    )


def downgrade() -> None:
    op.drop_index("ix_brand_reports_project_date", table_name="brand_reports")
    op.drop_index("ix_brand_reports_report_date", table_name="brand_reports")
    op.drop_index("ix_brand_reports_project_id", table_name="brand_reports")
    op.drop_table("brand_reports")
    op.drop_table("projects")
