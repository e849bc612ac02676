"""initial billing schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


resource_role = postgresql.ENUM("ADMIN", "RESOURCE", name="resource_role", create_type=False)
project_status = postgresql.ENUM("ACTIVE", "INACTIVE", "COMPLETED", name="project_status", create_type=False)
rate_type = postgresql.ENUM("HOURLY", "DAILY", name="rate_type", create_type=False)


def upgrade() -> None:
    resource_role.create(op.get_bind(), checkfirst=True)
    project_status.create(op.get_bind(), checkfirst=True)
    rate_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "resources",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("emp_code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("joining_date", sa.Date(), nullable=False),
        sa.Column("role", resource_role, nullable=False, server_default="RESOURCE"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("status", project_status, nullable=False, server_default="ACTIVE"),
        sa.Column("po", sa.String(length=128), nullable=True),
        sa.Column("line_item", sa.String(length=128), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_projects_status", "projects", ["status"])

    op.create_table(
        "project_resources",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "resource_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("rate", sa.Numeric(12, 2), nullable=False),
        sa.Column("rate_type", rate_type, nullable=False, server_default="HOURLY"),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("assigned_days", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_project_resources_project_id", "project_resources", ["project_id"])
    op.create_index("ix_project_resources_resource_id", "project_resources", ["resource_id"])

    op.create_table(
        "leaves",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "resource_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("is_half_day", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("reason", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_leaves_resource_date", "leaves", ["resource_id", "date"])


def downgrade() -> None:
    op.drop_index("ix_leaves_resource_date", table_name="leaves")
    op.drop_table("leaves")

    op.drop_index("ix_project_resources_resource_id", table_name="project_resources")
    op.drop_index("ix_project_resources_project_id", table_name="project_resources")
    op.drop_table("project_resources")

    op.drop_index("ix_projects_status", table_name="projects")
    op.drop_table("projects")

    op.drop_table("resources")

    rate_type.drop(op.get_bind(), checkfirst=True)
    project_status.drop(op.get_bind(), checkfirst=True)
    resource_role.drop(op.get_bind(), checkfirst=True)
