"""unique assignment/leave keys and non-negative checks

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op


# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_unique_constraint(
        "uq_project_resources_project_resource",
        "project_resources",
        ["project_id", "resource_id"],
    )
    op.create_unique_constraint(
        "uq_leaves_resource_date",
        "leaves",
        ["resource_id", "date"],
    )
    op.create_check_constraint(
        "ck_project_resources_rate_non_negative",
        "project_resources",
        "rate >= 0",
    )
    op.create_check_constraint(
        "ck_project_resources_assigned_days_non_negative",
        "project_resources",
        "assigned_days >= 0",
    )


def downgrade() -> None:
    op.drop_constraint(
        "ck_project_resources_assigned_days_non_negative",
        "project_resources",
        type_="check",
    )
    op.drop_constraint("ck_project_resources_rate_non_negative", "project_resources", type_="check")
    op.drop_constraint("uq_leaves_resource_date", "leaves", type_="unique")
    op.drop_constraint("uq_project_resources_project_resource", "project_resources", type_="unique")
