"""Add post-arrival workflow columns to shipments

Revision ID: 20251014_post_arrival_workflow
Revises: 
Create Date: 2025-10-14 09:15:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20251014_post_arrival_workflow"
down_revision = None
branch_labels = None
depends_on = None


WORKFLOW_COLUMNS = [
    ("unloading_start_date", sa.DateTime()),
    ("unloading_completed_date", sa.DateTime()),
    ("inspection_date", sa.DateTime()),
    ("inspection_status", sa.String()),
    ("inspection_notes", sa.Text()),
    ("inspected_by", sa.String()),
    ("hold_types", postgresql.JSONB()),
    ("failure_reasons", postgresql.JSONB()),
    ("receiving_date", sa.DateTime()),
    ("receiving_status", sa.String()),
    ("receiving_notes", sa.Text()),
    ("received_by", sa.String()),
    ("received_quantity", sa.Numeric(12, 2)),
    ("discrepancies", postgresql.JSONB()),
    ("rejection_date", sa.DateTime()),
    ("rejection_reason", sa.Text()),
    ("rejected_by", sa.String()),
]


def upgrade():
    for name, type_ in WORKFLOW_COLUMNS:
        op.add_column("shipments", sa.Column(name, type_, nullable=True))
    op.create_index("ix_shipments_latest_status", "shipments", ["latest_status"])


def downgrade():
    op.drop_index("ix_shipments_latest_status", table_name="shipments")
    for name, _ in reversed(WORKFLOW_COLUMNS):
        op.drop_column("shipments", name)
