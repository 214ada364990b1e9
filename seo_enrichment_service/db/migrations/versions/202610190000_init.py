"""Initial schema for the SEO enrichment service."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202610190000"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "scan_jobs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("total_domains", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("enrichment_kind", sa.String(length=32), nullable=False, server_default="webshop"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True, server_default=sa.func.now()),
        sa.CheckConstraint("end_date >= start_date", name="ck_scan_jobs_date_window"),
    )
    op.create_index("ix_scan_jobs_status", "scan_jobs", ["status"])

    op.create_table(
        "domains",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("job_id", sa.String(length=36), sa.ForeignKey("scan_jobs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_domains_job_status_date", "domains", ["job_id", "status", "scheduled_date"])
    op.create_index("idx_domains_status", "domains", ["status"])

    op.create_table(
        "webshop_metrics",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("domain_id", sa.String(length=36), sa.ForeignKey("domains.id", ondelete="CASCADE"), nullable=False),
        sa.Column("traffic_history", postgresql.JSONB(), nullable=False),
        sa.Column("checked_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_webshop_metrics_checked_at", "webshop_metrics", ["checked_at"])

    op.create_table(
        "bouwbedrijf_metrics",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("domain_id", sa.String(length=36), sa.ForeignKey("domains.id", ondelete="CASCADE"), nullable=False),
        sa.Column("keywords", postgresql.JSONB(), nullable=False),
        sa.Column("total_keywords", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_traffic", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("checked_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_bouwbedrijf_metrics_checked_at", "bouwbedrijf_metrics", ["checked_at"])

    op.create_table(
        "scheduler_leases",
        sa.Column("name", sa.String(length=64), primary_key=True),
        sa.Column("holder", sa.String(length=64), nullable=False),
        sa.Column("acquired_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("scheduler_leases")
    op.drop_index("ix_bouwbedrijf_metrics_checked_at", table_name="bouwbedrijf_metrics")
    op.drop_table("bouwbedrijf_metrics")
    op.drop_index("ix_webshop_metrics_checked_at", table_name="webshop_metrics")
    op.drop_table("webshop_metrics")
    op.drop_index("idx_domains_status", table_name="domains")
    op.drop_index("idx_domains_job_status_date", table_name="domains")
    op.drop_table("domains")
    op.drop_index("ix_scan_jobs_status", table_name="scan_jobs")
    op.drop_table("scan_jobs")
