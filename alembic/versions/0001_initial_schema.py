"""initial rubric, script and sync-log schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-01-20 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from app.core.constants import (
    ITEM_SOURCE_CHECK_CLAUSE,
    PRODUCT_TYPE_CHECK_CLAUSE,
    SEVERITY_CHECK_CLAUSE,
    SYNC_STATUS_CHECK_CLAUSE,
    THRESHOLD_TYPE_CHECK_CLAUSE,
)

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name, sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )


def _provenance() -> list:
    return [
        sa.Column("source_type", sa.String(20), nullable=False, server_default="custom"),
        sa.Column(
            "source_script_id",
            sa.UUID(),
            sa.ForeignKey("sales_scripts.id", ondelete="SET NULL"),
            nullable=True,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "rubric_configs",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_draft", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("version IS NULL OR version > 0", name="ck_rubric_version_positive"),
        sa.CheckConstraint("NOT (is_active AND is_draft)", name="ck_rubric_draft_not_active"),
    )
    op.create_index("uq_rubric_configs_version", "rubric_configs", ["version"], unique=True)
    # At most one active version; the pointer table below is the primary guard
    op.create_index(
        "uq_rubric_configs_single_active",
        "rubric_configs",
        ["is_active"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "sales_scripts",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("product_type", sa.String(50), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.Column("version_notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("uploaded_by", sa.String(255), nullable=True),
        sa.Column(
            "linked_rubric_id",
            sa.UUID(),
            sa.ForeignKey("rubric_configs.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("product_type", "version", name="uq_script_product_version"),
        sa.CheckConstraint(PRODUCT_TYPE_CHECK_CLAUSE, name="ck_script_product_type"),
    )
    op.create_index(
        "uq_sales_scripts_active_product",
        "sales_scripts",
        ["product_type"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "rubric_categories",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "rubric_config_id",
            sa.UUID(),
            sa.ForeignKey("rubric_configs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("weight", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_provenance(),
        _timestamp("created_at"),
        sa.UniqueConstraint("rubric_config_id", "slug", name="uq_rubric_category_slug"),
        sa.CheckConstraint("weight >= 0 AND weight <= 100", name="ck_category_weight_range"),
        sa.CheckConstraint(ITEM_SOURCE_CHECK_CLAUSE, name="ck_category_source_type"),
    )
    op.create_index("idx_rubric_categories_config", "rubric_categories", ["rubric_config_id"])

    op.create_table(
        "rubric_scoring_criteria",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "category_id",
            sa.UUID(),
            sa.ForeignKey("rubric_categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("criteria_text", sa.Text(), nullable=False),
        *_provenance(),
        sa.UniqueConstraint("category_id", "score", name="uq_criteria_category_score"),
        sa.CheckConstraint("score BETWEEN 1 AND 5", name="ck_criteria_score_range"),
        sa.CheckConstraint(ITEM_SOURCE_CHECK_CLAUSE, name="ck_criteria_source_type"),
    )

    op.create_table(
        "rubric_red_flags",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "rubric_config_id",
            sa.UUID(),
            sa.ForeignKey("rubric_configs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("flag_key", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("severity", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("threshold_type", sa.String(20), nullable=False, server_default="boolean"),
        sa.Column("threshold_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_provenance(),
        sa.UniqueConstraint("rubric_config_id", "flag_key", name="uq_red_flag_key"),
        sa.CheckConstraint(SEVERITY_CHECK_CLAUSE, name="ck_red_flag_severity"),
        sa.CheckConstraint(THRESHOLD_TYPE_CHECK_CLAUSE, name="ck_red_flag_threshold_type"),
        sa.CheckConstraint(ITEM_SOURCE_CHECK_CLAUSE, name="ck_red_flag_source_type"),
    )
    op.create_index("idx_rubric_red_flags_config", "rubric_red_flags", ["rubric_config_id"])

    op.create_table(
        "active_rubric_pointer",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "config_id",
            sa.UUID(),
            sa.ForeignKey("rubric_configs.id"),
            nullable=True,
        ),
        sa.Column("revision", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("updated_at"),
        sa.CheckConstraint("id = 1", name="ck_active_pointer_single_row"),
    )

    op.create_table(
        "rubric_sync_logs",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "script_id",
            sa.UUID(),
            sa.ForeignKey("sales_scripts.id"),
            nullable=False,
        ),
        sa.Column(
            "rubric_config_id",
            sa.UUID(),
            sa.ForeignKey("rubric_configs.id"),
            nullable=False,
        ),
        sa.Column("status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("changes_proposed", postgresql.JSONB(), nullable=True),
        sa.Column("changes_approved", postgresql.JSONB(), nullable=True),
        sa.Column("changes_rejected", postgresql.JSONB(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp("created_at"),
        sa.CheckConstraint(SYNC_STATUS_CHECK_CLAUSE, name="ck_sync_log_status"),
    )
    op.create_index("idx_sync_logs_script", "rubric_sync_logs", ["script_id"])
    op.create_index("idx_sync_logs_rubric", "rubric_sync_logs", ["rubric_config_id"])


def downgrade() -> None:
    op.drop_index("idx_sync_logs_rubric", table_name="rubric_sync_logs")
    op.drop_index("idx_sync_logs_script", table_name="rubric_sync_logs")
    op.drop_table("rubric_sync_logs")
    op.drop_table("active_rubric_pointer")
    op.drop_index("idx_rubric_red_flags_config", table_name="rubric_red_flags")
    op.drop_table("rubric_red_flags")
    op.drop_table("rubric_scoring_criteria")
    op.drop_index("idx_rubric_categories_config", table_name="rubric_categories")
    op.drop_table("rubric_categories")
    op.drop_index("uq_sales_scripts_active_product", table_name="sales_scripts")
    op.drop_table("sales_scripts")
    op.drop_index("uq_rubric_configs_single_active", table_name="rubric_configs")
    op.drop_index("uq_rubric_configs_version", table_name="rubric_configs")
    op.drop_table("rubric_configs")
