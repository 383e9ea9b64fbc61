"""seed default rubric

Revision ID: 0002_seed_default_rubric
Revises: 0001_initial_schema
Create Date: 2026-01-20 10:00:01.000000

Inserts the default rubric as active version 1 and points
``active_rubric_pointer`` at it.  Skipped when any rubric config already
exists, so the migration is idempotent.

The content is derived from ``app.core.default_rubric``.  Do NOT edit
values here directly; update that module instead.
"""

from typing import Sequence, Union
from uuid import uuid4

from alembic import op
import sqlalchemy as sa

from app.core.default_rubric import (  # noqa: E402
    DEFAULT_CATEGORIES,
    DEFAULT_RED_FLAGS,
    DEFAULT_RUBRIC_DESCRIPTION,
    DEFAULT_RUBRIC_NAME,
)

# revision identifiers, used by Alembic.
revision: str = "0002_seed_default_rubric"
down_revision: Union[str, None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


rubric_configs = sa.table(
    "rubric_configs",
    sa.column("id", sa.UUID()),
    sa.column("name", sa.String()),
    sa.column("description", sa.Text()),
    sa.column("version", sa.Integer()),
    sa.column("is_active", sa.Boolean()),
    sa.column("is_draft", sa.Boolean()),
)
rubric_categories = sa.table(
    "rubric_categories",
    sa.column("id", sa.UUID()),
    sa.column("rubric_config_id", sa.UUID()),
    sa.column("name", sa.String()),
    sa.column("slug", sa.String()),
    sa.column("description", sa.Text()),
    sa.column("weight", sa.Numeric()),
    sa.column("sort_order", sa.Integer()),
    sa.column("is_enabled", sa.Boolean()),
)
rubric_scoring_criteria = sa.table(
    "rubric_scoring_criteria",
    sa.column("id", sa.UUID()),
    sa.column("category_id", sa.UUID()),
    sa.column("score", sa.Integer()),
    sa.column("criteria_text", sa.Text()),
)
rubric_red_flags = sa.table(
    "rubric_red_flags",
    sa.column("id", sa.UUID()),
    sa.column("rubric_config_id", sa.UUID()),
    sa.column("flag_key", sa.String()),
    sa.column("display_name", sa.String()),
    sa.column("description", sa.Text()),
    sa.column("severity", sa.String()),
    sa.column("threshold_type", sa.String()),
    sa.column("threshold_value", sa.Numeric()),
    sa.column("is_enabled", sa.Boolean()),
    sa.column("sort_order", sa.Integer()),
)
active_rubric_pointer = sa.table(
    "active_rubric_pointer",
    sa.column("id", sa.Integer()),
    sa.column("config_id", sa.UUID()),
    sa.column("revision", sa.Integer()),
)


def upgrade() -> None:
    bind = op.get_bind()
    existing = bind.execute(sa.text("SELECT COUNT(*) FROM rubric_configs")).scalar()
    if existing:
        return

    config_id = uuid4()
    op.bulk_insert(
        rubric_configs,
        [
            {
                "id": config_id,
                "name": DEFAULT_RUBRIC_NAME,
                "description": DEFAULT_RUBRIC_DESCRIPTION,
                "version": 1,
                "is_active": True,
                "is_draft": False,
            }
        ],
    )

    category_rows = []
    criteria_rows = []
    for category in DEFAULT_CATEGORIES:
        category_id = uuid4()
        category_rows.append(
            {
                "id": category_id,
                "rubric_config_id": config_id,
                "name": category["name"],
                "slug": category["slug"],
                "description": category["description"],
                "weight": category["weight"],
                "sort_order": category["sort_order"],
                "is_enabled": category["is_enabled"],
            }
        )
        for criterion in category["scoring_criteria"]:
            criteria_rows.append(
                {
                    "id": uuid4(),
                    "category_id": category_id,
                    "score": criterion["score"],
                    "criteria_text": criterion["criteria_text"],
                }
            )
    op.bulk_insert(rubric_categories, category_rows)
    op.bulk_insert(rubric_scoring_criteria, criteria_rows)

    op.bulk_insert(
        rubric_red_flags,
        [{"id": uuid4(), "rubric_config_id": config_id, **flag} for flag in DEFAULT_RED_FLAGS],
    )
    op.bulk_insert(
        active_rubric_pointer, [{"id": 1, "config_id": config_id, "revision": 1}]
    )


def downgrade() -> None:
    # Remove the seeded version only while it is still the sole rubric
    op.execute(
        """
        DELETE FROM active_rubric_pointer
        WHERE config_id IN (SELECT id FROM rubric_configs WHERE version = 1)
          AND (SELECT COUNT(*) FROM rubric_configs) = 1;
        """
    )
    op.execute(
        """
        DELETE FROM rubric_configs
        WHERE version = 1
          AND (SELECT COUNT(*) FROM rubric_configs) = 1
          AND NOT EXISTS (SELECT 1 FROM rubric_sync_logs);
        """
    )
