from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.sql import func

from app.core.constants import SYNC_STATUS_CHECK_CLAUSE
from app.models.base import Base, JSONDocument, utcnow


class RubricSyncLog(Base):
    """Audit record of one reconciliation between a script and a rubric.

    ``rubric_config_id`` is the rubric version the script was compared
    against.  Status moves along ``ALLOWED_SYNC_TRANSITIONS``; ``applied``
    and ``rejected`` are terminal, after which the row is never touched
    again.  The three ``changes_*`` columns hold ``ProposedChanges``
    documents as JSON.
    """

    __tablename__ = "rubric_sync_logs"
    id = Column(Uuid, primary_key=True, default=uuid4)
    script_id = Column(
        Uuid,
        ForeignKey("sales_scripts.id"),
        nullable=False,
    )
    rubric_config_id = Column(
        Uuid,
        ForeignKey("rubric_configs.id"),
        nullable=False,
    )
    status = Column(String(30), nullable=False, default="pending", server_default="pending")
    changes_proposed = Column(JSONDocument)
    changes_approved = Column(JSONDocument)
    changes_rejected = Column(JSONDocument)
    error_message = Column(Text)
    approved_by = Column(String(255))
    approved_at = Column(DateTime(timezone=True))
    applied_at = Column(DateTime(timezone=True))
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(SYNC_STATUS_CHECK_CLAUSE, name="ck_sync_log_status"),
        Index("idx_sync_logs_script", "script_id"),
        Index("idx_sync_logs_rubric", "rubric_config_id"),
    )
