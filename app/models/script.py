from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.sql import func

from app.core.constants import PRODUCT_TYPE_CHECK_CLAUSE
from app.models.base import Base, utcnow


class SalesScript(Base):
    """Uploaded sales script for one product line.

    Versions are numbered per ``product_type``; at most one script per
    product type is active (partial unique index).  ``linked_rubric_id``
    points at the rubric version produced by the script's last applied
    sync.
    """

    __tablename__ = "sales_scripts"
    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    product_type = Column(String(50), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    content = Column(Text, nullable=False)
    file_name = Column(String(255))
    version_notes = Column(Text)
    is_active = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    uploaded_by = Column(String(255))
    linked_rubric_id = Column(
        Uuid, ForeignKey("rubric_configs.id", ondelete="SET NULL")
    )
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("product_type", "version", name="uq_script_product_version"),
        Index(
            "uq_sales_scripts_active_product",
            "product_type",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        CheckConstraint(PRODUCT_TYPE_CHECK_CLAUSE, name="ck_script_product_type"),
    )
