from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.constants import (
    ITEM_SOURCE_CHECK_CLAUSE,
    SEVERITY_CHECK_CLAUSE,
    THRESHOLD_TYPE_CHECK_CLAUSE,
)
from app.models.base import Base, utcnow


class RubricConfig(Base):
    """One version of the weighted scoring rubric used to grade sales calls.

    A config is created as a draft (``version`` is NULL) and is only
    editable while it stays a draft.  Activation assigns the next version
    number, flips it to active and makes it immutable history.  The
    ``active_rubric_pointer`` row names the single active config; the
    partial unique index on ``is_active`` backs the same invariant at the
    storage level.
    """

    __tablename__ = "rubric_configs"
    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    version = Column(Integer)
    is_active = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    is_draft = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    categories = relationship(
        "RubricCategory",
        back_populates="config",
        cascade="all, delete-orphan",
        order_by="RubricCategory.sort_order",
        lazy="selectin",
    )
    red_flags = relationship(
        "RubricRedFlag",
        back_populates="config",
        cascade="all, delete-orphan",
        order_by="RubricRedFlag.sort_order",
        lazy="selectin",
    )

    __table_args__ = (
        Index("uq_rubric_configs_version", "version", unique=True),
        Index(
            "uq_rubric_configs_single_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        CheckConstraint("version IS NULL OR version > 0", name="ck_rubric_version_positive"),
        CheckConstraint("NOT (is_active AND is_draft)", name="ck_rubric_draft_not_active"),
    )


class RubricCategory(Base):
    """A scored dimension of a rubric (e.g. "Objection Handling").

    ``weight`` is in percentage points; enabled weights of a config must
    sum to 100 before the config can be activated.
    """

    __tablename__ = "rubric_categories"
    id = Column(Uuid, primary_key=True, default=uuid4)
    rubric_config_id = Column(
        Uuid,
        ForeignKey("rubric_configs.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    slug = Column(String(100), nullable=False)
    description = Column(Text)
    weight = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)
    is_enabled = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    source_type = Column(String(20), nullable=False, default="custom", server_default="custom")
    source_script_id = Column(
        Uuid, ForeignKey("sales_scripts.id", ondelete="SET NULL")
    )
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    config = relationship("RubricConfig", back_populates="categories")
    scoring_criteria = relationship(
        "RubricScoringCriteria",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="RubricScoringCriteria.score",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("rubric_config_id", "slug", name="uq_rubric_category_slug"),
        CheckConstraint("weight >= 0 AND weight <= 100", name="ck_category_weight_range"),
        CheckConstraint(ITEM_SOURCE_CHECK_CLAUSE, name="ck_category_source_type"),
        Index("idx_rubric_categories_config", "rubric_config_id"),
    )


class RubricScoringCriteria(Base):
    """Free-text description of what earns a given score (1–5) in a category."""

    __tablename__ = "rubric_scoring_criteria"
    id = Column(Uuid, primary_key=True, default=uuid4)
    category_id = Column(
        Uuid,
        ForeignKey("rubric_categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    score = Column(Integer, nullable=False)
    criteria_text = Column(Text, nullable=False)
    source_type = Column(String(20), nullable=False, default="custom", server_default="custom")
    source_script_id = Column(
        Uuid, ForeignKey("sales_scripts.id", ondelete="SET NULL")
    )

    category = relationship("RubricCategory", back_populates="scoring_criteria")

    __table_args__ = (
        UniqueConstraint("category_id", "score", name="uq_criteria_category_score"),
        CheckConstraint("score BETWEEN 1 AND 5", name="ck_criteria_score_range"),
        CheckConstraint(ITEM_SOURCE_CHECK_CLAUSE, name="ck_criteria_source_type"),
    )


class RubricRedFlag(Base):
    """A disqualifying or penalising behaviour checked independently of scoring."""

    __tablename__ = "rubric_red_flags"
    id = Column(Uuid, primary_key=True, default=uuid4)
    rubric_config_id = Column(
        Uuid,
        ForeignKey("rubric_configs.id", ondelete="CASCADE"),
        nullable=False,
    )
    flag_key = Column(String(100), nullable=False)
    display_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    severity = Column(String(20), nullable=False, default="medium")
    threshold_type = Column(String(20), nullable=False, default="boolean", server_default="boolean")
    threshold_value = Column(Numeric(10, 2, asdecimal=False))
    is_enabled = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    sort_order = Column(Integer, nullable=False, default=0)
    source_type = Column(String(20), nullable=False, default="custom", server_default="custom")
    source_script_id = Column(
        Uuid, ForeignKey("sales_scripts.id", ondelete="SET NULL")
    )

    config = relationship("RubricConfig", back_populates="red_flags")

    __table_args__ = (
        UniqueConstraint("rubric_config_id", "flag_key", name="uq_red_flag_key"),
        CheckConstraint(SEVERITY_CHECK_CLAUSE, name="ck_red_flag_severity"),
        CheckConstraint(THRESHOLD_TYPE_CHECK_CLAUSE, name="ck_red_flag_threshold_type"),
        CheckConstraint(ITEM_SOURCE_CHECK_CLAUSE, name="ck_red_flag_source_type"),
        Index("idx_rubric_red_flags_config", "rubric_config_id"),
    )


class ActiveRubricPointer(Base):
    """Single-row table naming the active rubric config.

    Activation is a compare-and-swap on ``revision``: the UPDATE only
    matches when the revision read at the start of the activation is
    still current, so two concurrent activations cannot both win.
    """

    __tablename__ = "active_rubric_pointer"
    id = Column(Integer, primary_key=True, default=1)
    config_id = Column(Uuid, ForeignKey("rubric_configs.id"))
    revision = Column(Integer, nullable=False, default=0, server_default="0")
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (CheckConstraint("id = 1", name="ck_active_pointer_single_row"),)
