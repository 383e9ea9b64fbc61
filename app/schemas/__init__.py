"""Pydantic schemas package – re-exports for convenience.

``script`` and ``sync`` are not re-exported here: they import
``app.core.constants``, which itself imports ``app.schemas.common``.
"""

# Common enums
from app.schemas.common import (
    ProductType as ProductType,
    SyncStatus as SyncStatus,
    Severity as Severity,
    ThresholdType as ThresholdType,
    ItemSource as ItemSource,
)

# Rubric schemas
from app.schemas.rubric import (
    WeightValidation as WeightValidation,
    ScoringCriterionIn as ScoringCriterionIn,
    CategoryIn as CategoryIn,
    RedFlagIn as RedFlagIn,
    RubricCreate as RubricCreate,
    RubricUpdate as RubricUpdate,
    RubricConfigOut as RubricConfigOut,
    RubricVersionSummary as RubricVersionSummary,
)
