from app.models.base import Base
from app.models.rubric import (
    ActiveRubricPointer,
    RubricCategory,
    RubricConfig,
    RubricRedFlag,
    RubricScoringCriteria,
)
from app.models.script import SalesScript
from app.models.sync_log import RubricSyncLog

# Import event listeners to register them
from app.models import listeners  # noqa: F401

__all__ = [
    "Base",
    "RubricConfig",
    "RubricCategory",
    "RubricScoringCriteria",
    "RubricRedFlag",
    "ActiveRubricPointer",
    "SalesScript",
    "RubricSyncLog",
]
