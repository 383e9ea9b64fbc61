"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from app.repositories.rubric_repository import RubricRepository
from app.repositories.script_repository import ScriptRepository
from app.repositories.sync_log_repository import SyncLogRepository

__all__ = [
    "RubricRepository",
    "ScriptRepository",
    "SyncLogRepository",
]
