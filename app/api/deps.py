"""API-layer dependency functions.

Re-exports all dependency factories from ``app.dependencies`` so that
endpoint modules only need to import from ``app.api.deps``.
"""

from app.core.database import get_session_factory
from app.dependencies import (
    # Repository factories
    get_rubric_repo,
    get_script_repo,
    get_sync_log_repo,
    # Service factories
    get_config_store,
    get_version_activator,
    get_script_service,
    get_change_proposal_analyzer,
    get_sync_workflow,
    get_approval_merger,
    # Redis
    get_redis_client,
    get_cache_service,
)

__all__ = [
    "get_rubric_repo",
    "get_script_repo",
    "get_sync_log_repo",
    "get_config_store",
    "get_version_activator",
    "get_script_service",
    "get_change_proposal_analyzer",
    "get_sync_workflow",
    "get_approval_merger",
    "get_redis_client",
    "get_cache_service",
    "get_session_factory",
]
