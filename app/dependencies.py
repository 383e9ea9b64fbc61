import logging

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> Redis:
    """Get an async Redis client instance using connection pooling."""
    try:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
        await client.ping()
        return client
    except Exception:
        logger.warning("Redis unavailable – caching disabled for this request")
        return None  # type: ignore[return-value]


async def get_cache_service(
    redis_client: Redis = Depends(get_redis_client),
):
    """Build a :class:`CacheService` backed by the shared Redis client."""
    from app.core.cache import CacheService

    return CacheService(redis_client=redis_client, ttl=settings.REDIS_CACHE_TTL)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_rubric_repo(
    db: AsyncSession = Depends(get_db),
):
    from app.repositories.rubric_repository import RubricRepository

    return RubricRepository(db)


async def get_script_repo(
    db: AsyncSession = Depends(get_db),
):
    from app.repositories.script_repository import ScriptRepository

    return ScriptRepository(db)


async def get_sync_log_repo(
    db: AsyncSession = Depends(get_db),
):
    from app.repositories.sync_log_repository import SyncLogRepository

    return SyncLogRepository(db)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_config_store(
    rubric_repo=Depends(get_rubric_repo),
    cache=Depends(get_cache_service),
):
    """Build a :class:`RubricConfigStore` with injected repository and cache."""
    from app.services.rubric_config_store import RubricConfigStore

    return RubricConfigStore(rubric_repo=rubric_repo, cache=cache)


async def get_version_activator(
    rubric_repo=Depends(get_rubric_repo),
    cache=Depends(get_cache_service),
):
    from app.services.version_activator import VersionActivator

    return VersionActivator(rubric_repo=rubric_repo, cache=cache)


async def get_script_service(
    script_repo=Depends(get_script_repo),
):
    from app.services.script_service import ScriptService

    return ScriptService(script_repo=script_repo)


def get_change_proposal_analyzer():
    """Build the analyzer around the Anthropic Messages API client.

    Overridden in tests with a fake that returns canned proposals.
    """
    from app.services.change_proposal_analyzer import ChangeProposalAnalyzer
    from app.services.reasoning_client import AnthropicReasoningClient

    return ChangeProposalAnalyzer(client=AnthropicReasoningClient())


async def get_sync_workflow(
    script_repo=Depends(get_script_repo),
    sync_log_repo=Depends(get_sync_log_repo),
    config_store=Depends(get_config_store),
    analyzer=Depends(get_change_proposal_analyzer),
):
    """Build a :class:`SyncWorkflow` with injected dependencies."""
    from app.services.sync_workflow import SyncWorkflow

    return SyncWorkflow(
        script_repo=script_repo,
        sync_log_repo=sync_log_repo,
        config_store=config_store,
        analyzer=analyzer,
    )


async def get_approval_merger(
    sync_log_repo=Depends(get_sync_log_repo),
    script_repo=Depends(get_script_repo),
    config_store=Depends(get_config_store),
    activator=Depends(get_version_activator),
):
    """Build an :class:`ApprovalMerger` sharing one session across its collaborators."""
    from app.services.approval_merger import ApprovalMerger

    return ApprovalMerger(
        sync_log_repo=sync_log_repo,
        script_repo=script_repo,
        config_store=config_store,
        activator=activator,
    )
