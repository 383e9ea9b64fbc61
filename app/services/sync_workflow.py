import logging
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.core.constants import ALLOWED_SYNC_TRANSITIONS
from app.core.exceptions import (
    AnalysisError,
    InvalidStateError,
    RubricNotFoundError,
    ScriptNotFoundError,
    SyncLogNotFoundError,
)
from app.models.base import utcnow
from app.models.sync_log import RubricSyncLog
from app.repositories.rubric_repository import RubricRepository
from app.repositories.script_repository import ScriptRepository
from app.repositories.sync_log_repository import SyncLogRepository
from app.services.change_proposal_analyzer import ChangeProposalAnalyzer
from app.services.rubric_config_store import RubricConfigStore

logger = logging.getLogger(__name__)


def validate_sync_transition(current_status: str, new_status: str) -> None:
    """Raise unless *current_status* → *new_status* is an allowed edge."""
    allowed = ALLOWED_SYNC_TRANSITIONS.get(current_status, [])
    if new_status not in allowed:
        raise InvalidStateError(
            f"Cannot move sync log from {current_status} to {new_status}"
        )


def transition(sync_log: RubricSyncLog, new_status: str) -> None:
    validate_sync_transition(sync_log.status, new_status)
    logger.info(
        "Sync log %s: %s -> %s", sync_log.id, sync_log.status, new_status
    )
    sync_log.status = new_status


async def claim_transition(
    sync_log_repo: SyncLogRepository, sync_log: RubricSyncLog, new_status: str
) -> None:
    """Guarded transition written as a conditional UPDATE on the stored status.

    Raises :class:`InvalidStateError` when another session moved the log
    after *sync_log* was read, so a terminal state is written at most once.
    """
    current = sync_log.status
    validate_sync_transition(current, new_status)
    if not await sync_log_repo.compare_and_set_status(sync_log.id, current, new_status):
        raise InvalidStateError(
            f"Sync log {sync_log.id} is no longer {current}; it was changed "
            "by another request"
        )
    logger.info("Sync log %s: %s -> %s", sync_log.id, current, new_status)
    set_committed_value(sync_log, "status", new_status)


class SyncWorkflow:
    """Drives a script/rubric reconciliation from start to review.

    ``pending → analyzing → pending_approval | rejected``.  Analysis
    failures are written onto the log (``error_message``) and end in
    ``rejected`` rather than propagating, so every attempt leaves an
    auditable terminal record.  Applying approved changes is the
    :class:`ApprovalMerger`'s job.
    """

    def __init__(
        self,
        script_repo: ScriptRepository,
        sync_log_repo: SyncLogRepository,
        config_store: RubricConfigStore,
        analyzer: Optional[ChangeProposalAnalyzer] = None,
    ) -> None:
        self._script_repo = script_repo
        self._sync_log_repo = sync_log_repo
        self._config_store = config_store
        self._analyzer = analyzer

    async def start_sync(self, script_id: UUID) -> RubricSyncLog:
        """Open a sync log against the active rubric and mark it analyzing.

        The log is committed before analysis starts so pollers can see it
        while the reasoning call is in flight.
        """
        script = await self._script_repo.get_by_id(script_id)
        if script is None:
            raise ScriptNotFoundError(f"Sales script {script_id} not found")

        active = await self._config_store.get_active()
        if active is None:
            raise RubricNotFoundError("No active rubric to compare the script against")

        sync_log = await self._sync_log_repo.create(script.id, active.id)
        transition(sync_log, "analyzing")
        await self._sync_log_repo.commit()
        logger.info(
            "Started sync %s for script %s against rubric v%s",
            sync_log.id,
            script.id,
            active.version,
        )
        return sync_log

    async def run_analysis(self, sync_log_id: UUID) -> RubricSyncLog:
        """Run the analyzer for an ``analyzing`` log and record the outcome.

        Does nothing for logs that already left ``analyzing``.
        """
        sync_log = await self.get_status(sync_log_id)
        if sync_log.status != "analyzing":
            logger.info(
                "Sync log %s is %s; skipping analysis", sync_log_id, sync_log.status
            )
            return sync_log
        if self._analyzer is None:
            raise RuntimeError("SyncWorkflow was built without an analyzer")

        script = await self._script_repo.get_by_id(sync_log.script_id)
        rubric = await self._config_store.get_by_id(sync_log.rubric_config_id)

        try:
            if script is None:
                raise AnalysisError("Sales script no longer exists")
            proposal = await self._analyzer.analyze(
                script.content, rubric, script.product_type
            )
        except AnalysisError as exc:
            logger.warning("Sync %s analysis failed: %s", sync_log_id, exc.detail)
            await claim_transition(self._sync_log_repo, sync_log, "rejected")
            sync_log.error_message = exc.detail
            await self._sync_log_repo.commit()
            return sync_log

        await claim_transition(self._sync_log_repo, sync_log, "pending_approval")
        sync_log.changes_proposed = proposal.model_dump(mode="json")
        await self._sync_log_repo.commit()
        return sync_log

    async def record_failure(self, sync_log_id: UUID, message: str) -> None:
        """Close an ``analyzing`` log as rejected after an unexpected error."""
        sync_log = await self._sync_log_repo.get_by_id(sync_log_id)
        if sync_log is None or sync_log.status != "analyzing":
            return
        try:
            await claim_transition(self._sync_log_repo, sync_log, "rejected")
        except InvalidStateError:
            logger.info("Sync log %s was closed before the failure was recorded", sync_log_id)
            return
        sync_log.error_message = message
        await self._sync_log_repo.commit()

    async def get_status(self, sync_log_id: UUID) -> RubricSyncLog:
        """Current state of a sync log.  Read-only; safe to poll."""
        sync_log = await self._sync_log_repo.get_by_id(sync_log_id)
        if sync_log is None:
            raise SyncLogNotFoundError(f"Sync log {sync_log_id} not found")
        return sync_log

    async def list_for_script(self, script_id: UUID) -> List[RubricSyncLog]:
        if await self._script_repo.get_by_id(script_id) is None:
            raise ScriptNotFoundError(f"Sales script {script_id} not found")
        return await self._sync_log_repo.list_for_script(script_id)

    async def reject(
        self, sync_log_id: UUID, rejected_by: Optional[str] = None
    ) -> RubricSyncLog:
        """Reviewer rejection: keep the whole proposal as ``changes_rejected``.

        No rubric is touched.
        """
        sync_log = await self.get_status(sync_log_id)
        if sync_log.status != "pending_approval":
            raise InvalidStateError(
                f"Sync log {sync_log_id} is {sync_log.status}; only logs awaiting "
                "approval can be rejected"
            )
        await claim_transition(self._sync_log_repo, sync_log, "rejected")
        sync_log.changes_rejected = sync_log.changes_proposed
        sync_log.approved_by = rejected_by
        sync_log.approved_at = utcnow()
        await self._sync_log_repo.commit()
        return sync_log


async def run_sync_analysis(
    sync_log_id: UUID,
    session_factory: Callable[..., AsyncSession],
    analyzer: ChangeProposalAnalyzer,
) -> None:
    """Post-response entry point: analyse one sync log in its own session.

    Parameters:
        sync_log_id: Log previously moved to ``analyzing`` by
            :meth:`SyncWorkflow.start_sync`.
        session_factory: An async context-manager callable that yields
            an ``AsyncSession`` (e.g. ``AsyncSessionLocal``).
        analyzer: The analyzer to run.

    Never raises: unexpected errors are logged and the log is closed as
    rejected so pollers are not left waiting on ``analyzing``.
    """
    async with session_factory() as session:
        rubric_repo = RubricRepository(session)
        workflow = SyncWorkflow(
            script_repo=ScriptRepository(session),
            sync_log_repo=SyncLogRepository(session),
            config_store=RubricConfigStore(rubric_repo),
            analyzer=analyzer,
        )
        try:
            await workflow.run_analysis(sync_log_id)
        except Exception as exc:
            logger.error(
                "Unexpected error analysing sync log %s", sync_log_id, exc_info=True
            )
            await session.rollback()
            try:
                await workflow.record_failure(
                    sync_log_id, f"Unexpected error during analysis: {exc}"
                )
            except Exception:
                logger.error(
                    "Could not record failure on sync log %s",
                    sync_log_id,
                    exc_info=True,
                )
