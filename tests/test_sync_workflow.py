"""Sync lifecycle: pending → analyzing → pending_approval | rejected."""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.core.exceptions import (
    AnalysisError,
    InvalidStateError,
    RubricNotFoundError,
    ScriptNotFoundError,
    SyncLogNotFoundError,
)
from app.models.rubric import RubricConfig
from app.repositories.rubric_repository import RubricRepository
from app.repositories.script_repository import ScriptRepository
from app.repositories.sync_log_repository import SyncLogRepository
from app.services.rubric_config_store import RubricConfigStore
from app.services.sync_workflow import (
    SyncWorkflow,
    run_sync_analysis,
    validate_sync_transition,
)


def _workflow(session, analyzer=None) -> SyncWorkflow:
    return SyncWorkflow(
        script_repo=ScriptRepository(session),
        sync_log_repo=SyncLogRepository(session),
        config_store=RubricConfigStore(RubricRepository(session)),
        analyzer=analyzer,
    )


async def _rubric_state(session):
    """Config count plus the active id and version, to prove nothing moved."""
    count = (
        await session.execute(select(func.count()).select_from(RubricConfig))
    ).scalar()
    active = await RubricRepository(session).get_active()
    return count, active.id, active.version


class TestSyncTransitions:
    @pytest.mark.parametrize(
        "current,new",
        [
            ("pending", "analyzing"),
            ("analyzing", "pending_approval"),
            ("analyzing", "rejected"),
            ("pending_approval", "applied"),
            ("pending_approval", "rejected"),
        ],
    )
    def test_valid_transitions(self, current, new):
        validate_sync_transition(current, new)

    @pytest.mark.parametrize(
        "current,new",
        [
            ("pending", "pending_approval"),
            ("pending", "applied"),
            ("pending", "rejected"),
            ("analyzing", "applied"),
            ("pending_approval", "analyzing"),
            ("applied", "rejected"),
            ("rejected", "pending_approval"),
        ],
    )
    def test_invalid_transitions(self, current, new):
        with pytest.raises(InvalidStateError):
            validate_sync_transition(current, new)

    def test_terminal_states_block_all_transitions(self):
        for terminal in ("applied", "rejected"):
            for target in ("pending", "analyzing", "pending_approval", "applied", "rejected"):
                with pytest.raises(InvalidStateError):
                    validate_sync_transition(terminal, target)


class TestStartSync:
    @pytest.mark.asyncio
    async def test_opens_analyzing_log_against_active_rubric(
        self, db_session, active_rubric, aca_script
    ):
        sync_log = await _workflow(db_session).start_sync(aca_script.id)

        assert sync_log.status == "analyzing"
        assert sync_log.script_id == aca_script.id
        assert sync_log.rubric_config_id == active_rubric.id
        assert sync_log.changes_proposed is None

    @pytest.mark.asyncio
    async def test_unknown_script(self, db_session, active_rubric):
        with pytest.raises(ScriptNotFoundError):
            await _workflow(db_session).start_sync(uuid4())

    @pytest.mark.asyncio
    async def test_requires_an_active_rubric(self, db_session, aca_script):
        with pytest.raises(RubricNotFoundError):
            await _workflow(db_session).start_sync(aca_script.id)


class TestRunAnalysis:
    @pytest.mark.asyncio
    async def test_success_moves_to_pending_approval(
        self, db_session, active_rubric, aca_script, fake_analyzer
    ):
        workflow = _workflow(db_session, fake_analyzer)
        sync_log = await workflow.start_sync(aca_script.id)

        result = await workflow.run_analysis(sync_log.id)

        assert result.status == "pending_approval"
        assert result.changes_proposed["total_changes"] == 3
        assert result.changes_proposed["high_confidence_count"] == 2
        assert result.error_message is None
        assert fake_analyzer.calls == [(aca_script.content, active_rubric.id, "aca")]

    @pytest.mark.asyncio
    async def test_analysis_error_is_recorded_and_rejected(
        self, db_session, active_rubric, aca_script, analyzer_factory
    ):
        analyzer = analyzer_factory(error=AnalysisError("Reasoning service timed out"))
        workflow = _workflow(db_session, analyzer)
        sync_log = await workflow.start_sync(aca_script.id)
        before = await _rubric_state(db_session)

        result = await workflow.run_analysis(sync_log.id)

        assert result.status == "rejected"
        assert result.error_message == "Reasoning service timed out"
        assert result.changes_proposed is None
        assert await _rubric_state(db_session) == before == (1, active_rubric.id, 1)

    @pytest.mark.asyncio
    async def test_logs_past_analyzing_are_left_alone(
        self, db_session, pending_sync, fake_analyzer
    ):
        workflow = _workflow(db_session, fake_analyzer)
        before = len(fake_analyzer.calls)

        result = await workflow.run_analysis(pending_sync.id)

        assert result.status == "pending_approval"
        assert len(fake_analyzer.calls) == before


class TestRunSyncAnalysis:
    """The post-response runner never raises and never strands a log."""

    @pytest.mark.asyncio
    async def test_unexpected_error_closes_the_log(
        self, session_factory, active_rubric, aca_script, analyzer_factory
    ):
        async with session_factory() as session:
            sync_log = await _workflow(session).start_sync(aca_script.id)
            before = await _rubric_state(session)

        analyzer = analyzer_factory(error=RuntimeError("boom"))
        await run_sync_analysis(sync_log.id, session_factory, analyzer)

        async with session_factory() as session:
            result = await _workflow(session).get_status(sync_log.id)
            assert result.status == "rejected"
            assert "boom" in result.error_message
            assert await _rubric_state(session) == before

    @pytest.mark.asyncio
    async def test_success_in_its_own_session(
        self, session_factory, active_rubric, aca_script, fake_analyzer
    ):
        async with session_factory() as session:
            sync_log = await _workflow(session).start_sync(aca_script.id)

        await run_sync_analysis(sync_log.id, session_factory, fake_analyzer)

        async with session_factory() as session:
            result = await _workflow(session).get_status(sync_log.id)
            assert result.status == "pending_approval"


class TestStatusAndReject:
    @pytest.mark.asyncio
    async def test_get_status_unknown_log(self, db_session):
        with pytest.raises(SyncLogNotFoundError):
            await _workflow(db_session).get_status(uuid4())

    @pytest.mark.asyncio
    async def test_get_status_is_read_only(self, db_session, pending_sync):
        workflow = _workflow(db_session)
        first = await workflow.get_status(pending_sync.id)
        second = await workflow.get_status(pending_sync.id)
        assert first.status == second.status == "pending_approval"

    @pytest.mark.asyncio
    async def test_reject_keeps_full_proposal(self, db_session, pending_sync, active_rubric):
        result = await _workflow(db_session).reject(pending_sync.id, rejected_by="coach@fhe.test")

        assert result.status == "rejected"
        assert result.changes_rejected == pending_sync.changes_proposed
        assert result.approved_by == "coach@fhe.test"
        assert result.approved_at is not None
        assert result.applied_at is None
        active = await RubricRepository(db_session).get_active()
        assert active.id == active_rubric.id

    @pytest.mark.asyncio
    async def test_reject_twice_fails(self, db_session, pending_sync):
        workflow = _workflow(db_session)
        await workflow.reject(pending_sync.id)
        with pytest.raises(InvalidStateError):
            await workflow.reject(pending_sync.id)

    @pytest.mark.asyncio
    async def test_history_newest_first(self, db_session, pending_sync, aca_script, fake_analyzer):
        workflow = _workflow(db_session, fake_analyzer)
        second = await workflow.start_sync(aca_script.id)

        history = await workflow.list_for_script(aca_script.id)
        assert [log.id for log in history] == [second.id, pending_sync.id]

    @pytest.mark.asyncio
    async def test_history_of_unknown_script(self, db_session):
        with pytest.raises(ScriptNotFoundError):
            await _workflow(db_session).list_for_script(uuid4())
