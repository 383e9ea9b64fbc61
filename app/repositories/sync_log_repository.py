from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update

from app.models.sync_log import RubricSyncLog
from app.repositories.base import BaseRepository


class SyncLogRepository(BaseRepository):
    """Encapsulates queries against the ``rubric_sync_logs`` table.

    There is deliberately no delete: sync logs are the audit trail.
    """

    async def get_by_id(self, sync_log_id: UUID) -> Optional[RubricSyncLog]:
        result = await self._db.execute(
            select(RubricSyncLog)
            .where(RubricSyncLog.id == sync_log_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_script(self, script_id: UUID) -> List[RubricSyncLog]:
        result = await self._db.execute(
            select(RubricSyncLog)
            .where(RubricSyncLog.script_id == script_id)
            .order_by(RubricSyncLog.created_at.desc())
        )
        return list(result.scalars().all())

    async def compare_and_set_status(
        self, sync_log_id: UUID, expected: str, new_status: str
    ) -> bool:
        """Move a log from *expected* to *new_status* in one conditional UPDATE.

        Returns ``False`` when the row was no longer in *expected*; the
        caller lost a race to another session.
        """
        result = await self._db.execute(
            update(RubricSyncLog)
            .where(RubricSyncLog.id == sync_log_id, RubricSyncLog.status == expected)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def create(self, script_id: UUID, rubric_config_id: UUID) -> RubricSyncLog:
        sync_log = RubricSyncLog(
            script_id=script_id,
            rubric_config_id=rubric_config_id,
            status="pending",
        )
        self._db.add(sync_log)
        await self._db.flush()
        return sync_log
