from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update

from app.models.script import SalesScript
from app.models.sync_log import RubricSyncLog
from app.repositories.base import BaseRepository


class ScriptRepository(BaseRepository):
    """Encapsulates queries against the ``sales_scripts`` table."""

    async def get_by_id(self, script_id: UUID) -> Optional[SalesScript]:
        result = await self._db.execute(
            select(SalesScript).where(SalesScript.id == script_id)
        )
        return result.scalar_one_or_none()

    async def get_active_for_product(self, product_type: str) -> Optional[SalesScript]:
        result = await self._db.execute(
            select(SalesScript).where(
                SalesScript.product_type == product_type,
                SalesScript.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def list_scripts(self, product_type: Optional[str] = None) -> List[SalesScript]:
        query = select(SalesScript).order_by(
            SalesScript.product_type, SalesScript.version.desc()
        )
        if product_type is not None:
            query = query.where(SalesScript.product_type == product_type)
        result = await self._db.execute(query)
        return list(result.scalars().all())

    async def next_version(self, product_type: str) -> int:
        result = await self._db.execute(
            select(func.max(SalesScript.version)).where(
                SalesScript.product_type == product_type
            )
        )
        return (result.scalar() or 0) + 1

    async def create(self, **fields) -> SalesScript:
        script = SalesScript(**fields)
        self._db.add(script)
        await self._db.flush()
        return script

    async def deactivate_product(self, product_type: str, except_id: UUID) -> None:
        """Clear ``is_active`` on every other script of *product_type*."""
        await self._db.execute(
            update(SalesScript)
            .where(
                SalesScript.product_type == product_type,
                SalesScript.id != except_id,
                SalesScript.is_active.is_(True),
            )
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )

    async def has_sync_history(self, script_id: UUID) -> bool:
        result = await self._db.execute(
            select(func.count())
            .select_from(RubricSyncLog)
            .where(RubricSyncLog.script_id == script_id)
        )
        return bool(result.scalar())

    async def latest_sync_statuses(self, script_ids: List[UUID]) -> Dict[UUID, str]:
        """Map each script id to the status of its most recent sync log."""
        if not script_ids:
            return {}
        result = await self._db.execute(
            select(RubricSyncLog.script_id, RubricSyncLog.status)
            .where(RubricSyncLog.script_id.in_(script_ids))
            .order_by(RubricSyncLog.created_at)
        )
        # Later rows overwrite earlier ones, leaving the newest status
        return {script_id: status for script_id, status in result.all()}

    async def delete(self, script: SalesScript) -> None:
        await self._db.delete(script)
        await self._db.flush()
