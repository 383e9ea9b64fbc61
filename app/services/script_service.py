import logging
from typing import List, Optional
from uuid import UUID

from app.core.exceptions import InvalidStateError, ScriptNotFoundError
from app.models.script import SalesScript
from app.repositories.script_repository import ScriptRepository
from app.schemas.common import SyncStatus
from app.schemas.script import ScriptCreate, ScriptSummary, ScriptUpdate

logger = logging.getLogger(__name__)


class ScriptService:
    """Upload, activation and deletion of sales scripts.

    Documents arrive as already-extracted text; file parsing and blob
    storage live outside this service.
    """

    def __init__(self, script_repo: ScriptRepository) -> None:
        self._repo = script_repo

    async def get(self, script_id: UUID) -> SalesScript:
        script = await self._repo.get_by_id(script_id)
        if script is None:
            raise ScriptNotFoundError(f"Sales script {script_id} not found")
        return script

    async def get_active(self, product_type: str) -> Optional[SalesScript]:
        return await self._repo.get_active_for_product(product_type)

    async def list_scripts(self, product_type: Optional[str] = None) -> List[ScriptSummary]:
        scripts = await self._repo.list_scripts(product_type)
        statuses = await self._repo.latest_sync_statuses([s.id for s in scripts])
        summaries = []
        for script in scripts:
            summary = ScriptSummary.model_validate(script)
            status = statuses.get(script.id)
            summary.sync_status = SyncStatus(status) if status else None
            summaries.append(summary)
        return summaries

    async def upload(self, data: ScriptCreate) -> SalesScript:
        """Store a new version of a product's script (inactive unless asked)."""
        version = await self._repo.next_version(data.product_type.value)
        script = await self._repo.create(
            name=data.name,
            product_type=data.product_type.value,
            version=version,
            content=data.content,
            file_name=data.file_name,
            version_notes=data.version_notes,
            uploaded_by=data.uploaded_by,
            is_active=False,
        )
        if data.activate:
            await self._repo.deactivate_product(script.product_type, script.id)
            script.is_active = True
            await self._repo.flush()
        await self._repo.commit()
        logger.info(
            "Uploaded %s script %s v%d", script.product_type, script.id, script.version
        )
        return script

    async def update(self, script_id: UUID, data: ScriptUpdate) -> SalesScript:
        """Rename a script or edit its notes.  Content and version never change."""
        script = await self.get(script_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") is None:
            changes.pop("name", None)
        for field, value in changes.items():
            setattr(script, field, value)
        await self._repo.flush()
        await self._repo.commit()
        return script

    async def activate(self, script_id: UUID) -> SalesScript:
        """Make *script_id* the one active script of its product type."""
        script = await self.get(script_id)
        await self._repo.deactivate_product(script.product_type, script.id)
        script.is_active = True
        await self._repo.flush()
        await self._repo.commit()
        return script

    async def delete(self, script_id: UUID) -> None:
        script = await self.get(script_id)
        if script.is_active:
            raise InvalidStateError(
                f"Script {script_id} is the active {script.product_type} script; "
                "activate another version first"
            )
        if await self._repo.has_sync_history(script.id):
            raise InvalidStateError(
                f"Script {script_id} has sync history and is kept for audit"
            )
        await self._repo.delete(script)
        await self._repo.commit()

