from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response

from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.common import ProductType
from app.schemas.rubric import RubricConfigOut
from app.schemas.script import ScriptCreate, ScriptOut, ScriptSummary, ScriptUpdate
from app.schemas.sync import (
    ApplyChangesRequest,
    RejectChangesRequest,
    SyncLogOut,
    SyncStartResponse,
)
from app.services.approval_merger import ApprovalMerger
from app.services.rubric_config_store import to_rubric_out
from app.services.script_service import ScriptService
from app.services.sync_workflow import SyncWorkflow, run_sync_analysis
from app.api.deps import (
    get_approval_merger,
    get_change_proposal_analyzer,
    get_script_service,
    get_session_factory,
    get_sync_workflow,
)

router = APIRouter(prefix="/scripts", tags=["Scripts"])


# ---------------------------------------------------------------------------
# Sync logs
# ---------------------------------------------------------------------------


@router.get("/sync/{sync_log_id}", response_model=SyncLogOut)
async def get_sync_status(
    sync_log_id: UUID,
    workflow: SyncWorkflow = Depends(get_sync_workflow),
) -> SyncLogOut:
    """Poll target while a sync is ``analyzing``; safe to call repeatedly."""
    return SyncLogOut.model_validate(await workflow.get_status(sync_log_id))


@router.post("/sync/{sync_log_id}/apply", response_model=RubricConfigOut)
async def apply_sync_changes(
    sync_log_id: UUID,
    body: ApplyChangesRequest,
    merger: ApprovalMerger = Depends(get_approval_merger),
) -> RubricConfigOut:
    """Apply the approved subset and return the newly activated rubric."""
    activated = await merger.apply(
        sync_log_id,
        approved_category_changes=body.approved_category_changes,
        approved_criteria_changes=body.approved_criteria_changes,
        approved_red_flag_changes=body.approved_red_flag_changes,
        approved_by=body.approved_by,
    )
    return to_rubric_out(activated)


@router.post("/sync/{sync_log_id}/reject", response_model=SyncLogOut)
async def reject_sync_changes(
    sync_log_id: UUID,
    body: Optional[RejectChangesRequest] = None,
    workflow: SyncWorkflow = Depends(get_sync_workflow),
) -> SyncLogOut:
    sync_log = await workflow.reject(
        sync_log_id, rejected_by=body.rejected_by if body else None
    )
    return SyncLogOut.model_validate(sync_log)


# ---------------------------------------------------------------------------
# Scripts
# ---------------------------------------------------------------------------


@router.get("", response_model=List[ScriptSummary])
async def list_scripts(
    product_type: Optional[ProductType] = Query(None),
    service: ScriptService = Depends(get_script_service),
) -> List[ScriptSummary]:
    return await service.list_scripts(product_type.value if product_type else None)


@router.post("", response_model=ScriptOut, status_code=201)
async def upload_script(
    body: ScriptCreate,
    service: ScriptService = Depends(get_script_service),
) -> ScriptOut:
    return ScriptOut.model_validate(await service.upload(body))


@router.get("/{script_id}", response_model=ScriptOut)
async def get_script(
    script_id: UUID,
    service: ScriptService = Depends(get_script_service),
) -> ScriptOut:
    return ScriptOut.model_validate(await service.get(script_id))


@router.put("/{script_id}", response_model=ScriptOut)
async def update_script(
    script_id: UUID,
    body: ScriptUpdate,
    service: ScriptService = Depends(get_script_service),
) -> ScriptOut:
    return ScriptOut.model_validate(await service.update(script_id, body))


@router.post("/{script_id}/activate", response_model=ScriptOut)
async def activate_script(
    script_id: UUID,
    service: ScriptService = Depends(get_script_service),
) -> ScriptOut:
    return ScriptOut.model_validate(await service.activate(script_id))


@router.delete("/{script_id}", status_code=204)
async def delete_script(
    script_id: UUID,
    service: ScriptService = Depends(get_script_service),
) -> Response:
    await service.delete(script_id)
    return Response(status_code=204)


@router.post("/{script_id}/sync", response_model=SyncStartResponse, status_code=202)
@limiter.limit(settings.SYNC_RATE_LIMIT)
async def start_script_sync(
    request: Request,
    script_id: UUID,
    background_tasks: BackgroundTasks,
    workflow: SyncWorkflow = Depends(get_sync_workflow),
    analyzer=Depends(get_change_proposal_analyzer),
    session_factory=Depends(get_session_factory),
) -> SyncStartResponse:
    """Compare the script against the active rubric.

    Rate-limited because every call costs a reasoning-service request.
    By default the analysis runs after the response is sent and the
    caller polls ``GET /scripts/sync/{id}``; with
    ``SYNC_ANALYSIS_INLINE`` it runs within the request and the response
    already carries the terminal status.
    """
    sync_log = await workflow.start_sync(script_id)
    if settings.SYNC_ANALYSIS_INLINE:
        await run_sync_analysis(sync_log.id, session_factory, analyzer)
        sync_log = await workflow.get_status(sync_log.id)
    else:
        background_tasks.add_task(
            run_sync_analysis, sync_log.id, session_factory, analyzer
        )
    return SyncStartResponse(sync_log_id=sync_log.id, status=sync_log.status)


@router.get("/{script_id}/sync-logs", response_model=List[SyncLogOut])
async def list_script_sync_logs(
    script_id: UUID,
    workflow: SyncWorkflow = Depends(get_sync_workflow),
) -> List[SyncLogOut]:
    """Sync history of one script, newest first."""
    return [
        SyncLogOut.model_validate(log) for log in await workflow.list_for_script(script_id)
    ]
