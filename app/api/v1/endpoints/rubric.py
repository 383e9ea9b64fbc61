from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from app.core.exceptions import RubricNotFoundError
from app.schemas.rubric import (
    RubricConfigOut,
    RubricCreate,
    RubricUpdate,
    RubricVersionSummary,
)
from app.services.rubric_config_store import (
    RubricConfigStore,
    to_rubric_out,
    to_version_summary,
)
from app.services.version_activator import VersionActivator
from app.api.deps import get_config_store, get_version_activator

router = APIRouter(prefix="/rubric", tags=["Rubric"])


@router.get("", response_model=RubricConfigOut)
async def get_active_rubric(
    store: RubricConfigStore = Depends(get_config_store),
) -> RubricConfigOut:
    """Return the active rubric with categories, criteria and red flags."""
    snapshot = await store.get_active_snapshot()
    if snapshot is None:
        raise RubricNotFoundError("No active rubric has been configured")
    return snapshot


# Declared before /{config_id} so "versions" is not parsed as an id
@router.get("/versions", response_model=List[RubricVersionSummary])
async def list_rubric_versions(
    store: RubricConfigStore = Depends(get_config_store),
) -> List[RubricVersionSummary]:
    configs = await store.list_versions()
    return [to_version_summary(config) for config in configs]


@router.get("/{config_id}", response_model=RubricConfigOut)
async def get_rubric(
    config_id: UUID,
    store: RubricConfigStore = Depends(get_config_store),
) -> RubricConfigOut:
    return to_rubric_out(await store.get_by_id(config_id))


@router.post("", response_model=RubricConfigOut, status_code=201)
async def create_rubric(
    body: RubricCreate,
    store: RubricConfigStore = Depends(get_config_store),
) -> RubricConfigOut:
    """Create a draft, optionally cloned from an existing version."""
    config = await store.create(
        name=body.name,
        description=body.description,
        clone_from_id=body.clone_from_id,
        categories=body.categories,
        red_flags=body.red_flags,
    )
    return to_rubric_out(config)


@router.put("/{config_id}", response_model=RubricConfigOut)
async def update_rubric(
    config_id: UUID,
    body: RubricUpdate,
    store: RubricConfigStore = Depends(get_config_store),
) -> RubricConfigOut:
    """Edit a draft.  The response reports the current weight allocation."""
    config = await store.update(
        config_id,
        name=body.name,
        description=body.description,
        categories=body.categories,
        red_flags=body.red_flags,
    )
    return to_rubric_out(config)


@router.post("/{config_id}/activate", response_model=RubricConfigOut)
async def activate_rubric(
    config_id: UUID,
    activator: VersionActivator = Depends(get_version_activator),
) -> RubricConfigOut:
    """Promote a draft to the active version.

    409 when weights do not sum to 100, the config is not a draft, or a
    concurrent activation won.
    """
    return to_rubric_out(await activator.activate(config_id))


@router.delete("/{config_id}", status_code=204)
async def delete_rubric(
    config_id: UUID,
    store: RubricConfigStore = Depends(get_config_store),
) -> Response:
    await store.delete(config_id)
    return Response(status_code=204)
