import logging
from typing import Dict, List, Optional, Sequence, TypeVar
from uuid import UUID

from app.core.constants import DEFAULT_ADDED_CATEGORY_WEIGHT, DEFAULT_ADDED_FLAG_SEVERITY
from app.core.exceptions import (
    InvalidStateError,
    RubricNotFoundError,
    ScriptNotFoundError,
    SyncLogNotFoundError,
    UnknownChangeKeyError,
)
from app.models.base import utcnow
from app.models.rubric import RubricConfig
from app.repositories.script_repository import ScriptRepository
from app.repositories.sync_log_repository import SyncLogRepository
from app.schemas.common import ItemSource
from app.schemas.rubric import CategoryIn, RedFlagIn, ScoringCriterionIn
from app.schemas.sync import (
    CategoryAdd,
    CategoryModify,
    CategoryRemove,
    CriteriaAdd,
    CriteriaModify,
    CriteriaRemove,
    ProposedChanges,
    RedFlagAdd,
    RedFlagModify,
    RedFlagRemove,
)
from app.services.rubric_config_store import (
    RubricConfigStore,
    category_inputs,
    red_flag_inputs,
)
from app.services.sync_workflow import claim_transition
from app.services.version_activator import VersionActivator

logger = logging.getLogger(__name__)

ChangeT = TypeVar("ChangeT")


# ---------------------------------------------------------------------------
# Pure merge functions
# ---------------------------------------------------------------------------


def _next_sort_order(items) -> int:
    return max((item.sort_order or 0 for item in items), default=-1) + 1


def merge_category_changes(
    categories: Sequence[CategoryIn],
    category_changes: Sequence,
    criteria_changes: Sequence,
    script_id: Optional[UUID] = None,
) -> List[CategoryIn]:
    """Layer approved category and criteria changes onto *categories*.

    Category changes run first so criteria can target a category added
    in the same approval.  Criteria aimed at a missing category are
    skipped.  Input models are not mutated.
    """
    merged: Dict[str, CategoryIn] = {
        cat.slug: cat.model_copy(deep=True) for cat in categories
    }
    stamp = {"source_type": ItemSource.script_sync, "source_script_id": script_id}

    for change in category_changes:
        slug = change.category_slug
        if isinstance(change, CategoryAdd):
            merged[slug] = CategoryIn(
                name=change.proposed_name or slug,
                slug=slug,
                description=change.proposed_description,
                weight=(
                    change.proposed_weight
                    if change.proposed_weight is not None
                    else DEFAULT_ADDED_CATEGORY_WEIGHT
                ),
                sort_order=_next_sort_order(merged.values()),
                is_enabled=True,
                **stamp,
            )
        elif isinstance(change, CategoryModify):
            current = merged.get(slug)
            if current is None:
                logger.warning("Skipping modify of missing category %s", slug)
                continue
            if change.proposed_name is not None:
                current.name = change.proposed_name
            if change.proposed_weight is not None:
                current.weight = change.proposed_weight
            if change.proposed_description is not None:
                current.description = change.proposed_description
            current.source_type = ItemSource.script_sync
            current.source_script_id = script_id
        elif isinstance(change, CategoryRemove):
            merged.pop(slug, None)

    for change in criteria_changes:
        category = merged.get(change.category_slug)
        if category is None:
            logger.warning(
                "Skipping criteria change for missing category %s", change.category_slug
            )
            continue
        by_score = {c.score: c for c in category.scoring_criteria}
        existing = by_score.get(change.score)
        if isinstance(change, CriteriaAdd):
            if existing is None and change.proposed_text:
                by_score[change.score] = ScoringCriterionIn(
                    score=change.score, criteria_text=change.proposed_text, **stamp
                )
        elif isinstance(change, CriteriaModify):
            if existing is not None and change.proposed_text:
                existing.criteria_text = change.proposed_text
                existing.source_type = ItemSource.script_sync
                existing.source_script_id = script_id
        elif isinstance(change, CriteriaRemove):
            by_score.pop(change.score, None)
        category.scoring_criteria = [by_score[s] for s in sorted(by_score)]

    return list(merged.values())


def merge_red_flag_changes(
    red_flags: Sequence[RedFlagIn],
    red_flag_changes: Sequence,
    script_id: Optional[UUID] = None,
) -> List[RedFlagIn]:
    """Layer approved red-flag changes onto *red_flags*."""
    merged: Dict[str, RedFlagIn] = {
        flag.flag_key: flag.model_copy(deep=True) for flag in red_flags
    }

    for change in red_flag_changes:
        key = change.flag_key
        if isinstance(change, RedFlagAdd):
            merged[key] = RedFlagIn(
                flag_key=key,
                display_name=change.proposed_display_name or key,
                description=change.proposed_description or "",
                severity=change.proposed_severity or DEFAULT_ADDED_FLAG_SEVERITY,
                is_enabled=True,
                sort_order=_next_sort_order(merged.values()),
                source_type=ItemSource.script_sync,
                source_script_id=script_id,
            )
        elif isinstance(change, RedFlagModify):
            current = merged.get(key)
            if current is None:
                logger.warning("Skipping modify of missing red flag %s", key)
                continue
            if change.proposed_display_name:
                current.display_name = change.proposed_display_name
            if change.proposed_description is not None:
                current.description = change.proposed_description
            if change.proposed_severity is not None:
                current.severity = change.proposed_severity
            current.source_type = ItemSource.script_sync
            current.source_script_id = script_id
        elif isinstance(change, RedFlagRemove):
            merged.pop(key, None)

    return list(merged.values())


def select_changes(
    changes: Sequence[ChangeT], requested: Sequence[str], kind: str
) -> List[ChangeT]:
    """Pick the proposed changes named in *requested*, in proposal order.

    Entries are change keys; a purely numeric entry is read as a position
    in *changes*.  Anything else raises :class:`UnknownChangeKeyError`.
    """
    by_key = {change.key: change for change in changes}
    chosen = set()
    for entry in requested:
        if entry in by_key:
            chosen.add(entry)
        elif entry.isascii() and entry.isdigit() and int(entry) < len(changes):
            chosen.add(changes[int(entry)].key)
        else:
            raise UnknownChangeKeyError(f"Unknown {kind} change '{entry}'")
    return [change for change in changes if change.key in chosen]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ApprovalMerger:
    """Applies a reviewer-selected subset of a sync proposal.

    The approved changes are layered onto a fresh clone of the active
    rubric, the clone is activated, and the sync log is closed as
    ``applied``, all in one transaction.  If anything fails (most often
    the merged weights no longer summing to 100) the transaction is
    rolled back: no draft survives and the log stays in
    ``pending_approval``.
    """

    def __init__(
        self,
        sync_log_repo: SyncLogRepository,
        script_repo: ScriptRepository,
        config_store: RubricConfigStore,
        activator: VersionActivator,
    ) -> None:
        self._sync_log_repo = sync_log_repo
        self._script_repo = script_repo
        self._config_store = config_store
        self._activator = activator

    async def apply(
        self,
        sync_log_id: UUID,
        approved_category_changes: Sequence[str] = (),
        approved_criteria_changes: Sequence[str] = (),
        approved_red_flag_changes: Sequence[str] = (),
        approved_by: Optional[str] = None,
    ) -> RubricConfig:
        sync_log = await self._sync_log_repo.get_by_id(sync_log_id)
        if sync_log is None:
            raise SyncLogNotFoundError(f"Sync log {sync_log_id} not found")
        if sync_log.status != "pending_approval":
            raise InvalidStateError(
                f"Sync log {sync_log_id} is {sync_log.status}; only logs awaiting "
                "approval can be applied"
            )

        proposal = ProposedChanges.model_validate(sync_log.changes_proposed)
        categories = select_changes(
            proposal.category_changes, approved_category_changes, "category"
        )
        criteria = select_changes(
            proposal.criteria_changes, approved_criteria_changes, "criteria"
        )
        red_flags = select_changes(
            proposal.red_flag_changes, approved_red_flag_changes, "red flag"
        )

        script = await self._script_repo.get_by_id(sync_log.script_id)
        if script is None:
            raise ScriptNotFoundError(f"Sales script {sync_log.script_id} not found")
        active = await self._config_store.get_active()
        if active is None:
            raise RubricNotFoundError("No active rubric to apply changes to")
        if active.id != sync_log.rubric_config_id:
            logger.warning(
                "Rubric changed since sync %s was analysed (%s -> %s); applying "
                "onto the current active version",
                sync_log_id,
                sync_log.rubric_config_id,
                active.id,
            )

        approved = proposal.model_copy(
            update={
                "category_changes": categories,
                "criteria_changes": criteria,
                "red_flag_changes": red_flags,
            }
        ).with_counts()
        chosen = {c.key for c in (*categories, *criteria, *red_flags)}
        rejected = proposal.model_copy(
            update={
                "category_changes": [
                    c for c in proposal.category_changes if c.key not in chosen
                ],
                "criteria_changes": [
                    c for c in proposal.criteria_changes if c.key not in chosen
                ],
                "red_flag_changes": [
                    c for c in proposal.red_flag_changes if c.key not in chosen
                ],
            }
        ).with_counts()

        try:
            # Claim the log first so a concurrent reject or apply loses cleanly
            await claim_transition(self._sync_log_repo, sync_log, "applied")
            draft = await self._config_store.create(
                name=f"Synced from {script.name} v{script.version}",
                description=(
                    f"Applied {approved.total_changes} of {proposal.total_changes} "
                    f"proposed change(s) from script sync {sync_log.id}"
                ),
                clone_from_id=active.id,
                commit=False,
            )
            await self._config_store.update(
                draft.id,
                categories=merge_category_changes(
                    category_inputs(draft), categories, criteria, script.id
                ),
                red_flags=merge_red_flag_changes(
                    red_flag_inputs(draft), red_flags, script.id
                ),
                commit=False,
            )
            activated = await self._activator.activate(draft.id, commit=False)

            now = utcnow()
            sync_log.changes_approved = approved.model_dump(mode="json")
            sync_log.changes_rejected = rejected.model_dump(mode="json")
            sync_log.approved_by = approved_by
            sync_log.approved_at = now
            sync_log.applied_at = now
            script.linked_rubric_id = activated.id
            await self._sync_log_repo.commit()
        except Exception:
            await self._sync_log_repo.rollback()
            raise

        await self._activator.invalidate_cache()
        logger.info(
            "Applied %d change(s) from sync %s as rubric v%d",
            approved.total_changes,
            sync_log_id,
            activated.version,
        )
        return activated
