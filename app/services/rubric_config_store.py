import logging
from typing import List, Optional, Sequence
from uuid import UUID

from app.core.cache import CacheService
from app.core.exceptions import InvalidStateError, RubricNotFoundError
from app.models.rubric import (
    RubricCategory,
    RubricConfig,
    RubricRedFlag,
    RubricScoringCriteria,
)
from app.repositories.rubric_repository import RubricRepository
from app.schemas.rubric import (
    CategoryIn,
    RedFlagIn,
    RubricConfigOut,
    RubricVersionSummary,
    ScoringCriterionIn,
)
from app.services.weight_validator import validate_category_weights

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Row <-> input conversion
# ---------------------------------------------------------------------------


def category_inputs(config: RubricConfig) -> List[CategoryIn]:
    """Snapshot a config's categories (with criteria) as editable inputs."""
    return [
        CategoryIn(
            name=cat.name,
            slug=cat.slug,
            description=cat.description,
            weight=cat.weight,
            sort_order=cat.sort_order,
            is_enabled=cat.is_enabled,
            source_type=cat.source_type,
            source_script_id=cat.source_script_id,
            scoring_criteria=[
                ScoringCriterionIn(
                    score=crit.score,
                    criteria_text=crit.criteria_text,
                    source_type=crit.source_type,
                    source_script_id=crit.source_script_id,
                )
                for crit in cat.scoring_criteria
            ],
        )
        for cat in config.categories
    ]


def red_flag_inputs(config: RubricConfig) -> List[RedFlagIn]:
    return [
        RedFlagIn(
            flag_key=flag.flag_key,
            display_name=flag.display_name,
            description=flag.description,
            severity=flag.severity,
            threshold_type=flag.threshold_type,
            threshold_value=flag.threshold_value,
            is_enabled=flag.is_enabled,
            sort_order=flag.sort_order,
            source_type=flag.source_type,
            source_script_id=flag.source_script_id,
        )
        for flag in config.red_flags
    ]


def _build_category(position: int, data: CategoryIn) -> RubricCategory:
    return RubricCategory(
        name=data.name,
        slug=data.slug,
        description=data.description,
        weight=data.weight,
        sort_order=data.sort_order if data.sort_order is not None else position,
        is_enabled=data.is_enabled,
        source_type=data.source_type.value,
        source_script_id=data.source_script_id,
        scoring_criteria=[
            RubricScoringCriteria(
                score=crit.score,
                criteria_text=crit.criteria_text,
                source_type=crit.source_type.value,
                source_script_id=crit.source_script_id,
            )
            for crit in sorted(data.scoring_criteria, key=lambda c: c.score)
        ],
    )


def _build_red_flag(position: int, data: RedFlagIn) -> RubricRedFlag:
    return RubricRedFlag(
        flag_key=data.flag_key,
        display_name=data.display_name,
        description=data.description,
        severity=data.severity.value,
        threshold_type=data.threshold_type.value,
        threshold_value=data.threshold_value,
        is_enabled=data.is_enabled,
        sort_order=data.sort_order if data.sort_order is not None else position,
        source_type=data.source_type.value,
        source_script_id=data.source_script_id,
    )


def to_rubric_out(config: RubricConfig) -> RubricConfigOut:
    """Serialise a loaded config, attaching its current weight validation."""
    out = RubricConfigOut.model_validate(config)
    out.weight_validation = validate_category_weights(config.categories)
    return out


def to_version_summary(config: RubricConfig) -> RubricVersionSummary:
    validation = validate_category_weights(config.categories)
    return RubricVersionSummary(
        id=config.id,
        name=config.name,
        description=config.description,
        version=config.version,
        is_active=config.is_active,
        is_draft=config.is_draft,
        created_at=config.created_at,
        updated_at=config.updated_at,
        category_count=len(config.categories),
        red_flag_count=len(config.red_flags),
        total_weight=validation.total,
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class RubricConfigStore:
    """CRUD for rubric configurations.

    Configs are born as drafts and are editable only while they remain
    drafts.  Version numbers are never touched here; the
    :class:`VersionActivator` assigns them on promotion.  Drafts may hold
    weights that do not sum to 100; activation is the gate.

    Mutating methods commit by default.  Pass ``commit=False`` to stage
    the change inside a larger unit of work (e.g. applying a sync).
    """

    def __init__(
        self,
        rubric_repo: RubricRepository,
        cache: Optional[CacheService] = None,
    ) -> None:
        self._repo = rubric_repo
        self._cache = cache or CacheService()

    async def get_by_id(self, config_id: UUID) -> RubricConfig:
        config = await self._repo.get_by_id(config_id)
        if config is None:
            raise RubricNotFoundError(f"Rubric configuration {config_id} not found")
        return config

    async def get_active(self) -> Optional[RubricConfig]:
        return await self._repo.get_active()

    async def get_active_snapshot(self) -> Optional[RubricConfigOut]:
        """Serialised active rubric, served from the cache when possible.

        Reads may race an in-flight activation and return either side of
        it; the cache is invalidated once the activation commits.  A
        snapshot is only cached when the pointer revision did not move
        while it was being loaded, so a slow miss cannot put an old
        version back after the invalidation.
        """
        cached = await self._cache.get_active_rubric()
        if cached is not None:
            return RubricConfigOut.model_validate(cached)

        revision = await self._repo.get_pointer_revision()
        config = await self._repo.get_active()
        if config is None:
            return None
        snapshot = to_rubric_out(config)
        if await self._repo.get_pointer_revision() != revision:
            logger.info("Active rubric changed while loading; not caching snapshot")
            return snapshot
        await self._cache.set_active_rubric(snapshot.model_dump(mode="json"))
        return snapshot

    async def list_versions(self) -> List[RubricConfig]:
        return await self._repo.list_versions()

    async def create(
        self,
        name: str,
        description: Optional[str] = None,
        clone_from_id: Optional[UUID] = None,
        categories: Optional[Sequence[CategoryIn]] = None,
        red_flags: Optional[Sequence[RedFlagIn]] = None,
        commit: bool = True,
    ) -> RubricConfig:
        """Create a new draft, optionally copying another config's content.

        Cloning copies every category (with criteria) and every red flag
        as fresh rows, keeping weights and ordering.  Explicit
        *categories* / *red_flags* win over the cloned ones.
        """
        if clone_from_id is not None:
            source = await self.get_by_id(clone_from_id)
            if categories is None:
                categories = category_inputs(source)
            if red_flags is None:
                red_flags = red_flag_inputs(source)

        config = await self._repo.create(
            name=name,
            description=description,
            categories=[_build_category(i, c) for i, c in enumerate(categories or [])],
            red_flags=[_build_red_flag(i, f) for i, f in enumerate(red_flags or [])],
        )
        if commit:
            await self._repo.commit()
        logger.info(
            "Created rubric draft %s (%d categories, %d red flags, cloned from %s)",
            config.id,
            len(config.categories),
            len(config.red_flags),
            clone_from_id,
        )
        return config

    async def update(
        self,
        config_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
        categories: Optional[Sequence[CategoryIn]] = None,
        red_flags: Optional[Sequence[RedFlagIn]] = None,
        commit: bool = True,
    ) -> RubricConfig:
        """Edit a draft.  ``None`` arguments leave that part unchanged.

        ``categories`` and ``red_flags`` replace the whole collection.
        """
        config = await self.get_by_id(config_id)
        if not config.is_draft:
            raise InvalidStateError(
                f"Rubric {config_id} is version {config.version} and no longer a "
                "draft; activated versions cannot be edited"
            )

        if name is not None:
            config.name = name
        if description is not None:
            config.description = description
        if categories is not None:
            await self._repo.replace_categories(
                config, [_build_category(i, c) for i, c in enumerate(categories)]
            )
        if red_flags is not None:
            await self._repo.replace_red_flags(
                config, [_build_red_flag(i, f) for i, f in enumerate(red_flags)]
            )
        self._repo.touch(config)
        await self._repo.flush()
        if commit:
            await self._repo.commit()
        return config

    async def delete(self, config_id: UUID) -> None:
        """Delete a draft.  Activated versions are kept as history."""
        config = await self.get_by_id(config_id)
        if not config.is_draft:
            raise InvalidStateError(
                f"Rubric {config_id} has been activated and cannot be deleted"
            )
        await self._repo.delete(config)
        await self._repo.commit()
        logger.info("Deleted rubric draft %s", config_id)
