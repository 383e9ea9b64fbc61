import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from app.core.cache import CacheService
from app.core.exceptions import (
    ActivationConflictError,
    InvalidStateError,
    RubricNotFoundError,
    WeightValidationError,
)
from app.models.rubric import RubricConfig
from app.repositories.rubric_repository import RubricRepository
from app.services.weight_validator import validate_category_weights

logger = logging.getLogger(__name__)


class VersionActivator:
    """Promotes a draft to the single active rubric version.

    The promotion hinges on one conditional write: the active pointer is
    swapped only if its revision is still the one read at the start.  Of
    two concurrent activations against the same baseline exactly one
    matches; the other sees zero rows updated, rolls back and raises
    :class:`ActivationConflictError`.  The unique indexes on ``version``
    and on the active flag reject anything that slips past.
    """

    def __init__(
        self,
        rubric_repo: RubricRepository,
        cache: Optional[CacheService] = None,
    ) -> None:
        self._repo = rubric_repo
        self._cache = cache or CacheService()

    async def activate(self, draft_id: UUID, commit: bool = True) -> RubricConfig:
        """Activate *draft_id* and return it with its new version number.

        With ``commit=False`` the caller owns the transaction and must call
        :meth:`invalidate_cache` after committing.  A lost race always
        rolls the session back before raising.
        """
        draft = await self._repo.get_by_id(draft_id)
        if draft is None:
            raise RubricNotFoundError(f"Rubric configuration {draft_id} not found")
        if not draft.is_draft:
            raise InvalidStateError(
                f"Rubric {draft_id} is already version {draft.version}; only drafts "
                "can be activated"
            )

        validation = validate_category_weights(draft.categories)
        if not validation.is_valid:
            raise WeightValidationError(
                f"Cannot activate rubric: enabled category weights total "
                f"{validation.total:g}%, {validation.message}",
                validation=validation,
            )

        expected_revision = await self._repo.get_pointer_revision()
        next_version = await self._repo.get_max_version() + 1

        try:
            swapped = await self._repo.swap_active_pointer(expected_revision, draft.id)
            if not swapped:
                await self._repo.rollback()
                logger.warning(
                    "Activation of rubric %s lost the race (pointer revision %s moved)",
                    draft_id,
                    expected_revision,
                )
                raise ActivationConflictError()

            await self._repo.deactivate_others(draft.id)
            draft.is_draft = False
            draft.is_active = True
            draft.version = next_version
            await self._repo.flush()
        except IntegrityError:
            await self._repo.rollback()
            logger.warning(
                "Activation of rubric %s hit a uniqueness violation", draft_id, exc_info=True
            )
            raise ActivationConflictError()

        if commit:
            await self._repo.commit()
            await self._cache.invalidate_active_rubric()

        logger.info("Activated rubric %s as version %d", draft_id, next_version)
        return draft

    async def invalidate_cache(self) -> None:
        await self._cache.invalidate_active_rubric()
