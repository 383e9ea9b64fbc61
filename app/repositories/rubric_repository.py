import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from app.models.base import utcnow
from app.models.rubric import (
    ActiveRubricPointer,
    RubricCategory,
    RubricConfig,
    RubricRedFlag,
)
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_POINTER_ID = 1


def _with_relations(stmt):
    return stmt.options(
        selectinload(RubricConfig.categories).selectinload(
            RubricCategory.scoring_criteria
        ),
        selectinload(RubricConfig.red_flags),
    ).execution_options(populate_existing=True)


class RubricRepository(BaseRepository):
    """Encapsulates queries against the rubric tables and the active pointer."""

    async def get_by_id(self, config_id: UUID) -> Optional[RubricConfig]:
        """Return a config with categories, criteria and red flags loaded."""
        result = await self._db.execute(
            _with_relations(select(RubricConfig).where(RubricConfig.id == config_id))
        )
        return result.scalar_one_or_none()

    async def get_active(self) -> Optional[RubricConfig]:
        """Return the config named by the active pointer, if any."""
        result = await self._db.execute(
            _with_relations(
                select(RubricConfig).join(
                    ActiveRubricPointer,
                    ActiveRubricPointer.config_id == RubricConfig.id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def list_versions(self) -> List[RubricConfig]:
        """Return every config, newest version first and drafts on top."""
        result = await self._db.execute(
            select(RubricConfig).order_by(
                RubricConfig.version.desc().nulls_first(),
                RubricConfig.created_at.desc(),
            )
        )
        return list(result.scalars().all())

    async def get_max_version(self) -> int:
        result = await self._db.execute(select(func.max(RubricConfig.version)))
        return result.scalar() or 0

    async def create(
        self,
        name: str,
        description: Optional[str],
        categories: List[RubricCategory],
        red_flags: List[RubricRedFlag],
    ) -> RubricConfig:
        config = RubricConfig(
            name=name,
            description=description,
            is_draft=True,
            is_active=False,
            categories=categories,
            red_flags=red_flags,
        )
        self._db.add(config)
        await self._db.flush()
        return config

    async def replace_categories(
        self, config: RubricConfig, categories: List[RubricCategory]
    ) -> None:
        """Swap the whole category collection of *config*.

        The old rows are deleted before the new ones are inserted so the
        ``(rubric_config_id, slug)`` unique constraint never sees both.
        """
        config.categories.clear()
        await self._db.flush()
        config.categories.extend(categories)
        await self._db.flush()

    async def replace_red_flags(
        self, config: RubricConfig, red_flags: List[RubricRedFlag]
    ) -> None:
        config.red_flags.clear()
        await self._db.flush()
        config.red_flags.extend(red_flags)
        await self._db.flush()

    async def delete(self, config: RubricConfig) -> None:
        await self._db.delete(config)
        await self._db.flush()

    def touch(self, config: RubricConfig) -> None:
        config.updated_at = utcnow()

    # ------------------------------------------------------------------
    # Active pointer
    # ------------------------------------------------------------------

    async def get_pointer_revision(self) -> Optional[int]:
        """Return the current pointer revision, or ``None`` before the first activation."""
        result = await self._db.execute(
            select(ActiveRubricPointer.revision).where(
                ActiveRubricPointer.id == _POINTER_ID
            )
        )
        return result.scalar_one_or_none()

    async def swap_active_pointer(
        self, expected_revision: Optional[int], config_id: UUID
    ) -> bool:
        """Point the active pointer at *config_id* if nobody moved it meanwhile.

        A single conditional UPDATE on ``revision``; returns ``False``
        when the revision no longer matches.  With ``expected_revision``
        ``None`` the pointer row is created instead, and a concurrent
        creator makes the INSERT fail on the primary key.  After a
        ``False`` result the session must be rolled back.
        """
        if expected_revision is None:
            self._db.add(
                ActiveRubricPointer(id=_POINTER_ID, config_id=config_id, revision=1)
            )
            try:
                await self._db.flush()
            except IntegrityError:
                logger.warning("Active rubric pointer was created concurrently")
                return False
            return True

        result = await self._db.execute(
            update(ActiveRubricPointer)
            .where(
                ActiveRubricPointer.id == _POINTER_ID,
                ActiveRubricPointer.revision == expected_revision,
            )
            .values(
                config_id=config_id,
                revision=expected_revision + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def deactivate_others(self, config_id: UUID) -> None:
        await self._db.execute(
            update(RubricConfig)
            .where(RubricConfig.id != config_id, RubricConfig.is_active.is_(True))
            .values(is_active=False, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
