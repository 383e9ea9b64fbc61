from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """Holds the database session shared by a unit of work.

    Repositories built on the same ``AsyncSession`` take part in the same
    transaction, so a service can stage writes through several of them
    and then commit (or roll back) once.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def flush(self) -> None:
        """Flush pending changes without committing."""
        await self._db.flush()

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._db.commit()

    async def rollback(self) -> None:
        """Roll back the current transaction.

        Objects loaded in the session are expired afterwards; reload them
        before reading again.
        """
        await self._db.rollback()
