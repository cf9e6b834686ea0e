"""SQLAlchemy-backed GeoSession store."""

from datetime import UTC, datetime

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from litestar_dpdlocal.contrib.sqlalchemy.models import GeoSessionModel
from litestar_dpdlocal.session import Session


class SQLAlchemySessionStore:
    """Session store backed by SQLAlchemy.

    Implements the SessionStore protocol. ``key`` separates sessions of
    different DPD accounts sharing one table.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        key: str = "default",
    ) -> None:
        self._session_factory = session_factory
        self._key = key

    async def load(self) -> Session | None:
        async with self._session_factory() as db:
            row = await db.get(GeoSessionModel, self._key)
            if row is None:
                return None
            expires_at = row.expires_at
            # SQLite drops tzinfo on the way back.
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=UTC)
            return Session(token=row.token, expires_at=expires_at)

    async def save(self, session: Session) -> None:
        async with self._session_factory() as db:
            await db.merge(
                GeoSessionModel(
                    key=self._key,
                    token=session.token,
                    expires_at=session.expires_at,
                    updated_at=datetime.now(tz=UTC),
                )
            )
            await db.commit()

    async def clear(self) -> None:
        async with self._session_factory() as db:
            await db.execute(
                delete(GeoSessionModel).where(
                    GeoSessionModel.key == self._key
                )
            )
            await db.commit()
