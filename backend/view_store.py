"""ViewStore: um contador agregado por (user_id, item_id).

- SqlViewStore: upsert atómico (INSERT ... ON CONFLICT DO UPDATE ... RETURNING) → sem incrementos perdidos.
- MemoryViewStore: dict em processo protegido por asyncio.Lock (testes, execução local).
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from backend.database import dialect_insert, make_session_factory
from backend.errors import StorageError
from backend.models_db import ViewRecord
from backend.timezone import as_utc


class ViewStore(ABC):
    """Colaborador de armazenamento das visualizações."""

    @abstractmethod
    async def increment(self, user_id: int, item_id: str, now: datetime) -> int:
        """Cria (count=1) ou incrementa em 1 o registo do par; devolve o count após o incremento."""

    @abstractmethod
    async def total_for_user(self, user_id: int) -> int:
        """Soma de view_count do user (0 se não há registos)."""

    @abstractmethod
    async def item_ids_for_user(self, user_id: int) -> set[str]:
        pass

    @abstractmethod
    async def count_for(self, user_id: int, item_id: str) -> int:
        pass

    @abstractmethod
    async def top_users(self, limit: int) -> list[tuple[int, int]]:
        """[(user_id, total)] por total decrescente."""


class MemoryViewStore(ViewStore):
    def __init__(self):
        # (user_id, item_id) -> [view_count, last_viewed_at]
        self._views: dict[tuple[int, str], list] = {}
        self._lock = asyncio.Lock()

    async def increment(self, user_id: int, item_id: str, now: datetime) -> int:
        key = (user_id, item_id)
        async with self._lock:
            entry = self._views.get(key)
            if entry is None:
                self._views[key] = [1, as_utc(now)]
                return 1
            entry[0] += 1
            entry[1] = as_utc(now)
            return entry[0]

    async def total_for_user(self, user_id: int) -> int:
        return sum(entry[0] for (uid, _), entry in self._views.items() if uid == user_id)

    async def item_ids_for_user(self, user_id: int) -> set[str]:
        return {item_id for (uid, item_id) in self._views if uid == user_id}

    async def count_for(self, user_id: int, item_id: str) -> int:
        entry = self._views.get((user_id, item_id))
        return entry[0] if entry else 0

    async def top_users(self, limit: int) -> list[tuple[int, int]]:
        totals: dict[int, int] = {}
        for (uid, _), entry in self._views.items():
            totals[uid] = totals.get(uid, 0) + entry[0]
        ranked = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
        return ranked[:limit]

    def last_viewed_at(self, user_id: int, item_id: str) -> datetime | None:
        entry = self._views.get((user_id, item_id))
        return entry[1] if entry else None


class SqlViewStore(ViewStore):
    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._sessions = make_session_factory(engine)
        self._insert = dialect_insert(engine)

    async def increment(self, user_id: int, item_id: str, now: datetime) -> int:
        stmt = self._insert(ViewRecord).values(
            user_id=user_id,
            item_id=item_id,
            view_count=1,
            last_viewed_at=as_utc(now),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "item_id"],
            set_={
                "view_count": ViewRecord.view_count + 1,
                "last_viewed_at": stmt.excluded.last_viewed_at,
            },
        ).returning(ViewRecord.view_count)
        try:
            async with self._sessions() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise StorageError(f"increment view ({user_id}, {item_id}) failed: {e}") from e

    async def total_for_user(self, user_id: int) -> int:
        stmt = select(func.coalesce(func.sum(ViewRecord.view_count), 0)).where(ViewRecord.user_id == user_id)
        try:
            async with self._sessions() as session:
                return int((await session.execute(stmt)).scalar_one())
        except SQLAlchemyError as e:
            raise StorageError(f"total views for {user_id} failed: {e}") from e

    async def item_ids_for_user(self, user_id: int) -> set[str]:
        stmt = select(ViewRecord.item_id).where(ViewRecord.user_id == user_id)
        try:
            async with self._sessions() as session:
                return set((await session.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"viewed items for {user_id} failed: {e}") from e

    async def count_for(self, user_id: int, item_id: str) -> int:
        stmt = select(ViewRecord.view_count).where(
            ViewRecord.user_id == user_id,
            ViewRecord.item_id == item_id,
        )
        try:
            async with self._sessions() as session:
                count = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"view count ({user_id}, {item_id}) failed: {e}") from e
        return int(count or 0)

    async def top_users(self, limit: int) -> list[tuple[int, int]]:
        total = func.sum(ViewRecord.view_count).label("total")
        stmt = (
            select(ViewRecord.user_id, total)
            .group_by(ViewRecord.user_id)
            .order_by(desc("total"), ViewRecord.user_id)
            .limit(limit)
        )
        try:
            async with self._sessions() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as e:
            raise StorageError(f"top users by views failed: {e}") from e
        return [(int(uid), int(t)) for uid, t in rows]
