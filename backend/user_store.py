"""Estado de engajamento por utilizador (última notificação) + registo de utilizadores do bot.

last_notified_total nunca decresce ao gravar (fica o maior); só o reset (diálogo reiniciado) o volta a 0.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from backend.database import dialect_insert, make_session_factory, scalar_greatest
from backend.errors import StorageError
from backend.models_db import BotUser
from backend.timezone import as_utc


@dataclass(frozen=True)
class EngagementState:
    user_id: int
    last_notified_total: int = 0
    last_notification_at: datetime | None = None
    last_notification_message_ref: str | None = None
    last_notification_text: str | None = None

    @property
    def has_message_ref(self) -> bool:
        return bool(self.last_notification_message_ref)


class EngagementStateStore(ABC):
    """Colaborador de armazenamento do estado por utilizador."""

    @abstractmethod
    async def get(self, user_id: int) -> EngagementState:
        """Estado atual; estado vazio (total 0, sem referência) se nunca notificado."""

    @abstractmethod
    async def save_notification(
        self,
        user_id: int,
        total: int,
        notified_at: datetime,
        message_ref: str,
        text: str | None = None,
    ) -> None:
        pass

    @abstractmethod
    async def clear(self, user_id: int) -> None:
        """Apaga o estado da última notificação (diálogo reiniciado: referências antigas já não existem)."""

    @abstractmethod
    async def register_user(self, user_id: int, name: str, added_at: datetime) -> bool:
        """Cria o utilizador só uma vez (nome/data nunca são alterados depois). True se foi criado agora."""

    @abstractmethod
    async def get_names(self, user_ids: list[int]) -> dict[int, str]:
        pass


class MemoryEngagementStateStore(EngagementStateStore):
    def __init__(self):
        self._states: dict[int, EngagementState] = {}
        self._users: dict[int, tuple[str, datetime]] = {}
        self._lock = asyncio.Lock()

    async def get(self, user_id: int) -> EngagementState:
        return self._states.get(user_id) or EngagementState(user_id=user_id)

    async def save_notification(self, user_id, total, notified_at, message_ref, text=None) -> None:
        async with self._lock:
            current = self._states.get(user_id) or EngagementState(user_id=user_id)
            self._states[user_id] = replace(
                current,
                last_notified_total=max(current.last_notified_total, total),
                last_notification_at=as_utc(notified_at),
                last_notification_message_ref=message_ref,
                last_notification_text=text,
            )

    async def clear(self, user_id: int) -> None:
        async with self._lock:
            self._states.pop(user_id, None)

    async def register_user(self, user_id: int, name: str, added_at: datetime) -> bool:
        async with self._lock:
            if user_id in self._users:
                return False
            self._users[user_id] = (name, as_utc(added_at))
            return True

    async def get_names(self, user_ids: list[int]) -> dict[int, str]:
        return {uid: self._users[uid][0] for uid in user_ids if uid in self._users and self._users[uid][0]}


class SqlEngagementStateStore(EngagementStateStore):
    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._sessions = make_session_factory(engine)
        self._insert = dialect_insert(engine)

    async def get(self, user_id: int) -> EngagementState:
        try:
            async with self._sessions() as session:
                row = await session.get(BotUser, user_id)
        except SQLAlchemyError as e:
            raise StorageError(f"read engagement state for {user_id} failed: {e}") from e
        if row is None:
            return EngagementState(user_id=user_id)
        return EngagementState(
            user_id=user_id,
            last_notified_total=row.last_notified_total or 0,
            last_notification_at=as_utc(row.last_notification_at) if row.last_notification_at else None,
            last_notification_message_ref=row.last_notification_message_ref,
            last_notification_text=row.last_notification_text,
        )

    async def save_notification(self, user_id, total, notified_at, message_ref, text=None) -> None:
        stmt = self._insert(BotUser).values(
            user_id=user_id,
            last_notified_total=total,
            last_notification_at=as_utc(notified_at),
            last_notification_message_ref=message_ref,
            last_notification_text=text,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={
                "last_notified_total": scalar_greatest(
                    self._engine, BotUser.last_notified_total, stmt.excluded.last_notified_total
                ),
                "last_notification_at": stmt.excluded.last_notification_at,
                "last_notification_message_ref": stmt.excluded.last_notification_message_ref,
                "last_notification_text": stmt.excluded.last_notification_text,
            },
        )
        try:
            async with self._sessions() as session:
                async with session.begin():
                    await session.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"save engagement state for {user_id} failed: {e}") from e

    async def clear(self, user_id: int) -> None:
        stmt = (
            update(BotUser)
            .where(BotUser.user_id == user_id)
            .values(
                last_notified_total=0,
                last_notification_at=None,
                last_notification_message_ref=None,
                last_notification_text=None,
            )
        )
        try:
            async with self._sessions() as session:
                async with session.begin():
                    await session.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"clear engagement state for {user_id} failed: {e}") from e

    async def register_user(self, user_id: int, name: str, added_at: datetime) -> bool:
        stmt = self._insert(BotUser).values(
            user_id=user_id,
            name=name,
            added_at=as_utc(added_at),
            last_notified_total=0,
        ).on_conflict_do_nothing(index_elements=["user_id"])
        try:
            async with self._sessions() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    return bool(result.rowcount)
        except SQLAlchemyError as e:
            raise StorageError(f"register user {user_id} failed: {e}") from e

    async def get_names(self, user_ids: list[int]) -> dict[int, str]:
        if not user_ids:
            return {}
        stmt = select(BotUser.user_id, BotUser.name).where(BotUser.user_id.in_(user_ids))
        try:
            async with self._sessions() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as e:
            raise StorageError(f"read user names failed: {e}") from e
        return {int(uid): name for uid, name in rows if name}
