"""Registo de visualizações de cartões e leitura dos agregados por utilizador."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from loguru import logger

from backend.locale import LangCode, placeholder_user_name
from backend.sanitize import clamp_limit, validate_item_id, validate_user_id
from backend.user_store import EngagementStateStore
from backend.view_store import ViewStore


@dataclass(frozen=True)
class ViewerRank:
    user_id: int
    name: str
    total_views: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ViewTracker:
    """Único ponto de escrita no ViewStore. Erros de armazenamento (StorageError) propagam."""

    def __init__(
        self,
        store: ViewStore,
        users: EngagementStateStore | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.users = users
        self.clock = clock

    async def record_view(self, user_id: int, item_id: str) -> int:
        """Incrementa (ou cria com 1) o contador do par e devolve o count após o incremento."""
        user_id = validate_user_id(user_id)
        item_id = validate_item_id(item_id)
        count = await self.store.increment(user_id, item_id, self.clock())
        logger.debug(f"view recorded user={user_id} item={item_id} count={count}")
        return count

    async def get_user_total_views(self, user_id: int) -> int:
        return await self.store.total_for_user(validate_user_id(user_id))

    async def get_viewed_item_ids(self, user_id: int) -> set[str]:
        return await self.store.item_ids_for_user(validate_user_id(user_id))

    async def get_item_view_count(self, user_id: int, item_id: str) -> int:
        return await self.store.count_for(validate_user_id(user_id), validate_item_id(item_id))

    async def top_viewers(self, limit: int = 5, lang: LangCode = "ru") -> list[ViewerRank]:
        """Ranking por total de visualizações; nome registado no bot ou nome genérico."""
        ranked = await self.store.top_users(clamp_limit(limit, default=5, maximum=100))
        if not ranked:
            return []
        names: dict[int, str] = {}
        if self.users is not None:
            names = await self.users.get_names([uid for uid, _ in ranked])
        return [
            ViewerRank(
                user_id=uid,
                name=names.get(uid) or placeholder_user_name(lang, uid),
                total_views=total,
            )
            for uid, total in ranked
        ]
