"""Superfície exposta ao HTTP/bot: registar visualizações, ler agregados, notificar, reiniciar estado.

Notificação é serializada por utilizador (asyncio.Lock por user_id) e pode correr em background
(fire-and-forget): a falha só é registada em log, nunca chega ao pedido que a disparou.
"""

import asyncio
import weakref
from datetime import datetime, timezone
from typing import Callable

from loguru import logger

from backend.engagement_policy import EngagementPolicy
from backend.locale import LangCode
from backend.notification_dispatcher import DispatchOutcome, NotificationDispatcher
from backend.sanitize import sanitize_string, validate_user_id
from backend.user_store import EngagementStateStore
from backend.view_tracker import ViewerRank, ViewTracker


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EngagementService:
    def __init__(
        self,
        tracker: ViewTracker,
        states: EngagementStateStore,
        dispatcher: NotificationDispatcher,
        policy: EngagementPolicy,
        clock: Callable[[], datetime] = _utcnow,
        lang: LangCode = "ru",
    ):
        self.tracker = tracker
        self.states = states
        self.dispatcher = dispatcher
        self.policy = policy
        self.clock = clock
        self.lang = lang
        self._user_locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()
        self._background: set[asyncio.Task] = set()

    # --- visualizações (caminho principal do pedido: erros propagam) ---

    async def record_view(self, user_id: int, item_id: str) -> int:
        return await self.tracker.record_view(user_id, item_id)

    async def get_viewed_item_ids(self, user_id: int) -> set[str]:
        return await self.tracker.get_viewed_item_ids(user_id)

    async def get_user_total_views(self, user_id: int) -> int:
        return await self.tracker.get_user_total_views(user_id)

    async def get_item_view_count(self, user_id: int, item_id: str) -> int:
        return await self.tracker.get_item_view_count(user_id, item_id)

    async def top_viewers(self, limit: int = 5) -> list[ViewerRank]:
        return await self.tracker.top_viewers(limit, lang=self.lang)

    # --- utilizadores / estado ---

    async def register_user(self, user_id: int, name: str) -> bool:
        """Cria o utilizador uma só vez (bot_started). True se é novo."""
        user_id = validate_user_id(user_id)
        created = await self.states.register_user(user_id, sanitize_string(name), self.clock())
        if created:
            logger.info(f"bot user registered user={user_id}")
        return created

    async def reset_engagement_state(self, user_id: int) -> None:
        user_id = validate_user_id(user_id)
        async with self._lock_for(user_id):
            await self.dispatcher.reset(user_id)

    # --- notificação ---

    async def notify_engagement(self, user_id: int) -> DispatchOutcome:
        """Lê total + estado, decide e executa. Serializado por utilizador."""
        user_id = validate_user_id(user_id)
        async with self._lock_for(user_id):
            total = await self.tracker.get_user_total_views(user_id)
            state = await self.states.get(user_id)
            decision = self.policy.decide(
                total,
                state.last_notified_total,
                state.last_notification_at,
                self.clock(),
                state.last_notification_message_ref,
            )
            return await self.dispatcher.dispatch(user_id, decision)

    def notify_in_background(self, user_id: int) -> asyncio.Task:
        """Agenda notify_engagement sem bloquear o caller; erros só vão para o log."""
        task = asyncio.create_task(self._notify_logged(user_id), name=f"engagement-notify-{user_id}")
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def drain(self) -> None:
        """Espera pelas notificações em background (shutdown, testes)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _notify_logged(self, user_id: int) -> DispatchOutcome | None:
        try:
            with logger.contextualize(user_id=user_id):
                outcome = await self.notify_engagement(user_id)
        except Exception as e:
            logger.opt(exception=e).error(f"engagement notification failed user={user_id}: {e}")
            return None
        logger.info(f"engagement notification user={user_id} action={outcome.action} total={outcome.total}")
        return outcome

    def _lock_for(self, user_id: int) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._user_locks[user_id] = lock
        return lock
