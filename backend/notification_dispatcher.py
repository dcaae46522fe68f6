"""Executa a decisão da política contra o canal de mensagens e grava o estado da notificação.

Máquina de estados por utilizador:
    [sem estado] --1ª notificação--> [notificado hoje: ref, total, data]
    [notificado hoje] --mesmo dia--> edita a mensagem (ref mantém-se)
    [notificado hoje] --novo dia--> envia nova (nova ref, nova data)
    [qualquer] --diálogo reiniciado--> [sem estado]

Edição "not found" (EditResult.NOT_FOUND) ou MessagingError na edição → envia nova na mesma chamada.
Só se o envio também falhar é que sobe NotificationError.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Literal

from loguru import logger

from backend.engagement_policy import Decision, EditExisting, EngagementMessage, SendNew, Skip
from backend.errors import MessagingError, NotificationError
from backend.user_store import EngagementStateStore
from dobrobot.channels.base import EditResult, MessagingChannel

DispatchAction = Literal["skipped", "sent", "edited", "resent"]


@dataclass(frozen=True)
class DispatchOutcome:
    action: DispatchAction
    message_ref: str | None = None
    total: int = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationDispatcher:
    def __init__(
        self,
        channel: MessagingChannel,
        states: EngagementStateStore,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.channel = channel
        self.states = states
        self.clock = clock

    async def dispatch(self, user_id: int, decision: Decision) -> DispatchOutcome:
        if isinstance(decision, Skip):
            logger.debug(f"engagement skip user={user_id} total={decision.total}")
            return DispatchOutcome(action="skipped", total=decision.total)

        if isinstance(decision, EditExisting):
            edited = await self._try_edit(user_id, decision)
            if edited:
                await self._persist(user_id, decision.message, decision.message_ref)
                return DispatchOutcome(action="edited", message_ref=decision.message_ref, total=decision.total)
            ref = await self._send(user_id, decision.message)
            return DispatchOutcome(action="resent", message_ref=ref, total=decision.total)

        if isinstance(decision, SendNew):
            ref = await self._send(user_id, decision.message)
            return DispatchOutcome(action="sent", message_ref=ref, total=decision.total)

        raise TypeError(f"Unknown decision: {decision!r}")

    async def reset(self, user_id: int) -> None:
        """Diálogo reiniciado: referências antigas deixam de existir."""
        await self.states.clear(user_id)
        logger.info(f"engagement state cleared user={user_id}")

    async def _try_edit(self, user_id: int, decision: EditExisting) -> bool:
        try:
            result = await self.channel.edit_message(
                decision.message_ref, decision.message.text, decision.message.buttons
            )
        except MessagingError as e:
            logger.warning(f"edit failed user={user_id} ref={decision.message_ref}: {e}; sending new message")
            return False
        if result == EditResult.NOT_FOUND:
            logger.info(f"message {decision.message_ref} not found for user={user_id}; sending new message")
            return False
        return True

    async def _send(self, user_id: int, message: EngagementMessage) -> str:
        try:
            ref = await self.channel.send_message(user_id, message.text, message.buttons)
        except MessagingError as e:
            raise NotificationError(user_id, f"send failed: {e}") from e
        await self._persist(user_id, message, ref)
        logger.info(f"engagement notification sent user={user_id} total={message.total} delta={message.delta}")
        return ref

    async def _persist(self, user_id: int, message: EngagementMessage, ref: str) -> None:
        await self.states.save_notification(
            user_id,
            total=message.total,
            notified_at=self.clock(),
            message_ref=ref,
            text=message.text,
        )
