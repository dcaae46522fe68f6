"""Handlers dos eventos do bot: bot_started, /stats e o botão de callback "📊 Статистика"."""

from loguru import logger

from backend.engagement_policy import STATS_CALLBACK_PAYLOAD
from backend.engagement_service import EngagementService
from backend.errors import EngagementError
from backend.locale import (
    CALLBACK_ERROR,
    DOBRO_BUTTON,
    DOBRO_URL,
    OPEN_MINI_APP_BUTTON,
    STATS_ERROR,
    STATS_LOADING,
    LangCode,
    welcome_message,
)
from backend.notification_dispatcher import DispatchOutcome
from dobrobot.channels.base import InlineButton, Keyboard, MessagingChannel


def welcome_buttons(lang: LangCode, web_app_url: str | None) -> Keyboard:
    """Teclado inline: link da mini-app (se configurado) e VK Добро, um por linha."""
    buttons: Keyboard = []
    if web_app_url:
        buttons.append([InlineButton.link(OPEN_MINI_APP_BUTTON[lang], web_app_url)])
    else:
        logger.warning("web_app_url not configured; welcome message goes without the mini app link")
    buttons.append([InlineButton.link(DOBRO_BUTTON[lang], DOBRO_URL)])
    return buttons


async def handle_bot_started(
    service: EngagementService,
    channel: MessagingChannel,
    user_id: int,
    name: str,
    web_app_url: str | None = None,
) -> str:
    """
    Regista o utilizador (só na 1ª vez), limpa o estado de engajamento (as mensagens do diálogo
    anterior já não existem) e envia a mensagem de boas-vindas. Devolve a ref da mensagem.
    """
    await service.register_user(user_id, name)
    await service.reset_engagement_state(user_id)
    text = welcome_message(service.lang, name or "")
    ref = await channel.send_message(user_id, text, welcome_buttons(service.lang, web_app_url))
    logger.info(f"bot_started handled user={user_id}")
    return ref


async def handle_stats_command(
    service: EngagementService,
    channel: MessagingChannel,
    user_id: int | None,
) -> DispatchOutcome | None:
    """/stats: envia/edita a mensagem de progresso. Em erro responde com texto de erro; nunca levanta."""
    if not user_id:
        logger.error("/stats without user_id in context")
        return None
    try:
        return await service.notify_engagement(user_id)
    except (EngagementError, ValueError) as e:
        logger.error(f"/stats failed user={user_id}: {e}")
        try:
            await channel.send_message(user_id, STATS_ERROR[service.lang])
        except EngagementError as reply_error:
            logger.error(f"/stats error reply failed user={user_id}: {reply_error}")
        return None


async def handle_stats_callback(
    service: EngagementService,
    channel: MessagingChannel,
    user_id: int | None,
    callback_id: str | None,
    payload: str | None,
) -> DispatchOutcome | None:
    """Botão "stats_command": confirma o callback e corre /stats. Outros payloads são ignorados."""
    if payload != STATS_CALLBACK_PAYLOAD:
        return None
    if callback_id:
        try:
            await channel.answer_callback(callback_id, STATS_LOADING[service.lang])
        except EngagementError as e:
            logger.error(f"answer callback failed user={user_id}: {e}")
    outcome = await handle_stats_command(service, channel, user_id)
    if outcome is None and callback_id:
        try:
            await channel.answer_callback(callback_id, CALLBACK_ERROR[service.lang])
        except EngagementError:
            logger.debug(f"answer callback (error) failed user={user_id}")
    return outcome
