"""Encaminha updates do webhook do bot MAX para os handlers (bot_started, /stats, callback)."""

from typing import Any

from loguru import logger

from backend.bot_handlers import handle_bot_started, handle_stats_callback, handle_stats_command
from backend.engagement_service import EngagementService
from backend.sanitize import parse_user_id
from dobrobot.channels.base import MessagingChannel

STATS_COMMANDS = ("/stats", "/статистика")


def _as_dict(obj: Any) -> dict[str, Any]:
    return obj if isinstance(obj, dict) else {}


def _user_of(obj: Any) -> tuple[int | None, str]:
    if not isinstance(obj, dict):
        return None, ""
    return parse_user_id(obj.get("user_id")), str(obj.get("name") or obj.get("first_name") or "")


async def handle_update(
    service: EngagementService,
    channel: MessagingChannel,
    update: dict[str, Any],
    web_app_url: str | None = None,
) -> str:
    """Devolve o nome do handler usado ("ignored" se o update não interessa)."""
    kind = update.get("update_type")

    if kind == "bot_started":
        user_id, name = _user_of(update.get("user"))
        if user_id is None:
            logger.warning("bot_started without user")
            return "ignored"
        await handle_bot_started(service, channel, user_id, name, web_app_url)
        return "bot_started"

    if kind == "message_created":
        message = _as_dict(update.get("message"))
        text = str(_as_dict(message.get("body")).get("text") or "").strip()
        command = text.split(maxsplit=1)[0].lower() if text else ""
        if command in STATS_COMMANDS:
            user_id, _ = _user_of(message.get("sender"))
            await handle_stats_command(service, channel, user_id)
            return "stats"
        return "ignored"

    if kind == "message_callback":
        callback = _as_dict(update.get("callback"))
        user_id, _ = _user_of(callback.get("user"))
        await handle_stats_callback(
            service,
            channel,
            user_id,
            str(callback["callback_id"]) if callback.get("callback_id") else None,
            callback.get("payload") or callback.get("data"),
        )
        return "callback"

    logger.debug(f"update ignored: {kind}")
    return "ignored"
