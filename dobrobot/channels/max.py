"""
MAX messenger channel over the Bot HTTP API (httpx).

- POST /messages?user_id=..     → send, returns message.body.mid
- PUT  /messages?message_id=..  → edit; 404 means the message/dialog is gone
- POST /answers?callback_id=..  → acknowledge inline button

The bot token goes only in the Authorization header (never in the query string).
"""

from typing import Any

import httpx
from loguru import logger

from backend.errors import MessagingError
from dobrobot.channels.base import EditResult, InlineButton, Keyboard, MessagingChannel
from dobrobot.config.schema import MaxConfig


def _button_json(button: InlineButton) -> dict[str, Any]:
    if button.kind == "link":
        return {"type": "link", "text": button.text, "url": button.url}
    return {"type": "callback", "text": button.text, "payload": button.payload}


def message_body(text: str, buttons: Keyboard | None = None) -> dict[str, Any]:
    """Corpo NewMessageBody: texto + inline_keyboard opcional."""
    body: dict[str, Any] = {"text": text}
    if buttons:
        body["attachments"] = [{
            "type": "inline_keyboard",
            "payload": {"buttons": [[_button_json(b) for b in row] for row in buttons if row]},
        }]
    return body


class MaxChannel(MessagingChannel):
    name = "max"

    def __init__(self, config: MaxConfig, client: httpx.AsyncClient | None = None):
        self.config = config
        self._client = client or httpx.AsyncClient(
            base_url=config.api_base.rstrip("/"),
            timeout=config.timeout,
        )

    def _headers(self) -> dict[str, str]:
        return {"Authorization": self.config.token}

    async def send_message(self, user_id: int, text: str, buttons: Keyboard | None = None) -> str:
        try:
            r = await self._client.post(
                "/messages",
                params={"user_id": user_id},
                headers=self._headers(),
                json=message_body(text, buttons),
            )
        except httpx.HTTPError as e:
            raise MessagingError(f"MAX send to {user_id} failed: {e}") from e
        if r.status_code >= 400:
            raise MessagingError(f"MAX send to {user_id} failed: HTTP {r.status_code} {r.text[:200]}", r.status_code)
        try:
            data = r.json()
            mid = (data.get("message") or {}).get("body", {}).get("mid")
        except (ValueError, AttributeError) as e:
            raise MessagingError(f"MAX send to {user_id}: unexpected response {r.text[:200]!r}") from e
        if not mid:
            raise MessagingError(f"MAX send to {user_id}: response without message id")
        logger.info(f"MAX send: user={user_id} mid={mid} len={len(text)}")
        return str(mid)

    async def edit_message(self, message_ref: str, text: str, buttons: Keyboard | None = None) -> EditResult:
        try:
            r = await self._client.put(
                "/messages",
                params={"message_id": message_ref},
                headers=self._headers(),
                json=message_body(text, buttons),
            )
        except httpx.HTTPError as e:
            raise MessagingError(f"MAX edit {message_ref} failed: {e}") from e
        if r.status_code == 404:
            return EditResult.NOT_FOUND
        if r.status_code >= 400:
            raise MessagingError(f"MAX edit {message_ref} failed: HTTP {r.status_code} {r.text[:200]}", r.status_code)
        try:
            data = r.json()
        except ValueError:
            data = {}
        # A API responde 200 com success=false quando a mensagem já não pode ser editada
        if isinstance(data, dict) and data.get("success") is False:
            logger.debug(f"MAX edit {message_ref} rejected: {data.get('message')}")
            return EditResult.NOT_FOUND
        return EditResult.OK

    async def answer_callback(self, callback_id: str, notification: str | None = None) -> None:
        body: dict[str, Any] = {}
        if notification:
            body["notification"] = notification
        try:
            r = await self._client.post(
                "/answers",
                params={"callback_id": callback_id},
                headers=self._headers(),
                json=body,
            )
        except httpx.HTTPError as e:
            raise MessagingError(f"MAX answer callback {callback_id} failed: {e}") from e
        if r.status_code >= 400:
            raise MessagingError(f"MAX answer callback failed: HTTP {r.status_code}", r.status_code)

    async def close(self) -> None:
        await self._client.aclose()
