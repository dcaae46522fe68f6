"""Testes do canal MAX sobre httpx.MockTransport (sem rede)."""

import json

import httpx
import pytest

from backend.errors import MessagingError
from dobrobot.channels.base import EditResult, InlineButton
from dobrobot.channels.max import MaxChannel
from dobrobot.config.schema import MaxConfig


def _channel(handler) -> MaxChannel:
    config = MaxConfig(token="tok", api_base="https://max.test")
    client = httpx.AsyncClient(base_url=config.api_base, transport=httpx.MockTransport(handler))
    return MaxChannel(config, client=client)


@pytest.mark.asyncio
async def test_send_message_returns_mid():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"message": {"body": {"mid": "mid.abc", "text": "hi"}}})

    channel = _channel(handler)
    try:
        assert await channel.send_message(42, "hi") == "mid.abc"
    finally:
        await channel.close()
    assert seen["method"] == "POST"
    assert seen["path"] == "/messages"
    assert seen["params"] == {"user_id": "42"}
    assert seen["body"] == {"text": "hi"}
    assert seen["auth"] == "tok"


@pytest.mark.asyncio
async def test_send_message_http_error():
    channel = _channel(lambda request: httpx.Response(500, text="boom"))
    try:
        with pytest.raises(MessagingError) as exc_info:
            await channel.send_message(1, "hi")
    finally:
        await channel.close()
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_send_message_without_mid():
    channel = _channel(lambda request: httpx.Response(200, json={"message": {}}))
    try:
        with pytest.raises(MessagingError):
            await channel.send_message(1, "hi")
    finally:
        await channel.close()


@pytest.mark.asyncio
async def test_send_message_network_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    channel = _channel(handler)
    try:
        with pytest.raises(MessagingError):
            await channel.send_message(1, "hi")
    finally:
        await channel.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response,expected",
    [
        (httpx.Response(200, json={"success": True}), EditResult.OK),
        (httpx.Response(404, json={"code": "not.found"}), EditResult.NOT_FOUND),
        (httpx.Response(200, json={"success": False, "message": "message deleted"}), EditResult.NOT_FOUND),
    ],
)
async def test_edit_message_results(response, expected):
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["message_id"] = request.url.params.get("message_id")
        return response

    channel = _channel(handler)
    try:
        assert await channel.edit_message("mid.1", "new text") == expected
    finally:
        await channel.close()
    assert seen == {"method": "PUT", "message_id": "mid.1"}


@pytest.mark.asyncio
async def test_edit_message_server_error_raises():
    channel = _channel(lambda request: httpx.Response(503))
    try:
        with pytest.raises(MessagingError):
            await channel.edit_message("mid.1", "x")
    finally:
        await channel.close()


@pytest.mark.asyncio
async def test_answer_callback():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["callback_id"] = request.url.params.get("callback_id")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    channel = _channel(handler)
    try:
        await channel.answer_callback("cb-1", "Загрузка статистики...")
    finally:
        await channel.close()
    assert seen == {"path": "/answers", "callback_id": "cb-1", "body": {"notification": "Загрузка статистики..."}}


@pytest.mark.asyncio
async def test_inline_keyboard_sent_as_attachment():
    bodies = []

    def handler(request):
        bodies.append((request.method, json.loads(request.content)))
        if request.method == "POST":
            return httpx.Response(200, json={"message": {"body": {"mid": "mid.kb"}}})
        return httpx.Response(200, json={"success": True})

    keyboard = [
        [InlineButton.link("Открыть мини-приложение", "https://max.ru/app")],
        [InlineButton.callback("📊 Статистика", "stats_command")],
    ]
    channel = _channel(handler)
    try:
        await channel.send_message(7, "hello", keyboard)
        await channel.edit_message("mid.kb", "updated", keyboard)
        await channel.send_message(7, "plain")
    finally:
        await channel.close()

    expected_attachments = [{
        "type": "inline_keyboard",
        "payload": {"buttons": [
            [{"type": "link", "text": "Открыть мини-приложение", "url": "https://max.ru/app"}],
            [{"type": "callback", "text": "📊 Статистика", "payload": "stats_command"}],
        ]},
    }]
    assert bodies[0] == ("POST", {"text": "hello", "attachments": expected_attachments})
    assert bodies[1] == ("PUT", {"text": "updated", "attachments": expected_attachments})
    assert bodies[2] == ("POST", {"text": "plain"})


@pytest.mark.asyncio
async def test_token_only_in_authorization_header():
    seen = []

    def handler(request):
        seen.append((str(request.url), request.headers.get("Authorization")))
        if request.url.path == "/answers":
            return httpx.Response(200, json={"success": True})
        if request.method == "PUT":
            return httpx.Response(200, json={"success": True})
        return httpx.Response(200, json={"message": {"body": {"mid": "m"}}})

    channel = _channel(handler)
    try:
        await channel.send_message(1, "x")
        await channel.edit_message("m", "y")
        await channel.answer_callback("cb")
    finally:
        await channel.close()
    assert len(seen) == 3
    for url, auth in seen:
        assert "tok" not in url
        assert auth == "tok"
