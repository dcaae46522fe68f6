"""Testes do dispatcher: envio, edição, fallback quando a mensagem já não existe, falha total."""

from datetime import timedelta

import pytest

from backend.engagement_policy import EditExisting, EngagementMessage, RollingPolicy, SendNew, Skip
from backend.errors import NotificationError
from backend.notification_dispatcher import NotificationDispatcher
from backend.user_store import MemoryEngagementStateStore

from conftest import NOON_MSK, FakeChannel, FakeClock


def _msg(total=5, delta=2, text="progress"):
    return EngagementMessage(text=text, delta=delta, total=total)


def _dispatcher():
    channel = FakeChannel()
    states = MemoryEngagementStateStore()
    return NotificationDispatcher(channel, states, clock=FakeClock()), channel, states


@pytest.mark.asyncio
async def test_skip_does_nothing():
    dispatcher, channel, states = _dispatcher()
    outcome = await dispatcher.dispatch(1, Skip(total=4))
    assert outcome.action == "skipped"
    assert outcome.total == 4
    assert channel.sent == []
    assert (await states.get(1)).last_notification_at is None


@pytest.mark.asyncio
async def test_send_new_persists_state():
    dispatcher, channel, states = _dispatcher()
    outcome = await dispatcher.dispatch(1, SendNew(_msg(total=3, delta=3)))
    assert outcome.action == "sent"
    assert outcome.message_ref == "mid.1"
    assert channel.sent == [(1, "progress", "mid.1")]
    state = await states.get(1)
    assert state.last_notified_total == 3
    assert state.last_notification_message_ref == "mid.1"
    assert state.last_notification_at == NOON_MSK


@pytest.mark.asyncio
async def test_edit_existing_keeps_ref():
    dispatcher, channel, states = _dispatcher()
    await dispatcher.dispatch(1, SendNew(_msg(total=3)))
    outcome = await dispatcher.dispatch(1, EditExisting(_msg(total=5, text="updated"), "mid.1"))
    assert outcome.action == "edited"
    assert outcome.message_ref == "mid.1"
    assert channel.messages["mid.1"] == "updated"
    assert len(channel.sent) == 1
    state = await states.get(1)
    assert state.last_notified_total == 5
    assert state.last_notification_message_ref == "mid.1"


@pytest.mark.asyncio
async def test_edit_not_found_falls_back_to_send():
    dispatcher, channel, states = _dispatcher()
    outcome = await dispatcher.dispatch(1, EditExisting(_msg(total=6), "mid.gone"))
    assert outcome.action == "resent"
    assert outcome.message_ref == "mid.1"
    assert channel.edits == []
    assert len(channel.sent) == 1
    assert (await states.get(1)).last_notification_message_ref == "mid.1"


@pytest.mark.asyncio
async def test_edit_error_falls_back_to_send():
    dispatcher, channel, states = _dispatcher()
    await dispatcher.dispatch(1, SendNew(_msg(total=3)))
    channel.fail_edit = True
    outcome = await dispatcher.dispatch(1, EditExisting(_msg(total=4), "mid.1"))
    assert outcome.action == "resent"
    assert outcome.message_ref == "mid.2"
    assert (await states.get(1)).last_notification_message_ref == "mid.2"


@pytest.mark.asyncio
async def test_total_failure_raises_and_keeps_state():
    dispatcher, channel, states = _dispatcher()
    await dispatcher.dispatch(1, SendNew(_msg(total=3)))
    channel.fail_edit = True
    channel.fail_send = True
    with pytest.raises(NotificationError) as exc_info:
        await dispatcher.dispatch(1, EditExisting(_msg(total=8), "mid.1"))
    assert exc_info.value.user_id == 1
    state = await states.get(1)
    assert state.last_notified_total == 3
    assert state.last_notification_message_ref == "mid.1"


@pytest.mark.asyncio
async def test_send_failure_raises_notification_error():
    dispatcher, channel, states = _dispatcher()
    channel.fail_send = True
    with pytest.raises(NotificationError):
        await dispatcher.dispatch(1, SendNew(_msg()))
    assert (await states.get(1)).last_notification_at is None


@pytest.mark.asyncio
async def test_reset_then_decide_sends_new():
    """Depois do reset, mesmo no mesmo dia e com o mesmo total, a política pede mensagem nova."""
    dispatcher, channel, states = _dispatcher()
    policy = RollingPolicy()
    await dispatcher.dispatch(1, SendNew(_msg(total=5)))
    await dispatcher.reset(1)
    state = await states.get(1)
    d = policy.decide(5, state.last_notified_total, state.last_notification_at,
                      NOON_MSK + timedelta(minutes=5), state.last_notification_message_ref)
    assert isinstance(d, SendNew)
    assert d.message.delta == 5
