"""Pytest config: adiciona raiz do projeto ao path para imports backend/dobrobot + fakes partilhados."""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

root = Path(__file__).resolve().parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from backend.engagement_policy import RollingPolicy  # noqa: E402
from backend.engagement_service import EngagementService  # noqa: E402
from backend.errors import MessagingError  # noqa: E402
from backend.notification_dispatcher import NotificationDispatcher  # noqa: E402
from backend.user_store import MemoryEngagementStateStore  # noqa: E402
from backend.view_store import MemoryViewStore  # noqa: E402
from backend.view_tracker import ViewTracker  # noqa: E402
from dobrobot.channels.base import EditResult, Keyboard, MessagingChannel  # noqa: E402

# 12:00 em Moscovo
NOON_MSK = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)


class FakeChannel(MessagingChannel):
    """Canal em memória: guarda envios/edições; mensagens "apagadas" dão NOT_FOUND."""

    name = "fake"

    def __init__(self):
        self.sent: list[tuple[int, str, str]] = []
        self.edits: list[tuple[str, str]] = []
        self.callbacks: list[tuple[str, str | None]] = []
        self.messages: dict[str, str] = {}
        self.keyboards: dict[str, Keyboard | None] = {}
        self.fail_send = False
        self.fail_edit = False
        self._next = 0

    async def send_message(self, user_id: int, text: str, buttons: Keyboard | None = None) -> str:
        if self.fail_send:
            raise MessagingError("send unavailable", 503)
        self._next += 1
        ref = f"mid.{self._next}"
        self.messages[ref] = text
        self.keyboards[ref] = buttons
        self.sent.append((user_id, text, ref))
        return ref

    async def edit_message(self, message_ref: str, text: str, buttons: Keyboard | None = None) -> EditResult:
        if self.fail_edit:
            raise MessagingError("edit unavailable", 502)
        if message_ref not in self.messages:
            return EditResult.NOT_FOUND
        self.messages[message_ref] = text
        self.keyboards[message_ref] = buttons
        self.edits.append((message_ref, text))
        return EditResult.OK

    async def answer_callback(self, callback_id: str, notification: str | None = None) -> None:
        self.callbacks.append((callback_id, notification))


class FakeClock:
    """Relógio controlável (datetime aware UTC)."""

    def __init__(self, now: datetime = NOON_MSK):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_memory_service(channel=None, clock=None, policy=None, lang="ru") -> EngagementService:
    channel = channel or FakeChannel()
    clock = clock or FakeClock()
    states = MemoryEngagementStateStore()
    tracker = ViewTracker(MemoryViewStore(), users=states, clock=clock)
    dispatcher = NotificationDispatcher(channel, states, clock=clock)
    policy = policy or RollingPolicy(tz="Europe/Moscow", lang=lang)
    return EngagementService(tracker, states, dispatcher, policy, clock=clock, lang=lang)


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(channel, clock) -> EngagementService:
    return make_memory_service(channel, clock)


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    """Ficheiro SQLite por teste (sessões concorrentes precisam de conexões reais, não de :memory:)."""
    return f"sqlite+aiosqlite:///{tmp_path / 'dobro.db'}"
