"""Política de engajamento: dado o histórico de visualizações do user, decide Skip / SendNew / EditExisting.

Funções puras (sem I/O). A única fonte não determinística é a frase motivadora (rng injetável).

Duas políticas:
- rolling (default): notifica sempre; delta desde a última notificação + nível. Edita a mensagem do dia
  se ainda existir referência, senão envia nova.
- milestones: só notifica quando o total é exatamente 3, 5, 10 ou 20 (mensagens fixas); Skip no resto.
"""

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Union
from zoneinfo import ZoneInfo

from backend.engagement_levels import LEVEL_THRESHOLDS, level_for
from backend.locale import STATS_BUTTON, LangCode, MILESTONE_MESSAGES, progress_message
from backend.motivational_messages import pick_motivational_line
from backend.timezone import is_same_local_day, reference_zone
from dobrobot.channels.base import InlineButton, Keyboard

MILESTONE_THRESHOLDS: tuple[int, ...] = (3, 5, 10, 20)

POLICY_ROLLING = "rolling"
POLICY_MILESTONES = "milestones"

# Payload do botão "📊 Статистика" (tratado em bot_handlers.handle_stats_callback)
STATS_CALLBACK_PAYLOAD = "stats_command"


@dataclass(frozen=True)
class EngagementMessage:
    text: str
    delta: int
    total: int
    level_name: str | None = None
    views_to_next: int | None = None
    motivational_line: str | None = None
    buttons: Keyboard | None = None


@dataclass(frozen=True)
class Skip:
    total: int


@dataclass(frozen=True)
class SendNew:
    message: EngagementMessage

    @property
    def total(self) -> int:
        return self.message.total


@dataclass(frozen=True)
class EditExisting:
    message: EngagementMessage
    message_ref: str

    @property
    def total(self) -> int:
        return self.message.total


Decision = Union[Skip, SendNew, EditExisting]


def compute_delta(current_total: int, last_notified_total: int) -> int:
    """Visualizações desde a última notificação; deltas negativos (anomalias) contam como 0."""
    return max(0, current_total - (last_notified_total or 0))


def progress_buttons(lang: LangCode = "ru") -> Keyboard:
    return [[InlineButton.callback(STATS_BUTTON.get(lang) or STATS_BUTTON["ru"], STATS_CALLBACK_PAYLOAD)]]


def build_progress_message(
    current_total: int,
    delta: int,
    lang: LangCode = "ru",
    rng: random.Random | None = None,
    thresholds: tuple[int, ...] = LEVEL_THRESHOLDS,
) -> EngagementMessage:
    level = level_for(current_total, lang, thresholds)
    views_to_next = level.views_to_next(current_total)
    line = pick_motivational_line(lang, rng)
    text = progress_message(lang, delta, current_total, level.name, views_to_next, line)
    return EngagementMessage(
        text=text,
        delta=delta,
        total=current_total,
        level_name=level.name,
        views_to_next=views_to_next,
        motivational_line=line,
        buttons=progress_buttons(lang),
    )


class RollingPolicy:
    """Notifica sempre: nunca devolve Skip."""

    name = POLICY_ROLLING

    def __init__(
        self,
        tz: ZoneInfo | str | None = None,
        lang: LangCode = "ru",
        rng: random.Random | None = None,
        thresholds: tuple[int, ...] = LEVEL_THRESHOLDS,
    ):
        self.tz = tz if isinstance(tz, ZoneInfo) else reference_zone(tz)
        self.lang = lang
        self.rng = rng
        self.thresholds = thresholds

    def decide(
        self,
        current_total: int,
        last_notified_total: int,
        last_notification_at: datetime | None,
        now: datetime,
        message_ref: str | None = None,
    ) -> Decision:
        delta = compute_delta(current_total, last_notified_total)
        message = build_progress_message(current_total, delta, self.lang, self.rng, self.thresholds)
        if (
            message_ref
            and last_notification_at is not None
            and is_same_local_day(last_notification_at, now, self.tz)
        ):
            return EditExisting(message=message, message_ref=message_ref)
        return SendNew(message=message)


class MilestonePolicy:
    """Variante antiga: só nos totais 3/5/10/20; mensagem sempre nova."""

    name = POLICY_MILESTONES

    def __init__(self, lang: LangCode = "ru", milestones: tuple[int, ...] = MILESTONE_THRESHOLDS):
        self.lang = lang
        self.milestones = milestones

    def decide(
        self,
        current_total: int,
        last_notified_total: int,
        last_notification_at: datetime | None,
        now: datetime,
        message_ref: str | None = None,
    ) -> Decision:
        if current_total not in self.milestones:
            return Skip(total=current_total)
        # Já notificado neste marco (ex.: app fechada duas vezes sem novas visualizações)
        if last_notified_total >= current_total:
            return Skip(total=current_total)
        texts = MILESTONE_MESSAGES.get(self.lang) or MILESTONE_MESSAGES["ru"]
        text = texts.get(current_total) or texts[self.milestones[-1]]
        return SendNew(message=EngagementMessage(
            text=text,
            delta=compute_delta(current_total, last_notified_total),
            total=current_total,
        ))


EngagementPolicy = Union[RollingPolicy, MilestonePolicy]


def make_policy(
    name: str = POLICY_ROLLING,
    tz: str | None = None,
    lang: LangCode = "ru",
    rng: random.Random | None = None,
) -> EngagementPolicy:
    """Política a partir da config (engagement.policy)."""
    key = (name or POLICY_ROLLING).strip().lower()
    if key == POLICY_ROLLING:
        return RollingPolicy(tz=tz, lang=lang, rng=rng)
    if key == POLICY_MILESTONES:
        return MilestonePolicy(lang=lang)
    raise ValueError(f"Unknown engagement policy: {name!r}")


def decide(
    current_total: int,
    last_notified_total: int,
    last_notification_at: datetime | None,
    now: datetime,
    message_ref: str | None = None,
    tz: str | None = None,
    lang: LangCode = "ru",
    rng: random.Random | None = None,
) -> Decision:
    """Atalho para a política rolling (default)."""
    return RollingPolicy(tz=tz, lang=lang, rng=rng).decide(
        current_total, last_notified_total, last_notification_at, now, message_ref
    )
