"""DB models: ViewRecord (card_views) e BotUser (bot_users, estado de engajamento)."""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ViewRecord(Base):
    """Contador agregado de visualizações por (user_id, item_id). Nunca apagado por este subsistema."""
    __tablename__ = "card_views"
    __table_args__ = (UniqueConstraint("user_id", "item_id", name="uq_card_views_user_item"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    item_id = Column(String(64), nullable=False)  # id do cartão (ObjectId em hex, uuid, ...)
    view_count = Column(Integer, nullable=False, default=1)
    last_viewed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class BotUser(Base):
    """Utilizador do bot + estado da última notificação de engajamento (um registo por user_id)."""
    __tablename__ = "bot_users"

    user_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(128), nullable=True)  # só gravado na criação (bot_started)
    added_at = Column(DateTime(timezone=True), nullable=True)
    last_notified_total = Column(Integer, nullable=False, default=0)  # snapshot para o delta; não decresce
    last_notification_at = Column(DateTime(timezone=True), nullable=True)
    last_notification_message_ref = Column(String(128), nullable=True)  # mid da mensagem no messenger
    last_notification_text = Column(Text, nullable=True)
