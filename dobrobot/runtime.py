"""Montagem explícita das dependências (engine, stores, canal, política, serviço). Sem singletons globais."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from backend.database import init_db, make_engine
from backend.engagement_policy import make_policy
from backend.engagement_service import EngagementService
from backend.notification_dispatcher import NotificationDispatcher
from backend.user_store import SqlEngagementStateStore
from backend.view_store import SqlViewStore
from backend.view_tracker import ViewTracker
from dobrobot.channels.base import MessagingChannel
from dobrobot.channels.max import MaxChannel
from dobrobot.config.schema import Config


@dataclass
class Runtime:
    config: Config
    channel: MessagingChannel
    service: EngagementService
    engine: AsyncEngine | None = None  # None com stores em memória

    async def close(self) -> None:
        await self.service.drain()
        await self.channel.close()
        if self.engine is not None:
            await self.engine.dispose()


def build_service(
    config: Config,
    engine: AsyncEngine,
    channel: MessagingChannel,
) -> EngagementService:
    states = SqlEngagementStateStore(engine)
    tracker = ViewTracker(SqlViewStore(engine), users=states)
    dispatcher = NotificationDispatcher(channel, states)
    policy = make_policy(
        config.engagement.policy,
        tz=config.engagement.timezone,
        lang=config.engagement.language,
    )
    return EngagementService(tracker, states, dispatcher, policy, lang=config.engagement.language)


async def create_runtime(
    config: Config,
    channel: MessagingChannel | None = None,
    engine: AsyncEngine | None = None,
) -> Runtime:
    """Cria engine/canal a partir da config (se não injetados) e garante as tabelas."""
    engine = engine or make_engine(config.database.url, echo=config.database.echo)
    await init_db(engine)
    channel = channel or MaxChannel(config.max)
    return Runtime(config=config, engine=engine, channel=channel, service=build_service(config, engine, channel))
