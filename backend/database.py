"""Engine e sessões async (SQLAlchemy asyncio + aiosqlite). Init das tabelas.

URL da BD:
  database.url (config) / DOBRO_DATABASE__URL (env) → URL explícito
  Default: sqlite+aiosqlite:///~/.dobro/dobro.db
"""

from pathlib import Path

from loguru import logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from backend.models_db import Base

DEFAULT_DATABASE_URL = f"sqlite+aiosqlite:///{Path.home() / '.dobro' / 'dobro.db'}"


def _ensure_sqlite_dir(url: str) -> None:
    """Cria o diretório do ficheiro SQLite se não existir."""
    prefix = "sqlite+aiosqlite:///"
    if not url.startswith(prefix):
        return
    path = url[len(prefix):]
    if not path or path == ":memory:":
        return
    Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)


def make_engine(url: str | None = None, echo: bool = False) -> AsyncEngine:
    """
    Cria o engine async. SQLite em memória usa StaticPool (uma só conexão partilhada);
    ficheiros SQLite ganham busy_timeout para escritas concorrentes (upsert de contadores).
    """
    url = url or DEFAULT_DATABASE_URL
    if url.startswith("sqlite+aiosqlite:///~"):
        url = "sqlite+aiosqlite:///" + str(Path(url[len("sqlite+aiosqlite:///"):]).expanduser())
    _ensure_sqlite_dir(url)

    if url.startswith("sqlite") and ":memory:" in url:
        return create_async_engine(url, echo=echo, poolclass=StaticPool, connect_args={"check_same_thread": False})

    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo, connect_args={"timeout": 30})

        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=30000")
            cursor.close()

        return engine

    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create tables if not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready ({engine.url.render_as_string(hide_password=True)})")


def dialect_insert(engine: AsyncEngine):
    """insert() com suporte a ON CONFLICT para o dialeto do engine (sqlite ou postgresql)."""
    if engine.dialect.name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
        return insert
    if engine.dialect.name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
        return insert
    raise NotImplementedError(f"Upsert not supported for dialect {engine.dialect.name!r}")


def scalar_greatest(engine: AsyncEngine, a, b):
    """Maior de duas expressões: max(a, b) escalar no SQLite, greatest(a, b) no Postgres."""
    from sqlalchemy import func
    if engine.dialect.name == "sqlite":
        return func.max(a, b)
    return func.greatest(a, b)
