"""Loguru setup for the API and CLI: request correlation (trace_id, user_id), JSON lines, rotating file.

Env:
  DOBRO_LOG_LEVEL  DEBUG | INFO (default) | WARNING
  DOBRO_LOG_JSON   1/true/yes → uma linha JSON por registo em stderr
  DOBRO_LOG_FILE   caminho do ficheiro (rotação 10 MB, 7 dias, gz)
"""

import contextvars
import json
import os
import sys
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from loguru import logger

_trace_id: contextvars.ContextVar[str] = contextvars.ContextVar("dobro_trace_id", default="")
_user_id: contextvars.ContextVar[int | None] = contextvars.ContextVar("dobro_user_id", default=None)

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[trace_id]}</cyan> <magenta>{extra[user]}</magenta> | "
    "{name}:{function}:{line} - <level>{message}</level>\n"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[trace_id]} {extra[user]} | {name}:{line} - {message}\n"


@dataclass(frozen=True)
class LogSettings:
    level: str = "INFO"
    json_lines: bool = False
    file: Path | None = None

    @classmethod
    def from_env(cls) -> "LogSettings":
        raw_file = os.environ.get("DOBRO_LOG_FILE", "").strip()
        return cls(
            level=(os.environ.get("DOBRO_LOG_LEVEL") or "INFO").strip().upper(),
            json_lines=os.environ.get("DOBRO_LOG_JSON", "").strip().lower() in ("1", "true", "yes"),
            file=Path(raw_file).expanduser() if raw_file else None,
        )


def new_trace_id() -> str:
    return uuid.uuid4().hex[:12]


def get_trace_id() -> str:
    return _trace_id.get() or "-"


@contextmanager
def log_context(trace_id: str | None = None, user_id: int | None = None) -> Iterator[str]:
    """Correlaciona os logs de um pedido HTTP / update do bot. Devolve o trace_id em uso."""
    tid = trace_id or new_trace_id()
    t_token = _trace_id.set(tid)
    u_token = _user_id.set(user_id)
    try:
        yield tid
    finally:
        _user_id.reset(u_token)
        _trace_id.reset(t_token)


def _enrich(record: dict) -> bool:
    extra = record["extra"]
    extra.setdefault("trace_id", _trace_id.get() or "-")
    uid = extra.get("user_id", _user_id.get())
    extra["user"] = f"u{uid}" if uid else ""
    return True


def _json_line(record: dict) -> str:
    payload = {
        "ts": record["time"].isoformat(),
        "level": record["level"].name,
        "msg": record["message"],
        "trace_id": record["extra"].get("trace_id", "-"),
        "where": f"{record['name']}:{record['function']}:{record['line']}",
    }
    for k, v in record["extra"].items():
        if k not in ("trace_id", "user") and v not in (None, ""):
            payload[k] = v
    if record["exception"] is not None:
        payload["exception"] = repr(record["exception"].value)
    return json.dumps(payload, ensure_ascii=False, default=str)


def _json_sink(message) -> None:
    print(_json_line(message.record), file=sys.stderr, flush=True)


def configure_logging(settings: LogSettings | None = None) -> LogSettings:
    """Substitui os handlers do loguru. Chamar uma vez no arranque (lifespan da API, CLI)."""
    settings = settings or LogSettings.from_env()
    logger.remove()
    if settings.json_lines:
        logger.add(_json_sink, level=settings.level, filter=_enrich, format="{message}")
    else:
        logger.add(sys.stderr, level=settings.level, filter=_enrich, format=_TEXT_FORMAT)
    if settings.file is not None:
        settings.file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(settings.file),
            level=settings.level,
            filter=_enrich,
            format=_FILE_FORMAT,
            rotation="10 MB",
            retention="7 days",
            compression="gz",
        )
    return settings
