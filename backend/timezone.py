"""Fuso de referência para o "mesmo dia" das notificações e normalização de datetimes."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# A plataforma MAX é russa: o dia do calendário conta-se em hora de Moscovo salvo config em contrário.
DEFAULT_REFERENCE_TZ = "Europe/Moscow"


def is_valid_iana(tz_iana: str) -> bool:
    """True se tz_iana é um fuso IANA conhecido (ex.: Europe/Moscow)."""
    if not tz_iana or not tz_iana.strip():
        return False
    try:
        ZoneInfo(tz_iana.strip())
        return True
    except (ZoneInfoNotFoundError, ValueError):
        return False


def reference_zone(tz_iana: str | None = None) -> ZoneInfo:
    """ZoneInfo do fuso configurado; ValueError se inválido (nunca cai para a hora local do servidor)."""
    name = (tz_iana or DEFAULT_REFERENCE_TZ).strip()
    if not is_valid_iana(name):
        raise ValueError(f"Unknown timezone: {name!r}")
    return ZoneInfo(name)


def as_utc(dt: datetime) -> datetime:
    """Datetime aware em UTC. Naive (como o SQLite devolve) é interpretado como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_date(dt: datetime, tz: ZoneInfo) -> date:
    return as_utc(dt).astimezone(tz).date()


def is_same_local_day(a: datetime, b: datetime, tz: ZoneInfo) -> bool:
    """True se a e b caem no mesmo dia de calendário no fuso tz."""
    return local_date(a, tz) == local_date(b, tz)
