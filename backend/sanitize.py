"""Validação/sanitização de entrada (ids vindos da mini-app e do bot, limites de queries)."""

from typing import Any

MAX_ITEM_ID_LEN = 64
MAX_NAME_LEN = 128
MAX_USER_ID = 2**63 - 1  # BIGINT com sinal (SQLite INTEGER)


def _strip_control(s: str) -> str:
    """Remove caracteres de controlo (evita log injection e quebras de formato)."""
    if not s:
        return s
    return "".join(c for c in s if ord(c) >= 0x20 and ord(c) != 0x7F)


def sanitize_string(value: str | None, max_len: int = MAX_NAME_LEN) -> str:
    """Remove control chars e limita tamanho."""
    if value is None:
        return ""
    if not isinstance(value, str):
        return str(value)[:max_len]
    s = _strip_control(value.strip())
    return s[:max_len] if len(s) > max_len else s


def parse_user_id(value: Any) -> int | None:
    """
    user_id positivo a partir de int/str/float vindos de JSON, form ou query string.
    Devolve None se ausente ou inválido (bool, <= 0, > MAX_USER_ID, não numérico, fracionário).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    elif isinstance(value, (str, bytes)):
        s = value.decode(errors="ignore") if isinstance(value, bytes) else value
        s = s.strip()
        # Só dígitos ASCII: "²" ou "٣" passam em isdigit() mas não em int()
        if not (s.isascii() and s.isdigit()) or len(s) > len(str(MAX_USER_ID)):
            return None
        value = int(s)
    if not isinstance(value, int):
        return None
    return value if 0 < value <= MAX_USER_ID else None


def validate_user_id(user_id: Any) -> int:
    """Como parse_user_id, mas ValueError se inválido."""
    uid = parse_user_id(user_id)
    if uid is None:
        raise ValueError(f"user_id must be a positive integer, got {user_id!r}")
    return uid


def validate_item_id(item_id: Any) -> str:
    """item_id não vazio, sem control chars, até MAX_ITEM_ID_LEN."""
    if not isinstance(item_id, str):
        raise ValueError(f"item_id must be a string, got {type(item_id).__name__}")
    s = _strip_control(item_id.strip())
    if not s:
        raise ValueError("item_id must not be empty")
    if len(s) > MAX_ITEM_ID_LEN:
        raise ValueError(f"item_id longer than {MAX_ITEM_ID_LEN} characters")
    return s


def clamp_limit(limit: int | None, default: int = 100, maximum: int = 500) -> int:
    """Limita parâmetro numérico (ex.: limit em queries) para evitar abuso."""
    if limit is None:
        return default
    try:
        n = int(limit)
        return max(1, min(maximum, n))
    except (TypeError, ValueError):
        return default
