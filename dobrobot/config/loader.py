"""Config file (~/.dobro/config.json, camelCase) + legacy .env names → validated Config."""

import json
import os
import re
from pathlib import Path
from typing import Any, Callable

from loguru import logger
from pydantic import ValidationError

from dobrobot.config.schema import Config

# Nomes do .env do bot original: (secção, campo)
LEGACY_ENV = {
    "BOT_TOKEN": ("max", "token"),
    "WEB_APP_URL": ("max", "web_app_url"),
    "API_SECRET_KEY": ("api", "secret_key"),
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def get_config_path() -> Path:
    """DOBRO_CONFIG, se definido; senão ~/.dobro/config.json."""
    custom = os.environ.get("DOBRO_CONFIG", "").strip()
    return Path(custom).expanduser() if custom else Path.home() / ".dobro" / "config.json"


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Config {path} unreadable ({e}); using defaults")
        return {}
    if not isinstance(raw, dict):
        logger.warning(f"Config {path} is not a JSON object; using defaults")
        return {}
    return convert_keys(raw)


def load_config(config_path: Path | None = None) -> Config:
    """
    Ficheiro → legacy env (BOT_TOKEN, WEB_APP_URL, API_SECRET_KEY) → DOBRO_* env (pydantic-settings).
    Config inválida (ex.: fuso desconhecido) não impede o arranque: fica a config por defeito.
    """
    path = config_path or get_config_path()
    data = _read_file(path)
    for env_var, (section, key) in LEGACY_ENV.items():
        value = (os.environ.get(env_var) or "").strip()
        if value:
            data.setdefault(section, {})[key] = value
    try:
        return Config(**data)
    except ValidationError as e:
        logger.warning(f"Invalid config in {path}: {e.error_count()} error(s), using defaults\n{e}")
        return Config()


def save_config(config: Config, config_path: Path | None = None) -> Path:
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(convert_to_camel(config.model_dump()), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return path


def _map_keys(data: Any, fn: Callable[[str], str]) -> Any:
    if isinstance(data, dict):
        return {fn(k): _map_keys(v, fn) for k, v in data.items()}
    if isinstance(data, list):
        return [_map_keys(v, fn) for v in data]
    return data


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def convert_keys(data: Any) -> Any:
    """camelCase → snake_case (recursivo)."""
    return _map_keys(data, camel_to_snake)


def convert_to_camel(data: Any) -> Any:
    return _map_keys(data, snake_to_camel)
