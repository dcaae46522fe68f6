"""Testes do carregamento de config (JSON camelCase, env, valores inválidos) e montagem do runtime."""

import json

import pytest

from dobrobot.config.loader import camel_to_snake, load_config, save_config, snake_to_camel
from dobrobot.config.schema import Config, EngagementConfig

_ENV_VARS = ("BOT_TOKEN", "WEB_APP_URL", "API_SECRET_KEY", "DOBRO_ENGAGEMENT__POLICY", "DOBRO_CONFIG")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def test_defaults_when_file_missing(tmp_path):
    config = load_config(tmp_path / "missing.json")
    assert config.engagement.policy == "rolling"
    assert config.engagement.timezone == "Europe/Moscow"
    assert config.engagement.language == "ru"
    assert config.api.secret_key is None


def test_camel_case_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "engagement": {"policy": "milestones", "timezone": "UTC", "language": "en"},
        "max": {"apiBase": "https://max.test", "webAppUrl": "https://app.test"},
        "database": {"url": "sqlite+aiosqlite:///:memory:"},
    }), encoding="utf-8")
    config = load_config(path)
    assert config.engagement.policy == "milestones"
    assert config.engagement.language == "en"
    assert config.max.api_base == "https://max.test"
    assert config.max.web_app_url == "https://app.test"
    assert config.database.url.endswith(":memory:")


@pytest.mark.parametrize("raw,expected", [("EN", "en"), ("en_US", "en"), ("ru-RU", "ru"), ("de", "ru"), ("", "ru")])
def test_language_normalized(raw, expected):
    assert EngagementConfig(language=raw).language == expected


def test_language_normalized_from_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"engagement": {"language": "EN-us"}}), encoding="utf-8")
    assert load_config(path).engagement.language == "en"


def test_legacy_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"max": {"token": "from-file"}}), encoding="utf-8")
    monkeypatch.setenv("BOT_TOKEN", "from-env")
    monkeypatch.setenv("API_SECRET_KEY", "k")
    config = load_config(path)
    assert config.max.token == "from-env"
    assert config.api.secret_key == "k"


def test_nested_env_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("DOBRO_ENGAGEMENT__POLICY", "milestones")
    assert load_config(tmp_path / "missing.json").engagement.policy == "milestones"


def test_invalid_timezone_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"engagement": {"timezone": "Nowhere/City"}}), encoding="utf-8")
    assert load_config(path).engagement.timezone == "Europe/Moscow"


def test_broken_json_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_config(path).engagement.policy == "rolling"


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"gateway": {"port": 9100}}), encoding="utf-8")
    monkeypatch.setenv("DOBRO_CONFIG", str(path))
    assert load_config().gateway.port == 9100


def test_save_and_reload(tmp_path):
    path = tmp_path / "out" / "config.json"
    config = Config()
    config.max.web_app_url = "https://app.test"
    save_config(config, path)
    assert "webAppUrl" in path.read_text(encoding="utf-8")
    assert load_config(path).max.web_app_url == "https://app.test"


def test_key_conversion():
    assert camel_to_snake("webAppUrl") == "web_app_url"
    assert snake_to_camel("web_app_url") == "webAppUrl"


@pytest.mark.asyncio
async def test_create_runtime_with_sqlite(sqlite_url):
    from dobrobot.runtime import create_runtime

    from conftest import FakeChannel

    config = Config(database={"url": sqlite_url})
    runtime = await create_runtime(config, channel=FakeChannel())
    try:
        assert await runtime.service.record_view(1, "a") == 1
        outcome = await runtime.service.notify_engagement(1)
        assert outcome.action == "sent"
    finally:
        await runtime.close()
