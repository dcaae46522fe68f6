"""Configuration schema using Pydantic."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.database import DEFAULT_DATABASE_URL
from backend.locale import normalize_lang
from backend.timezone import DEFAULT_REFERENCE_TZ, is_valid_iana


class DatabaseConfig(BaseModel):
    """Database URL (SQLAlchemy async driver)."""
    url: str = DEFAULT_DATABASE_URL
    echo: bool = False


class EngagementConfig(BaseModel):
    """Engagement notifications: policy, reference timezone for the "same day" check, message language."""
    policy: Literal["rolling", "milestones"] = "rolling"
    timezone: str = DEFAULT_REFERENCE_TZ  # nunca a hora local do servidor
    language: Literal["ru", "en"] = "ru"

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, v: str) -> str:
        if not is_valid_iana(v):
            raise ValueError(f"unknown IANA timezone: {v!r}")
        return v.strip()

    @field_validator("language", mode="before")
    @classmethod
    def _normalize_language(cls, v: object) -> str:
        # "EN", "ru-RU", "en_US" → código suportado; desconhecido → ru
        return normalize_lang(v if isinstance(v, str) else None)


class MaxConfig(BaseModel):
    """MAX messenger bot (platform-api.max.ru)."""
    token: str = ""
    api_base: str = "https://platform-api.max.ru"
    web_app_url: str | None = None  # link da mini-app no bot_started
    timeout: float = 10.0


class ApiConfig(BaseModel):
    """HTTP API for the mini app."""
    secret_key: str | None = None  # se definido, exige X-API-Key


class GatewayConfig(BaseModel):
    """Gateway/server configuration."""
    host: str = "0.0.0.0"
    port: int = 8000


class Config(BaseSettings):
    """Root configuration for dobrobot. Env: DOBRO_ENGAGEMENT__POLICY=milestones, etc."""
    model_config = SettingsConfigDict(env_prefix="DOBRO_", env_nested_delimiter="__", extra="ignore")

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    engagement: EngagementConfig = Field(default_factory=EngagementConfig)
    max: MaxConfig = Field(default_factory=MaxConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
