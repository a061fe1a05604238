from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Campus Stay"
    APP_ENV: str = "dev"
    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent)
    TEMPLATES_DIR: Path | None = None
    STATIC_DIR: Path | None = None
    TZ: str = "Africa/Dar_es_Salaam"
    CURRENCY: str = "TZS"
    LOG_LEVEL: str = "INFO"

    # Remote REST API the web client talks to.
    API_BASE_URL: str = Field(
        default="http://localhost:8000/api",
        validation_alias=AliasChoices("API_BASE_URL", "NEXT_PUBLIC_API_URL"),
    )
    API_TIMEOUT_SECONDS: float = 10.0

    APP_SECRET: str = "dev-insecure-secret-change-me"
    SESSION_COOKIE_NAME: str = "cs_session"
    SESSION_MAX_AGE: int = 60 * 60 * 24 * 14
    ACCESS_COOKIE_NAME: str = "access_token"
    REFRESH_COOKIE_NAME: str = "refresh_token"
    ACCESS_COOKIE_MAX_AGE: int = 60 * 60
    REFRESH_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 7
    COOKIE_SECURE: bool = False
    TOKEN_LEEWAY_SECONDS: int = 30

    # Comma separated in the environment, not JSON.
    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = Field(default_factory=list)

    MAPBOX_ACCESS_TOKEN: str = ""
    MAPBOX_STYLE: str = "mapbox://styles/mapbox/streets-v12"
    GOOGLE_CLIENT_ID: str = ""

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    def _resolve_path(self, base: Path | None, fallback: Path) -> Path:
        return base if base is not None else fallback

    @property
    def templates_dir(self) -> Path:
        return self._resolve_path(self.TEMPLATES_DIR, self.BASE_DIR / "templates")

    @property
    def static_dir(self) -> Path:
        return self._resolve_path(self.STATIC_DIR, self.BASE_DIR / "static")

    @property
    def api_base_url(self) -> str:
        return (self.API_BASE_URL or "").strip().rstrip("/")

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if settings.TEMPLATES_DIR is None:
        settings.TEMPLATES_DIR = settings.BASE_DIR / "templates"
    if settings.STATIC_DIR is None:
        settings.STATIC_DIR = settings.BASE_DIR / "static"
    return settings


settings = get_settings()
