from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


PLACEHOLDER_JWT_SECRET = "your-jwt-secret-key-change-in-production"

DEFAULT_CALLBACK_BASE = "http://localhost:3000/api/auth"


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


@dataclass(frozen=True)
class OAuthClientSettings:
    provider: str
    client_id: str
    client_secret: str
    callback_url: str

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass(frozen=True)
class Settings:
    app_env: str
    log_level: str
    postgres_dsn: str
    jwt_secret: str
    jwt_ttl_days: int
    frontend_url: str
    google: OAuthClientSettings
    twitch: OAuthClientSettings
    oauth_http_timeout_seconds: float
    default_plan_name: str
    default_plan_period_days: int
    db_bootstrap: bool

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def uses_placeholder_jwt_secret(self) -> bool:
        return self.jwt_secret == PLACEHOLDER_JWT_SECRET


def _oauth_client(provider: str) -> OAuthClientSettings:
    prefix = provider.upper()
    return OAuthClientSettings(
        provider=provider,
        client_id=_env(f"{prefix}_CLIENT_ID", ""),
        client_secret=_env(f"{prefix}_CLIENT_SECRET", ""),
        callback_url=_env(f"{prefix}_CALLBACK_URL") or f"{DEFAULT_CALLBACK_BASE}/{provider}/callback",
    )


def get_settings() -> Settings:
    return Settings(
        app_env=_env("APP_ENV", "development"),
        log_level=_env("LOG_LEVEL", "INFO"),
        postgres_dsn=_env("POSTGRES_DSN", ""),
        jwt_secret=_env("JWT_SECRET") or PLACEHOLDER_JWT_SECRET,
        jwt_ttl_days=int(_env("JWT_TTL_DAYS", "7")),
        frontend_url=_env("FRONTEND_URL", "https://neustream.app").rstrip("/"),
        google=_oauth_client("google"),
        twitch=_oauth_client("twitch"),
        oauth_http_timeout_seconds=float(_env("OAUTH_HTTP_TIMEOUT_SECONDS", "10")),
        default_plan_name=_env("DEFAULT_PLAN_NAME", "Free"),
        default_plan_period_days=int(_env("DEFAULT_PLAN_PERIOD_DAYS", "30")),
        db_bootstrap=_env("DB_BOOTSTRAP", "false").lower() in {"1", "true", "yes"},
    )
