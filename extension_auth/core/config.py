from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

DEFAULT_ISSUER = "https://droneextensionapp.netlify.app"
PARTNER_CALLBACK_URL = (
    "https://demo.services.docusign.net/act-gateway/v1.0/oauth/callback"
)
DEFAULT_PHONE_DATA_PATH = (
    Path(__file__).resolve().parents[1] / "data" / "phone-numbers.json"
)


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _require(name: str) -> str:
    value = _getenv(name, "")
    if not value:
        raise ValueError(f"{name} environment variable must be set")
    return value


def _getint(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    redis_url: str | None

    default_client_id: str
    default_client_secret: str
    default_client_name: str
    default_client_redirect_uris: tuple[str, ...]

    jwt_secret: str
    token_issuer: str
    access_token_ttl_sec: int
    auth_code_ttl_sec: int

    phone_data_path: Path

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    def __repr__(self) -> str:
        # Secrets stay out of tracebacks and debug logs.
        return (
            f"Settings(app_env={self.app_env!r}, log_level={self.log_level!r}, "
            f"port={self.port}, redis={'on' if self.redis_url else 'off'}, "
            f"default_client_id={self.default_client_id!r})"
        )


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    port = _getint("PORT", 8000)
    access_token_ttl_sec = _getint("ACCESS_TOKEN_TTL_SEC", 3600)
    auth_code_ttl_sec = _getint("AUTH_CODE_TTL_SEC", 600)
    if access_token_ttl_sec <= 0 or auth_code_ttl_sec <= 0:
        raise ValueError("ACCESS_TOKEN_TTL_SEC and AUTH_CODE_TTL_SEC must be positive")

    # Required at startup: the process must not come up without a client
    # allow-list entry and a signing key.
    default_client_id = _require("DEFAULT_CLIENT_ID")
    default_client_secret = _require("DEFAULT_CLIENT_SECRET")
    jwt_secret = _require("JWT_SECRET")

    redirect_uris = tuple(
        uri.strip()
        for uri in _getenv(
            "DEFAULT_CLIENT_REDIRECT_URIS", PARTNER_CALLBACK_URL
        ).split(",")
        if uri.strip()
    )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv("LOG_JSON", "false").lower() in ("1", "true", "yes"),
        port=port,
        redis_url=_getenv("REDIS_URL", "") or None,
        default_client_id=default_client_id,
        default_client_secret=default_client_secret,
        default_client_name=_getenv("DEFAULT_CLIENT_NAME", "Sample Extension App"),
        default_client_redirect_uris=redirect_uris,
        jwt_secret=jwt_secret,
        token_issuer=_getenv("TOKEN_ISSUER", DEFAULT_ISSUER),
        access_token_ttl_sec=access_token_ttl_sec,
        auth_code_ttl_sec=auth_code_ttl_sec,
        phone_data_path=Path(
            _getenv("PHONE_DATA_PATH", "") or DEFAULT_PHONE_DATA_PATH
        ),
    )


# Module-level singleton; importing the app fails fast when required vars are absent
SETTINGS = load_settings()
