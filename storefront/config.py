from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv


def _env_int(name: str, default: int, minimum: Optional[int] = None) -> int:
    raw_value = os.getenv(name, str(default))
    try:
        value = int(raw_value)
    except (TypeError, ValueError):
        value = default
    if minimum is not None:
        value = max(minimum, value)
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw_value = (os.getenv(name) or "").strip().lower()
    if not raw_value:
        return default
    return raw_value in {"1", "true", "yes", "on"}


def _env_list(name: str) -> Tuple[str, ...]:
    raw_value = os.getenv(name, "")
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, loaded once at startup."""

    log_level: str = "INFO"
    mongo_uri: str = "mongodb://localhost:27017/storefront"
    jwt_secret_key: str = "change-me-in-production"
    jwt_ttl_seconds: int = 3600
    bcrypt_rounds: int = 10
    reset_token_bytes: int = 32
    reset_token_ttl_minutes: int = 10
    frontend_url: str = "http://localhost:5173"
    resend_api_key: str = ""
    password_reset_sender_email: str = "no-reply@storefront.local"
    password_reset_subject: str = "Password Reset Request"
    cors_allowed_origins: Tuple[str, ...] = ()
    trusted_proxy_hops: int = 0
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 5
    rate_limit_window_seconds: int = 15 * 60

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        resend_api_key = (
            os.getenv("RESEND_PASSWORD_RESET_API_KEY")
            or os.getenv("RESEND_API_KEY")
            or ""
        ).strip()
        allowed_origins = [
            "http://localhost:5173",
            "http://localhost:3000",
            (os.getenv("FRONTEND_URL") or "").strip(),
        ]
        allowed_origins.extend(_env_list("CORS_ALLOWED_ORIGINS"))

        return cls(
            log_level=(os.getenv("LOG_LEVEL") or cls.log_level).strip().upper(),
            mongo_uri=os.getenv("MONGO_URI", cls.mongo_uri),
            jwt_secret_key=os.getenv("JWT_SECRET_KEY", cls.jwt_secret_key),
            jwt_ttl_seconds=_env_int(
                "JWT_ACCESS_TOKEN_TTL_SECONDS", cls.jwt_ttl_seconds, minimum=1
            ),
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", cls.bcrypt_rounds, minimum=4),
            reset_token_ttl_minutes=_env_int(
                "RESET_TOKEN_TTL_MINUTES", cls.reset_token_ttl_minutes, minimum=1
            ),
            frontend_url=(os.getenv("FRONTEND_URL") or cls.frontend_url).strip(),
            resend_api_key=resend_api_key,
            password_reset_sender_email=(
                os.getenv("PASSWORD_RESET_SENDER_EMAIL")
                or cls.password_reset_sender_email
            ).strip(),
            cors_allowed_origins=tuple(
                origin for origin in allowed_origins if origin
            ),
            trusted_proxy_hops=_env_int(
                "TRUSTED_PROXY_HOPS", cls.trusted_proxy_hops, minimum=0
            ),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", cls.rate_limit_enabled),
            rate_limit_requests=_env_int(
                "RATE_LIMIT_REQUESTS", cls.rate_limit_requests, minimum=1
            ),
            rate_limit_window_seconds=_env_int(
                "RATE_LIMIT_WINDOW_SECONDS", cls.rate_limit_window_seconds, minimum=1
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings.from_env()
