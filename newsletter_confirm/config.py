"""Environment-backed settings and process bootstrap."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Mapping, Optional

from .domain import EmailAddress
from .subscriptions.email_client import EmailClient
from .subscriptions.service import SubscriptionService
from .subscriptions.storage import create_storage_from_env
from .telemetry import configure_logging
from .token import SigningKey

ENV_PREFIX = "APP_"


class ConfigurationError(Exception):
    """Required setting missing or malformed."""


@dataclass
class ApplicationSettings:
    host: str = "127.0.0.1"
    port: int = 8000
    base_url: str = "http://127.0.0.1:8000"
    secret_key: str = field(default="", repr=False)
    confirmation_ttl_seconds: int = 86_400

    @property
    def confirmation_ttl(self) -> Optional[timedelta]:
        if self.confirmation_ttl_seconds <= 0:
            return None
        return timedelta(seconds=self.confirmation_ttl_seconds)


@dataclass
class DatabaseSettings:
    dsn: Optional[str] = field(default=None, repr=False)


@dataclass
class EmailSettings:
    sender: str = "newsletter@example.com"
    api_base_url: str = "http://127.0.0.1:8025"
    api_auth_token: str = field(default="", repr=False)
    api_timeout_milliseconds: int = 10_000


@dataclass
class Settings:
    application: ApplicationSettings = field(default_factory=ApplicationSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    email: EmailSettings = field(default_factory=EmailSettings)
    log_level: str = "INFO"


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Read settings from ``APP_<SECTION>__<NAME>`` variables.

    ``APP_APPLICATION__SECRET_KEY`` is required.
    """
    env = os.environ if env is None else env
    p = ENV_PREFIX
    defaults = Settings()

    secret_key = env.get(f"{p}APPLICATION__SECRET_KEY", "")
    if not secret_key:
        raise ConfigurationError(f"{p}APPLICATION__SECRET_KEY is not set")

    application = ApplicationSettings(
        host=env.get(f"{p}APPLICATION__HOST", defaults.application.host),
        port=_int(env, f"{p}APPLICATION__PORT", defaults.application.port),
        base_url=env.get(f"{p}APPLICATION__BASE_URL", defaults.application.base_url),
        secret_key=secret_key,
        confirmation_ttl_seconds=_int(
            env, f"{p}APPLICATION__CONFIRMATION_TTL_SECONDS", defaults.application.confirmation_ttl_seconds
        ),
    )
    database = DatabaseSettings(dsn=env.get(f"{p}DATABASE__DSN") or None)
    email = EmailSettings(
        sender=env.get(f"{p}EMAIL__SENDER", defaults.email.sender),
        api_base_url=env.get(f"{p}EMAIL__API_BASE_URL", defaults.email.api_base_url),
        api_auth_token=env.get(f"{p}EMAIL__API_AUTH_TOKEN", defaults.email.api_auth_token),
        api_timeout_milliseconds=_int(
            env, f"{p}EMAIL__API_TIMEOUT_MILLISECONDS", defaults.email.api_timeout_milliseconds
        ),
    )
    return Settings(
        application=application,
        database=database,
        email=email,
        log_level=env.get(f"{p}LOG_LEVEL", defaults.log_level),
    )


def build_service(settings: Settings) -> SubscriptionService:
    """Wire the process-wide signing key, storage and email client."""
    try:
        sender = EmailAddress.parse(settings.email.sender)
    except ValueError as exc:
        raise ConfigurationError(f"invalid email sender: {exc}") from exc

    email_client = EmailClient(
        sender=sender,
        api_base_url=settings.email.api_base_url,
        api_auth_token=settings.email.api_auth_token,
        timeout_ms=settings.email.api_timeout_milliseconds,
    )
    return SubscriptionService(
        storage=create_storage_from_env(settings.database.dsn),
        email_client=email_client,
        signing_key=SigningKey(settings.application.secret_key),
        base_url=settings.application.base_url,
        confirmation_ttl=settings.application.confirmation_ttl,
    )


def bootstrap(env: Mapping[str, str] | None = None) -> SubscriptionService:
    """Load settings, configure logging and build the service once at startup."""
    settings = load_settings(env)
    configure_logging(settings.log_level)
    return build_service(settings)
