import io
import logging
from datetime import timedelta

import pytest

from newsletter_confirm.config import ConfigurationError, build_service, load_settings
from newsletter_confirm.domain import EmailAddress, PersonName, ValidationError
from newsletter_confirm.subscriptions import InMemoryStorage, PostgresStorage, create_storage_from_env
from newsletter_confirm.telemetry import configure_logging

BASE_ENV = {"APP_APPLICATION__SECRET_KEY": "s3cret"}


def test_load_settings_defaults() -> None:
    settings = load_settings(BASE_ENV)
    assert settings.application.secret_key == "s3cret"
    assert settings.application.confirmation_ttl == timedelta(days=1)
    assert settings.database.dsn is None
    assert "s3cret" not in repr(settings)


def test_load_settings_overrides() -> None:
    settings = load_settings(
        {
            **BASE_ENV,
            "APP_APPLICATION__PORT": "9000",
            "APP_APPLICATION__BASE_URL": "https://news.example.com",
            "APP_APPLICATION__CONFIRMATION_TTL_SECONDS": "0",
            "APP_DATABASE__DSN": "postgresql://u:p@db/news",
            "APP_EMAIL__API_TIMEOUT_MILLISECONDS": "2500",
            "APP_LOG_LEVEL": "debug",
        }
    )
    assert settings.application.port == 9000
    assert settings.application.confirmation_ttl is None
    assert settings.database.dsn == "postgresql://u:p@db/news"
    assert settings.email.api_timeout_milliseconds == 2500
    assert settings.log_level == "debug"


def test_missing_secret_or_bad_number() -> None:
    with pytest.raises(ConfigurationError):
        load_settings({})
    with pytest.raises(ConfigurationError):
        load_settings({**BASE_ENV, "APP_APPLICATION__PORT": "eighty"})


def test_build_service_selects_storage() -> None:
    service = build_service(load_settings(BASE_ENV))
    assert isinstance(service.storage, InMemoryStorage)
    assert service.confirmation_ttl == timedelta(days=1)

    service = build_service(load_settings({**BASE_ENV, "APP_DATABASE__DSN": "postgresql://u:p@db/news"}))
    assert isinstance(service.storage, PostgresStorage)
    assert service.storage.pool is None


def test_build_service_rejects_bad_sender() -> None:
    with pytest.raises(ConfigurationError):
        build_service(load_settings({**BASE_ENV, "APP_EMAIL__SENDER": "nobody"}))


def test_storage_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NEWSLETTER_PG_DSN", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert isinstance(create_storage_from_env(), InMemoryStorage)
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/news")
    assert isinstance(create_storage_from_env(), PostgresStorage)


def test_configure_logging_writes_package_records() -> None:
    stream = io.StringIO()
    logger = configure_logging("debug", stream=stream)
    logging.getLogger("newsletter_confirm.token.token").debug("token rejected: %s", "invalid_format")
    assert "token rejected: invalid_format" in stream.getvalue()
    assert len(logger.handlers) == 1


@pytest.mark.parametrize("name", ["", "   ", "a" * 257, "Robert'); DROP TABLE {x}", "<script>"])
def test_invalid_names(name: str) -> None:
    with pytest.raises(ValidationError):
        PersonName.parse(name)


def test_valid_names_and_emails() -> None:
    assert str(PersonName.parse("ё" * 256)) == "ё" * 256
    assert str(EmailAddress.parse("  First.Last+news@Example.co.uk ")) == "first.last+news@example.co.uk"


@pytest.mark.parametrize("email", ["", "plain", "@example.com", "a@b", "a b@example.com", "x" * 250 + "@example.com"])
def test_invalid_emails(email: str) -> None:
    with pytest.raises(ValidationError):
        EmailAddress.parse(email)
