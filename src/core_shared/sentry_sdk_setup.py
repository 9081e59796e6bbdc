"""Настройка Sentry SDK."""

from logging import ERROR, INFO  # Стандартные уровни логирования для Sentry
from typing import Protocol

from sentry_sdk import init as sentry_init
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from .logging_setup import setup_logger


class SentrySettingsProtocol(Protocol):
    """Протокол для объекта настроек, используемых Sentry."""

    SENTRY_DSN: str | None
    PROJECT_NAME: str
    API_VERSION: str

    @property
    def PRODUCTION(self) -> bool: ...


def get_sample_rates(production: bool) -> tuple[float, float]:
    """
    Возвращает частоты семплирования трейсов и профилей.

    10% в продакшене, 100% в режиме разработки.

    Args:
        production (bool): Флаг продакшен режима.

    Returns:
        tuple[float, float]: (traces_sample_rate, profiles_sample_rate).
    """
    rate = 0.1 if production else 1.0
    return rate, rate


def setup_sentry(settings: SentrySettingsProtocol, log_level: str) -> bool:
    """
    Инициализирует Sentry SDK, если задан DSN.

    Args:
        settings (SentrySettingsProtocol): Объект настроек.
        log_level (str): Уровень логирования.

    Returns:
        bool: True, если Sentry SDK был инициализирован.
    """
    sentry_log = setup_logger(service_name="SentrySetup", log_level_override=log_level)

    sentry_dsn = settings.SENTRY_DSN

    if not sentry_dsn:
        sentry_log.info("SENTRY_DSN не установлен, Sentry SDK не будет инициализирован.")
        return False

    environment = "production" if settings.PRODUCTION else "development"
    traces_sample_rate, profiles_sample_rate = get_sample_rates(settings.PRODUCTION)

    sentry_log.info(
        f"Инициализация Sentry SDK. DSN: {'***' + sentry_dsn[-6:]}, "
        f"Environment: {environment}, "
        f"Traces Rate: {traces_sample_rate}, "
        f"Profiles Rate: {profiles_sample_rate}"
    )

    try:
        sentry_init(
            dsn=sentry_dsn,
            integrations=[
                StarletteIntegration(transaction_style="endpoint"),
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
                # Breadcrumbs с уровня INFO, события с уровня ERROR
                LoguruIntegration(level=INFO, event_level=ERROR),
            ],
            environment=environment,
            traces_sample_rate=traces_sample_rate,
            profiles_sample_rate=profiles_sample_rate,
            release=f"{settings.PROJECT_NAME}@{settings.API_VERSION}",
        )
    except Exception as exc:
        # Мониторинг не должен мешать запуску API
        sentry_log.exception(f"Ошибка инициализации Sentry SDK: {exc}")
        return False

    sentry_log.info("Sentry SDK успешно инициализирован.")
    return True
