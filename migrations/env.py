import logging
from os import getenv
from urllib.parse import quote_plus

from alembic import context
from sqlalchemy import engine_from_config, pool

# Импорт пакета моделей регистрирует все таблицы движка в Base.metadata
from src.api.models import Base
from src.core_shared.logging_setup import setup_logger

SERVICE_NAME = "Migrations"

loguru_logger = setup_logger(SERVICE_NAME)


class InterceptHandler(logging.Handler):
    """Перехватывает логи Alembic и SQLAlchemy (стандартный logging) и передает их в Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Пропускаем кадры модуля logging, чтобы в логе был реальный источник
        frame, depth = logging.currentframe(), 2

        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.bind(service_name=SERVICE_NAME).opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

logger = loguru_logger.bind(service_name=SERVICE_NAME)

config = context.config
target_metadata = Base.metadata


def get_database_url() -> str:
    """
    Собирает URL базы данных из тех же переменных окружения, что и API (DB_*).

    Raises:
        ValueError: Если одна или несколько переменных окружения отсутствуют.
    """
    parts = {name: getenv(name) for name in ("DB_USER", "DB_PASSWORD", "DB_HOST", "DB_PORT", "DB_NAME")}

    missing = [name for name, value in parts.items() if not value]
    if missing:
        raise ValueError(f"Отсутствуют переменные окружения для базы данных: {', '.join(missing)}")

    user = quote_plus(parts["DB_USER"] or "")
    password = quote_plus(parts["DB_PASSWORD"] or "")

    # psycopg 3 работает и в синхронном режиме, отдельный драйвер для миграций не нужен
    return f"postgresql+psycopg://{user}:{password}@{parts['DB_HOST']}:{parts['DB_PORT']}/{parts['DB_NAME']}"


# URL из alembic.ini (или переданный тестами) имеет приоритет над переменными окружения
current_db_url = config.get_main_option("sqlalchemy.url")

if not current_db_url:
    try:
        current_db_url = get_database_url()
    except ValueError as db_url_exc:
        logger.error(f"Ошибка конфигурации: {db_url_exc}")
        raise


def skip_empty_autogenerate(context, revision, directives) -> None:
    """Не создает пустую ревизию, если autogenerate не нашел изменений схемы."""
    if getattr(config.cmd_opts, "autogenerate", False) and directives[0].upgrade_ops.is_empty():
        directives[:] = []
        logger.info("Изменений схемы не обнаружено, ревизия не создана.")


def run_migrations_offline() -> None:
    """Генерирует SQL без подключения к базе данных."""
    context.configure(
        url=current_db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Применяет миграции через подключение к базе данных."""
    connectable_config = config.get_section(config.config_ini_section, {})
    connectable_config["sqlalchemy.url"] = current_db_url

    connectable = engine_from_config(
        connectable_config,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            process_revision_directives=skip_empty_autogenerate,
        )

        with context.begin_transaction():
            context.run_migrations()

    logger.info("Миграции применены.")


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
