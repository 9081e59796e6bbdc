"""Основной файл приложения FastAPI для движка зачислений и расписания привычек.

Отвечает за:
- Создание и конфигурацию экземпляра FastAPI.
- Управление жизненным циклом приложения (подключение к БД).
- Регистрацию роутеров, обработчиков исключений и middleware (CORS, время ответа).
- Предоставление эндпоинта для проверки работоспособности (health check).
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from src.api.core.config import settings
from src.api.core.database import db
from src.api.core.dependencies import DBSession
from src.api.core.exceptions import setup_exception_handlers
from src.api.core.logging import api_log as log
from src.api.routes import api_router
from src.core_shared.sentry_sdk_setup import setup_sentry

# Вызываем инициализацию Sentry, передавая настройки и уровень логирования
if settings.SENTRY_DSN:
    setup_sentry(settings, log_level=settings.LOG_LEVEL)


# Определяем lifespan для управления подключением к БД
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:  # pragma: no cover
    """
    Контекстный менеджер для управления жизненным циклом приложения.

    Выполняет подключение к базе данных при старте приложения
    и корректное отключение при его остановке.

    Args:
        app (FastAPI): Экземпляр приложения FastAPI.
    """
    log.info("Инициализация приложения...")
    log.info(
        f"Параметры расписаний: часовой пояс по умолчанию {settings.DEFAULT_TIMEZONE}, "
        f"{settings.COINS_PER_HABIT_COMPLETION} монет за выполнение, "
        f"горизонт вне программы {settings.STANDALONE_DAILY_HORIZON_DAYS} дн. / "
        f"{settings.STANDALONE_WEEKLY_OCCURRENCES} нед., пачка вставки {settings.INSTANCE_INSERT_CHUNK_SIZE}"
    )
    try:
        await db.connect()
        yield
    except Exception as exc:
        # Логируем критическую ошибку, если подключение к БД не удалось при старте
        log.critical(f"Критическая ошибка при старте приложения: {exc}", exc_info=True)
        # Повторно вызываем исключение, чтобы приложение не запустилось в нерабочем состоянии
        raise exc
    finally:
        log.info("Остановка приложения...")
        await db.disconnect()
        log.info("Приложение остановлено.")



async def log_request_timing(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Пишет в лог метод, путь, статус и время обработки, добавляет заголовок X-Process-Time."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    log.info(f"{request.method} {request.url.path} -> {response.status_code} за {elapsed_ms} мс")
    return response


# Создаем экземпляр FastAPI
def create_app() -> FastAPI:
    """
    Создает и конфигурирует экземпляр приложения FastAPI.

    Returns:
        FastAPI: Сконфигурированный экземпляр приложения.
    """
    log.info(f"Создание экземпляра FastAPI для '{settings.PROJECT_NAME}@{settings.API_VERSION}'")
    log.info(f"Режим разработки: {settings.DEVELOPMENT}, Режим продакшена: {settings.PRODUCTION}")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.API_VERSION,
        debug=settings.DEVELOPMENT,
        lifespan=lifespan,
        description="API движка зачислений и расписания привычек для платформы велнес-ретритов",
    )

    setup_exception_handlers(app)

    # Веб-клиенты ретрита ходят в API из браузера, источники задаются в CORS_ORIGINS
    if settings.cors_origin_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origin_list,
            allow_credentials=False,
            allow_methods=["GET", "POST", "PATCH", "DELETE"],
            allow_headers=["Authorization", "Content-Type"],
            expose_headers=["X-Process-Time"],
        )
        log.info(f"CORS разрешен для: {settings.cors_origin_list}")

    app.middleware("http")(log_request_timing)

    app.include_router(api_router, prefix="/api")

    log.info(f"Приложение '{settings.PROJECT_NAME} {settings.API_VERSION}' сконфигурировано и готово к запуску.")
    return app


# Создаем основной экземпляр приложения
app = create_app()


@app.get(
    "/healthcheck",
    tags=["Health Check"],
    summary="Проверка работоспособности сервиса и его зависимостей",
    description=(
        "Проверяет, что API запущен и имеет доступ к базе данных, и сообщает версию и часовой пояс "
        "по умолчанию. В случае недоступности базы данных возвращает HTTP статус 503."
    ),
)
async def health_check(
    response: Response,
    db_session: DBSession,
) -> dict[str, Any]:
    """
    Эндпоинт для проверки работоспособности сервиса.

    Args:
        response (Response): Объект ответа FastAPI для управления статус-кодом.
        db_session (DBSession): Зависимость, предоставляющая сессию БД.

    Returns:
        dict: Статус API, версия, часовой пояс по умолчанию и состояние БД с задержкой запроса.
    """
    database: dict[str, Any] = {"status": "error", "latency_ms": None}

    started = time.perf_counter()
    try:
        await db_session.execute(text("SELECT 1"))
        database["status"] = "ok"
        database["latency_ms"] = round((time.perf_counter() - started) * 1000, 2)
    except Exception as exc:
        log.warning(f"Health check провален: нет подключения к базе данных ({exc}).")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "api_status": "ok" if database["status"] == "ok" else "degraded",
        "version": settings.API_VERSION,
        "default_timezone": settings.DEFAULT_TIMEZONE,
        "dependencies": {"database": database},
    }
