"""
Кастомные исключения API и их обработчики.

Все бизнес-ошибки наследуются от AppException и превращаются в единообразный
JSON ответ вида {"detail": {"type": ..., "message": ..., "loc": ...}}.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .logging import api_log as log


class AppException(Exception):
    """
    Базовое исключение приложения.

    Attributes:
        status_code: HTTP статус ответа.
        message: Человекочитаемое описание ошибки.
        error_type: Машиночитаемый код ошибки.
        loc: Место ошибки во входных данных (например, ["body", "start_date"]).
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Внутренняя ошибка сервера."
    default_error_type: str = "internal_error"

    def __init__(
        self,
        message: str | None = None,
        error_type: str | None = None,
        loc: list[str] | None = None,
    ):
        self.message = message or self.default_message
        self.error_type = error_type or self.default_error_type
        self.loc = loc
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Возвращает тело ответа для клиента."""
        detail: dict[str, Any] = {"type": self.error_type, "message": self.message}
        if self.loc:
            detail["loc"] = self.loc
        return {"detail": detail}


class BadRequestException(AppException):
    """Некорректный запрос (400)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Некорректный запрос."
    default_error_type = "bad_request"


class ValidationException(BadRequestException):
    """Ошибка валидации входных данных: формат даты, значение перечисления, диапазон (422)."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Ошибка валидации данных."
    default_error_type = "validation_error"


class UnauthorizedException(AppException):
    """Отсутствует или невалиден токен (401)."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Требуется аутентификация."
    default_error_type = "unauthorized"


class ForbiddenException(AppException):
    """Доступ запрещен (403)."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Доступ запрещен."
    default_error_type = "forbidden"


class NotFoundException(AppException):
    """Объект не найден (404)."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Объект не найден."
    default_error_type = "not_found"


class ConflictException(AppException):
    """Конфликт с текущим состоянием данных (409)."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Конфликт данных."
    default_error_type = "conflict"


class SchedulingFailureException(AppException):
    """
    Ошибка построения расписания после создания записи о зачислении.

    Выбрасывается после отката транзакции, исходная ошибка доступна через __cause__.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Не удалось построить расписание привычек. Зачисление отменено."
    default_error_type = "scheduling_failure"


async def app_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Преобразует AppException в JSON ответ."""
    # Starlette передает сюда только AppException, проверка нужна для mypy
    assert isinstance(exc, AppException)  # noqa: S101

    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        log.error(f"{request.method} {request.url.path} -> {exc.status_code} [{exc.error_type}]: {exc.message}")
    else:
        log.info(f"{request.method} {request.url.path} -> {exc.status_code} [{exc.error_type}]: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Логирует непредвиденную ошибку и возвращает 500 без деталей реализации."""
    log.opt(exception=exc).error(f"Необработанная ошибка при обработке {request.method} {request.url.path}: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=AppException().to_dict(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Регистрирует обработчики исключений приложения.

    Args:
        app (FastAPI): Экземпляр приложения FastAPI.
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
