"""
Эндпоинты программ и зачислений.
"""

from typing import Annotated, Sequence

from fastapi import APIRouter, Query, Response, status

from src.api.core.dependencies import CurrentUser, DBSession, EnrollmentSvc, RoutineSvc
from src.api.core.exceptions import NotFoundException
from src.api.models import Enrollment, Routine
from src.api.schemas import (
    EnrollmentResultSchema,
    EnrollmentSchemaCreate,
    EnrollmentSchemaRead,
    EnrollmentSchemaReadWithRoutine,
    HabitTemplateSchemaRead,
    RoutineSchemaRead,
    RoutineSchemaReadWithHabits,
)

router = APIRouter(prefix="/routines", tags=["Routines"])


@router.get(
    "/",
    response_model=Sequence[RoutineSchemaRead],
    status_code=status.HTTP_200_OK,
    summary="Список программ",
    description="Возвращает программы в порядке sort_order. Доступно без аутентификации.",
)
async def list_routines(
    db_session: DBSession,
    routine_service: RoutineSvc,
    skip: Annotated[int, Query(ge=0, description="Количество записей для пропуска (пагинация)")] = 0,
    limit: Annotated[int, Query(ge=1, le=200, description="Максимальное количество записей (пагинация)")] = 100,
) -> Sequence[Routine]:
    return await routine_service.list_routines(db_session, skip=skip, limit=limit)


@router.get(
    "/active",
    response_model=EnrollmentSchemaReadWithRoutine | None,
    status_code=status.HTTP_200_OK,
    summary="Активное зачисление",
    description="Возвращает активное зачисление вместе с программой или null.",
)
async def get_active_enrollment(
    db_session: DBSession,
    current_user: CurrentUser,
    enrollment_service: EnrollmentSvc,
) -> Enrollment | None:
    return await enrollment_service.get_active(db_session, current_user=current_user)


@router.get(
    "/history",
    response_model=Sequence[EnrollmentSchemaRead],
    status_code=status.HTTP_200_OK,
    summary="История зачислений",
    description="Все зачисления пользователя, новые первыми.",
)
async def get_enrollment_history(
    db_session: DBSession,
    current_user: CurrentUser,
    enrollment_service: EnrollmentSvc,
) -> Sequence[Enrollment]:
    return await enrollment_service.get_history(db_session, current_user=current_user)


@router.get(
    "/{routine_id}",
    response_model=RoutineSchemaReadWithHabits,
    status_code=status.HTTP_200_OK,
    summary="Программа с привычками",
    description="Возвращает программу и полный набор ее шаблонов привычек (уровень intense).",
)
async def get_routine(
    db_session: DBSession,
    routine_service: RoutineSvc,
    routine_id: str,
) -> RoutineSchemaReadWithHabits:
    """
    Получает программу по идентификатору вместе с шаблонами привычек.

    Raises:
        NotFoundException: Если программа не найдена.
    """
    detail = await routine_service.get_with_habits(db_session, routine_id=routine_id)

    routine = RoutineSchemaRead.model_validate(detail.routine)
    return RoutineSchemaReadWithHabits(
        **routine.model_dump(),
        habits=[HabitTemplateSchemaRead.model_validate(template) for template in detail.habits],
    )


@router.post(
    "/enroll",
    response_model=EnrollmentResultSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Зачисление в программу",
    description=(
        "Зачисляет пользователя в программу и строит расписание выполнений. "
        "Повтор идентичного запроса возвращает существующее зачисление со статусом 200."
    ),
)
async def enroll(
    response: Response,
    db_session: DBSession,
    current_user: CurrentUser,
    enrollment_service: EnrollmentSvc,
    enrollment_in: EnrollmentSchemaCreate,
) -> EnrollmentResultSchema:
    """
    Зачисляет текущего пользователя в программу.

    Args:
        response: Объект ответа FastAPI для управления статус-кодом.
        db_session: Асинхронная сессия базы данных.
        current_user: Аутентифицированный пользователь.
        enrollment_service: Сервис зачислений.
        enrollment_in: Программа, дата начала и интенсивность.

    Returns:
        EnrollmentResultSchema: Зачисление, число выполнений и признак повтора.

    Raises:
        ValidationException: Некорректная дата начала.
        NotFoundException: Программа не найдена.
        ConflictException: Параллельное зачисление с другими параметрами.
        SchedulingFailureException: Расписание не построено, изменения откатаны.
    """
    result = await enrollment_service.enroll(db_session, current_user=current_user, enrollment_in=enrollment_in)

    if result.already_enrolled:
        response.status_code = status.HTTP_200_OK

    return EnrollmentResultSchema.model_validate(result)


@router.post(
    "/pause",
    response_model=EnrollmentSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Пауза активного зачисления",
)
async def pause_enrollment(
    db_session: DBSession,
    current_user: CurrentUser,
    enrollment_service: EnrollmentSvc,
) -> Enrollment:
    paused = await enrollment_service.pause(db_session, current_user=current_user)

    if paused is None:
        raise NotFoundException(message="Нет активного зачисления.", error_type="no_active_enrollment")

    return paused


@router.post(
    "/abandon",
    response_model=EnrollmentSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Отказ от активного зачисления",
    description="Завершает активное зачисление без возможности возобновления.",
)
async def abandon_enrollment(
    db_session: DBSession,
    current_user: CurrentUser,
    enrollment_service: EnrollmentSvc,
) -> Enrollment:
    abandoned = await enrollment_service.abandon(db_session, current_user=current_user)

    if abandoned is None:
        raise NotFoundException(message="Нет активного зачисления.", error_type="no_active_enrollment")

    return abandoned
