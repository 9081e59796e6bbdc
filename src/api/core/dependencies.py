"""Зависимости FastAPI: сессия БД, репозитории, сервисы и текущий пользователь."""

from typing import Annotated

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.models import (
    Enrollment,
    HabitInstance,
    HabitTemplate,
    RewardTransaction,
    Routine,
    StandaloneAssignment,
    User,
)
from src.api.repositories import (
    EnrollmentRepository,
    HabitInstanceRepository,
    HabitTemplateRepository,
    RewardTransactionRepository,
    RoutineRepository,
    StandaloneAssignmentRepository,
    UserRepository,
)
from src.api.services import (
    EnrollmentService,
    HabitInstanceService,
    InstanceMaterializer,
    ReconciliationService,
    RoutineService,
    StandaloneAssignmentService,
    StreakService,
    TemplateResolver,
    UserService,
)

from .database import get_db_session
from .exceptions import ForbiddenException, UnauthorizedException
from .logging import api_log as log
from .security import ensure_subject_matches, verify_and_decode_token

# --- Типизация для инъекции зависимостей ---

# Сессия базы данных
DBSession = Annotated[AsyncSession, Depends(get_db_session)]


# --- Фабрики Репозиториев ---


def get_user_repository() -> UserRepository:
    return UserRepository(User)


def get_routine_repository() -> RoutineRepository:
    return RoutineRepository(Routine)


def get_habit_template_repository() -> HabitTemplateRepository:
    return HabitTemplateRepository(HabitTemplate)


def get_enrollment_repository() -> EnrollmentRepository:
    return EnrollmentRepository(Enrollment)


def get_habit_instance_repository() -> HabitInstanceRepository:
    return HabitInstanceRepository(HabitInstance)


def get_standalone_assignment_repository() -> StandaloneAssignmentRepository:
    return StandaloneAssignmentRepository(StandaloneAssignment)


def get_reward_transaction_repository() -> RewardTransactionRepository:
    return RewardTransactionRepository(RewardTransaction)


# Типизация для репозиториев
UserRepo = Annotated[UserRepository, Depends(get_user_repository)]
RoutineRepo = Annotated[RoutineRepository, Depends(get_routine_repository)]
HabitTemplateRepo = Annotated[HabitTemplateRepository, Depends(get_habit_template_repository)]
EnrollmentRepo = Annotated[EnrollmentRepository, Depends(get_enrollment_repository)]
HabitInstanceRepo = Annotated[HabitInstanceRepository, Depends(get_habit_instance_repository)]
StandaloneAssignmentRepo = Annotated[StandaloneAssignmentRepository, Depends(get_standalone_assignment_repository)]
RewardTransactionRepo = Annotated[RewardTransactionRepository, Depends(get_reward_transaction_repository)]


# --- Компоненты движка расписания ---


def get_template_resolver(template_repository: HabitTemplateRepo) -> TemplateResolver:
    return TemplateResolver(template_repository=template_repository)


def get_instance_materializer(instance_repository: HabitInstanceRepo) -> InstanceMaterializer:
    return InstanceMaterializer(instance_repository=instance_repository)


def get_streak_service(instance_repository: HabitInstanceRepo) -> StreakService:
    return StreakService(instance_repository=instance_repository)


Resolver = Annotated[TemplateResolver, Depends(get_template_resolver)]
Materializer = Annotated[InstanceMaterializer, Depends(get_instance_materializer)]
StreakSvc = Annotated[StreakService, Depends(get_streak_service)]


# --- Фабрики Сервисов ---


def get_user_service(repository: UserRepo) -> UserService:
    return UserService(user_repository=repository)


def get_routine_service(repository: RoutineRepo, template_resolver: Resolver) -> RoutineService:
    return RoutineService(routine_repository=repository, template_resolver=template_resolver)


# EnrollmentService управляет профилем, программой и выполнениями в одной транзакции
def get_enrollment_service(
    repository: EnrollmentRepo,
    user_repository: UserRepo,
    routine_repository: RoutineRepo,
    instance_repository: HabitInstanceRepo,
    template_resolver: Resolver,
    materializer: Materializer,
) -> EnrollmentService:
    return EnrollmentService(
        enrollment_repository=repository,
        user_repository=user_repository,
        routine_repository=routine_repository,
        instance_repository=instance_repository,
        template_resolver=template_resolver,
        materializer=materializer,
    )


def get_reconciliation_service(
    enrollment_repository: EnrollmentRepo,
    instance_repository: HabitInstanceRepo,
    template_resolver: Resolver,
    materializer: Materializer,
) -> ReconciliationService:
    return ReconciliationService(
        enrollment_repository=enrollment_repository,
        instance_repository=instance_repository,
        template_resolver=template_resolver,
        materializer=materializer,
    )


def get_habit_instance_service(
    repository: HabitInstanceRepo,
    user_repository: UserRepo,
    enrollment_repository: EnrollmentRepo,
    reward_repository: RewardTransactionRepo,
    streak_service: StreakSvc,
) -> HabitInstanceService:
    return HabitInstanceService(
        instance_repository=repository,
        user_repository=user_repository,
        enrollment_repository=enrollment_repository,
        reward_repository=reward_repository,
        streak_service=streak_service,
    )


def get_standalone_assignment_service(
    repository: StandaloneAssignmentRepo,
    template_repository: HabitTemplateRepo,
    materializer: Materializer,
) -> StandaloneAssignmentService:
    return StandaloneAssignmentService(
        assignment_repository=repository,
        template_repository=template_repository,
        materializer=materializer,
    )


# Типизация для сервисов
UserSvc = Annotated[UserService, Depends(get_user_service)]
RoutineSvc = Annotated[RoutineService, Depends(get_routine_service)]
EnrollmentSvc = Annotated[EnrollmentService, Depends(get_enrollment_service)]
ReconciliationSvc = Annotated[ReconciliationService, Depends(get_reconciliation_service)]
HabitInstanceSvc = Annotated[HabitInstanceService, Depends(get_habit_instance_service)]
StandaloneSvc = Annotated[StandaloneAssignmentService, Depends(get_standalone_assignment_service)]


# --- Зависимость для получения текущего пользователя ---

# Схема для JWT Bearer токена
bearer_schema = HTTPBearer(auto_error=False)


async def get_current_user(
    db_session: DBSession,
    user_repo: UserRepo,
    token_credentials: HTTPAuthorizationCredentials | None = Security(bearer_schema),
) -> User:
    """
    Получает текущего аутентифицированного пользователя на основе JWT токена.

    Токен выпускает внешний провайдер. Здесь проверяются подпись и срок действия,
    наличие профиля по user_id и совпадение sub с внешним ID профиля, если sub передан.

    Args:
        db_session (AsyncSession): Асинхронная сессия базы данных.
        user_repo (UserRepo): Экземпляр репозитория пользователей.
        token_credentials (HTTPAuthorizationCredentials | None): Учетные данные из заголовка Authorization.

    Returns:
        User: Экземпляр модели текущего пользователя.

    Raises:
        UnauthorizedException: Если токен отсутствует или невалиден, пользователь не найден
            либо sub токена принадлежит другому участнику.
        ForbiddenException: Если пользователь деактивирован.
    """
    if token_credentials is None or not token_credentials.credentials:
        log.debug("Отсутствует токен авторизации.")
        raise UnauthorizedException(message="Токен авторизации не предоставлен.")

    # UnauthorizedException будет выброшен из verify_and_decode_token в случае проблем
    token_payload = verify_and_decode_token(token_credentials.credentials)

    user = await user_repo.get_by_id(db_session, obj_id=token_payload.user_id)

    if user is None:
        log.warning(f"Пользователь с ID {token_payload.user_id} из токена не найден в БД.")
        raise UnauthorizedException(message="Пользователь не найден.", error_type="token_user_not_found")

    ensure_subject_matches(token_payload, user)

    if not user.is_active:
        log.warning(f"Пользователь ID {user.id} неактивен, доступ запрещен.")
        raise ForbiddenException(message="Пользователь неактивен.", error_type="user_inactive")

    log.debug(f"Аутентифицирован пользователь: ID {user.id}, внешний ID {user.external_id}")
    return user


# --- Типизация для инъекции текущего пользователя ---
CurrentUser = Annotated[User, Depends(get_current_user)]
