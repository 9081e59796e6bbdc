from datetime import date, datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Awaitable, Callable

import jwt
import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from src.api.core.config import settings
from src.api.core.database import build_session_factory
from src.api.core.dependencies import (
    get_enrollment_repository,
    get_habit_instance_repository,
    get_habit_instance_service,
    get_habit_template_repository,
    get_instance_materializer,
    get_reconciliation_service,
    get_reward_transaction_repository,
    get_routine_repository,
    get_standalone_assignment_repository,
    get_standalone_assignment_service,
    get_streak_service,
    get_template_resolver,
    get_user_repository,
    get_user_service,
)
from src.api.models import (
    Base,
    Cadence,
    HabitInstance,
    HabitRoutineAssignment,
    HabitTemplate,
    Intensity,
    Routine,
    User,
)
from src.api.schemas import EnrollmentSchemaCreate, UserSchemaCreate
from src.api.services import (
    EnrollmentResult,
    EnrollmentService,
    HabitInstanceService,
    InstanceMaterializer,
    ReconciliationService,
    StandaloneAssignmentService,
    TemplateResolver,
    UserService,
)
from src.api.utils.date_utils import format_date, today

# Тесты работают с SQLite в памяти: StaticPool держит одно соединение на весь тест
TEST_DATABASE_URL = "sqlite+aiosqlite://"


def make_token(expires_in: timedelta = timedelta(minutes=15), **claims: Any) -> str:
    """Выпускает токен так же, как внешний провайдер авторизации: общим секретом и с полем exp."""
    payload = {"exp": int((datetime.now(timezone.utc) + expires_in).timestamp()), **claims}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# --- ФИКСТУРА БЕЗОПАСНОСТИ ---


@pytest.fixture(scope="session", autouse=True)
def verify_test_environment():
    """Проверяет, что тесты запускаются в режиме разработки и без Sentry."""
    assert settings.DEVELOPMENT is True, (
        "❌ ОШИБКА КОНФИГУРАЦИИ: Тесты должны запускаться в режиме разработки/тестирования (DEVELOPMENT=True). "
        "Проверьте настройки [tool.pytest.ini_options] в pyproject.toml"
    )
    assert not settings.SENTRY_DSN, "❌ ОПАСНОСТЬ: в тестах не должно быть подключения к Sentry."


# --- БАЗА ДАННЫХ ---


@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Свежая база данных в памяти для каждого теста."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Сессия с теми же настройками, что и в приложении. Сервисы сами делают commit."""
    session_factory = build_session_factory(async_engine)

    async with session_factory() as session:
        yield session


# --- ДАННЫЕ ---


@pytest.fixture
def user_today() -> date:
    """Сегодняшняя дата тестового пользователя (часовой пояс UTC)."""
    return today("UTC")


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Участник с профилем в часовом поясе UTC."""
    user_service: UserService = get_user_service(get_user_repository())
    return await user_service.create(
        db_session,
        obj_in=UserSchemaCreate(external_id="member-1", display_name="Test Member", timezone="UTC"),
    )


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Второй участник для проверок доступа к чужим данным."""
    user_service: UserService = get_user_service(get_user_repository())
    return await user_service.create(db_session, obj_in=UserSchemaCreate(external_id="member-2", timezone="UTC"))


@pytest.fixture
def user_auth_headers(test_user: User) -> dict[str, str]:
    """Заголовок Authorization с токеном тестового пользователя."""
    return bearer(make_token(user_id=test_user.id, sub=test_user.external_id))


@pytest.fixture
def auth_headers_for() -> Callable[..., dict[str, str]]:
    """Фабрика заголовков Authorization с произвольными полями токена."""

    def _headers(expires_in: timedelta = timedelta(minutes=15), **claims: Any) -> dict[str, str]:
        return bearer(make_token(expires_in, **claims))

    return _headers


@pytest.fixture
def create_routine(db_session: AsyncSession) -> Callable[..., Awaitable[Routine]]:
    """Фабрика программ."""

    async def _create(routine_id: str = "sleep-reset", **fields: Any) -> Routine:
        fields.setdefault("name", routine_id.replace("-", " ").title())
        fields.setdefault("duration_days", 14)

        routine = Routine(id=routine_id, **fields)
        db_session.add(routine)
        await db_session.commit()
        return routine

    return _create


@pytest.fixture
def create_template(db_session: AsyncSession) -> Callable[..., Awaitable[HabitTemplate]]:
    """Фабрика шаблонов привычек. Поля, которые не переданы, получают значения по умолчанию модели."""

    async def _create(
        title: str,
        *,
        cadence: Cadence = Cadence.DAILY,
        intensity: Intensity = Intensity.LITE,
        **fields: Any,
    ) -> HabitTemplate:
        template = HabitTemplate(title=title, cadence=cadence, intensity=intensity, **fields)
        db_session.add(template)
        await db_session.commit()
        return template

    return _create


@pytest.fixture
def link_template(db_session: AsyncSession) -> Callable[[int, str], Awaitable[HabitRoutineAssignment]]:
    """Привязывает шаблон к программе через таблицу назначений."""

    async def _link(template_id: int, routine_id: str) -> HabitRoutineAssignment:
        link = HabitRoutineAssignment(habit_template_id=template_id, routine_id=routine_id)
        db_session.add(link)
        await db_session.commit()
        return link

    return _link


@pytest_asyncio.fixture
async def sleep_routine(
    create_routine: Callable[..., Awaitable[Routine]],
    create_template: Callable[..., Awaitable[HabitTemplate]],
    link_template: Callable[[int, str], Awaitable[HabitRoutineAssignment]],
) -> Routine:
    """
    Программа на 14 дней:
    ежедневная lite (прямая привязка), еженедельная lite (через назначение),
    ежедневная intense и as-needed lite.
    """
    routine = await create_routine("sleep-reset", name="Sleep Reset", duration_days=14, sort_order=1)

    await create_template("Evening wind-down", routine_id=routine.id, order_index=1)
    weekly = await create_template("Sleep review", cadence=Cadence.WEEKLY, order_index=2)
    await link_template(weekly.id, routine.id)
    await create_template("Cold shower", intensity=Intensity.INTENSE, routine_id=routine.id, order_index=3)
    await create_template("Nap", cadence=Cadence.AS_NEEDED, routine_id=routine.id, order_index=4)

    return routine


@pytest.fixture
def count_instances(db_session: AsyncSession) -> Callable[..., Awaitable[int]]:
    """Количество выполнений по фильтрам."""

    async def _count(*filters: Any) -> int:
        result = await db_session.execute(select(func.count(HabitInstance.id)).where(*filters))
        return int(result.scalar_one())

    return _count


# --- СЕРВИСЫ (собираются теми же фабриками, что и в приложении) ---


@pytest.fixture
def template_resolver() -> TemplateResolver:
    return get_template_resolver(get_habit_template_repository())


@pytest.fixture
def materializer() -> InstanceMaterializer:
    return get_instance_materializer(get_habit_instance_repository())


@pytest.fixture
def enrollment_service_factory(template_resolver: TemplateResolver) -> Callable[..., EnrollmentService]:
    """Позволяет подменить запись выполнений, чтобы проверить откат зачисления."""

    def _build(materializer: InstanceMaterializer | None = None) -> EnrollmentService:
        instance_repository = get_habit_instance_repository()
        return EnrollmentService(
            enrollment_repository=get_enrollment_repository(),
            user_repository=get_user_repository(),
            routine_repository=get_routine_repository(),
            instance_repository=instance_repository,
            template_resolver=template_resolver,
            materializer=materializer or InstanceMaterializer(instance_repository),
        )

    return _build


@pytest.fixture
def enrollment_service(enrollment_service_factory: Callable[..., EnrollmentService]) -> EnrollmentService:
    return enrollment_service_factory()


@pytest.fixture
def enroll(
    db_session: AsyncSession, test_user: User, sleep_routine: Routine, enrollment_service: EnrollmentService
) -> Callable[..., Awaitable[EnrollmentResult]]:
    """Зачисляет тестового пользователя в sleep-reset с указанной даты."""

    async def _enroll(start_date: date, intensity: Intensity = Intensity.LITE) -> EnrollmentResult:
        return await enrollment_service.enroll(
            db_session,
            current_user=test_user,
            enrollment_in=EnrollmentSchemaCreate(
                routine_id=sleep_routine.id, start_date=format_date(start_date), intensity=intensity
            ),
        )

    return _enroll


@pytest.fixture
def reconciliation_service(
    template_resolver: TemplateResolver, materializer: InstanceMaterializer
) -> ReconciliationService:
    return get_reconciliation_service(
        get_enrollment_repository(), get_habit_instance_repository(), template_resolver, materializer
    )


@pytest.fixture
def habit_instance_service() -> HabitInstanceService:
    instance_repository = get_habit_instance_repository()
    return get_habit_instance_service(
        instance_repository,
        get_user_repository(),
        get_enrollment_repository(),
        get_reward_transaction_repository(),
        get_streak_service(instance_repository),
    )


@pytest.fixture
def standalone_service(materializer: InstanceMaterializer) -> StandaloneAssignmentService:
    return get_standalone_assignment_service(
        get_standalone_assignment_repository(), get_habit_template_repository(), materializer
    )
