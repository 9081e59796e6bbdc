from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.database import get_db_session
from src.api.main import app

# --- ФИКСТУРЫ, СПЕЦИФИЧНЫЕ ДЛЯ ТЕСТИРОВАНИЯ API ---


@pytest_asyncio.fixture(scope="function")
async def test_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Создает тестовый клиент FastAPI для каждого API-теста.

    Запросы работают с той же сессией `db_session`, что и тест, поэтому данные,
    подготовленные фикстурами, сразу видны эндпоинтам, а результат можно проверить в БД.
    """

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session

    # Lifespan не запускается: подключение к рабочей БД тестам не нужно
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    del app.dependency_overrides[get_db_session]
