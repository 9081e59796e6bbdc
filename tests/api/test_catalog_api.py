from typing import Awaitable, Callable

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from src.api.models import HabitInstance, HabitTemplate, Routine, User

# Помечаем все тесты в модуле как асинхронные
pytestmark = pytest.mark.asyncio


async def test_catalog_is_public_and_deduplicated(
    test_client: AsyncClient,
    sleep_routine: Routine,
    create_template: Callable[..., Awaitable[HabitTemplate]],
):
    await create_template("NAP")

    response = await test_client.get("/api/v1/catalog/habits")

    assert response.status_code == status.HTTP_200_OK
    titles = [item["title"].strip().lower() for item in response.json()]
    assert sorted(titles) == ["cold shower", "evening wind-down", "nap", "sleep review"]

    nap = next(item for item in response.json() if item["title"].lower() == "nap")
    assert nap["routine_names"] == ["Sleep Reset"]


async def test_assign_list_and_unassign(
    test_client: AsyncClient,
    user_auth_headers: dict[str, str],
    sleep_routine: Routine,
    db_session: AsyncSession,
):
    """Подписка создает 30 выполнений, отписка скрывает привычку, но сохраняет выполнения."""
    catalog = await test_client.get("/api/v1/catalog/habits")
    template_id = next(item["id"] for item in catalog.json() if item["title"] == "Evening wind-down")

    assigned = await test_client.post(
        "/api/v1/catalog/assign", json={"template_id": template_id}, headers=user_auth_headers
    )
    assert assigned.status_code == status.HTTP_201_CREATED
    assert assigned.json()["habits_scheduled"] == 30
    assignment_id = assigned.json()["assignment"]["id"]

    listed = await test_client.get("/api/v1/catalog/assigned", headers=user_auth_headers)
    assert [item["id"] for item in listed.json()] == [assignment_id]

    deleted = await test_client.delete(f"/api/v1/catalog/assigned/{assignment_id}", headers=user_auth_headers)
    assert deleted.status_code == status.HTTP_204_NO_CONTENT

    listed = await test_client.get("/api/v1/catalog/assigned", headers=user_auth_headers)
    assert listed.json() == []

    statement = select(func.count(HabitInstance.id)).where(HabitInstance.template_id == template_id)
    result = await db_session.execute(statement)
    assert result.scalar_one() == 30


async def test_unassign_foreign_assignment_returns_404(
    test_client: AsyncClient,
    user_auth_headers: dict[str, str],
    other_user: User,
    auth_headers_for: Callable[..., dict[str, str]],
):
    created = await test_client.post("/api/v1/catalog/custom", json={"title": "Stretch"}, headers=user_auth_headers)
    assignment_id = created.json()["assignment"]["id"]

    other_headers = auth_headers_for(user_id=other_user.id)
    response = await test_client.delete(f"/api/v1/catalog/assigned/{assignment_id}", headers=other_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"]["type"] == "assignment_not_found"


async def test_assign_unknown_template_returns_404(test_client: AsyncClient, user_auth_headers: dict[str, str]):
    response = await test_client.post("/api/v1/catalog/assign", json={"template_id": 12345}, headers=user_auth_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_create_custom_habit(test_client: AsyncClient, user_auth_headers: dict[str, str]):
    payload = {"title": "Journal", "description": "Three lines", "cadence": "as-needed"}

    response = await test_client.post("/api/v1/catalog/custom", json=payload, headers=user_auth_headers)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["habits_scheduled"] == 1
    assert data["assignment"]["is_custom"] is True
    assert data["assignment"]["template_id"] is None
    assert data["assignment"]["cadence"] == "as-needed"


async def test_create_custom_habit_rejects_empty_title(test_client: AsyncClient, user_auth_headers: dict[str, str]):
    response = await test_client.post("/api/v1/catalog/custom", json={"title": ""}, headers=user_auth_headers)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
