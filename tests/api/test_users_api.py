from typing import Callable

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from src.api.models import User

# Помечаем все тесты в модуле как асинхронные
pytestmark = pytest.mark.asyncio


async def test_read_me(test_client: AsyncClient, user_auth_headers: dict[str, str], test_user: User):
    response = await test_client.get("/api/v1/users/me", headers=user_auth_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == test_user.id
    assert data["external_id"] == "member-1"
    assert data["timezone"] == "UTC"
    assert data["reward_balance"] == 0
    assert data["active_routine_id"] is None


async def test_update_me_changes_only_sent_fields(test_client: AsyncClient, user_auth_headers: dict[str, str]):
    response = await test_client.patch(
        "/api/v1/users/me", json={"timezone": "Asia/Tokyo"}, headers=user_auth_headers
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["timezone"] == "Asia/Tokyo"
    assert response.json()["display_name"] == "Test Member"


async def test_update_me_rejects_unknown_timezone(test_client: AsyncClient, user_auth_headers: dict[str, str]):
    response = await test_client.patch(
        "/api/v1/users/me", json={"timezone": "Mars/Olympus_Mons"}, headers=user_auth_headers
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_stats_for_new_user(test_client: AsyncClient, user_auth_headers: dict[str, str]):
    response = await test_client.get("/api/v1/users/me/stats", headers=user_auth_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "reward_balance": 0,
        "current_streak": 0,
        "longest_streak": 0,
        "active_routine_id": None,
        "routine_intensity": None,
        "total_habits": 0,
        "completed_habits": 0,
        "completion_rate": 0,
        "active_enrollment": None,
    }


async def test_inactive_user_is_forbidden(
    test_client: AsyncClient, test_user: User, user_auth_headers: dict[str, str], db_session: AsyncSession
):
    test_user.is_active = False
    await db_session.commit()

    response = await test_client.get("/api/v1/users/me", headers=user_auth_headers)

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"]["type"] == "user_inactive"


async def test_token_for_missing_user_is_rejected(
    test_client: AsyncClient, auth_headers_for: Callable[..., dict[str, str]]
):
    headers = auth_headers_for(user_id=4242)

    response = await test_client.get("/api/v1/users/me", headers=headers)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["type"] == "token_user_not_found"
