import pytest
from httpx import ASGITransport, AsyncClient
from starlette import status

from src.api.core.config import settings
from src.api.main import create_app

# Помечаем все тесты в модуле как асинхронные
pytestmark = pytest.mark.asyncio


async def test_health_check_returns_ok(test_client: AsyncClient):
    """Проверяет, что эндпоинт /healthcheck возвращает 200 OK и сообщает о доступности базы данных."""

    # Arrange
    url = "/healthcheck"

    # Act
    response = await test_client.get(url)

    # Assert
    assert response.status_code == status.HTTP_200_OK

    response_json = response.json()
    assert response_json["api_status"] == "ok"
    assert response_json["version"] == settings.API_VERSION
    assert response_json["default_timezone"] == "UTC"
    assert response_json["dependencies"]["database"]["status"] == "ok"
    assert response_json["dependencies"]["database"]["latency_ms"] >= 0


async def test_responses_carry_process_time(test_client: AsyncClient):
    response = await test_client.get("/api/v1/routines/")

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["X-Process-Time"].endswith("ms")


async def test_protected_endpoint_requires_token(test_client: AsyncClient):
    response = await test_client.get("/api/v1/users/me")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["type"] == "unauthorized"


async def test_invalid_token_is_rejected(test_client: AsyncClient):
    response = await test_client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_cors_preflight_for_configured_origin(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "CORS_ORIGINS", "https://app.retreat.example, https://admin.retreat.example")
    app = create_app()
    headers = {"Origin": "https://app.retreat.example", "Access-Control-Request-Method": "POST"}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        allowed = await client.options("/api/v1/routines/enroll", headers=headers)
        denied = await client.options(
            "/api/v1/routines/enroll", headers={**headers, "Origin": "https://evil.example"}
        )

    assert allowed.status_code == status.HTTP_200_OK
    assert allowed.headers["access-control-allow-origin"] == "https://app.retreat.example"
    assert "access-control-allow-origin" not in denied.headers
