from datetime import timedelta
from typing import Callable

import jwt
import pytest
from httpx import AsyncClient
from starlette import status

from src.api.core.config import settings
from src.api.models import User

# Помечаем все тесты в модуле как асинхронные
pytestmark = pytest.mark.asyncio

ME_URL = "/api/v1/users/me"


async def test_token_without_sub_is_accepted(
    test_client: AsyncClient, test_user: User, auth_headers_for: Callable[..., dict[str, str]]
):
    response = await test_client.get(ME_URL, headers=auth_headers_for(user_id=test_user.id))

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == test_user.id


async def test_expired_token_is_rejected(
    test_client: AsyncClient, test_user: User, auth_headers_for: Callable[..., dict[str, str]]
):
    headers = auth_headers_for(timedelta(minutes=-5), user_id=test_user.id)

    response = await test_client.get(ME_URL, headers=headers)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["type"] == "token_expired"


@pytest.mark.parametrize(
    "payload, error_type",
    [
        ({"sub": "member-1", "exp": 4102444800}, "token_user_id_missing"),
        ({"user_id": 1}, "token_exp_missing"),
    ],
)
async def test_token_without_required_claim_is_rejected(
    test_client: AsyncClient, test_user: User, payload: dict, error_type: str
):
    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    response = await test_client.get(ME_URL, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["type"] == error_type


async def test_token_signed_with_other_secret_is_rejected(test_client: AsyncClient, test_user: User):
    token = jwt.encode(
        {"user_id": test_user.id, "exp": 4102444800}, "some-other-secret-of-sufficient-length", algorithm="HS256"
    )

    response = await test_client.get(ME_URL, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["type"] == "invalid_token"


async def test_non_positive_user_id_is_rejected(
    test_client: AsyncClient, auth_headers_for: Callable[..., dict[str, str]]
):
    response = await test_client.get(ME_URL, headers=auth_headers_for(user_id=0))

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["type"] == "invalid_token_payload"


async def test_subject_of_other_member_is_rejected(
    test_client: AsyncClient,
    test_user: User,
    other_user: User,
    auth_headers_for: Callable[..., dict[str, str]],
):
    """user_id одного участника с sub другого не дает доступа к профилю."""
    headers = auth_headers_for(user_id=test_user.id, sub=other_user.external_id)

    response = await test_client.get(ME_URL, headers=headers)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["type"] == "token_subject_mismatch"


async def test_issuer_is_checked_when_configured(
    test_client: AsyncClient,
    test_user: User,
    auth_headers_for: Callable[..., dict[str, str]],
    monkeypatch: pytest.MonkeyPatch,
):
    monkeypatch.setattr(settings, "JWT_ISSUER", "retreat-auth")

    foreign = await test_client.get(ME_URL, headers=auth_headers_for(user_id=test_user.id, iss="someone-else"))
    trusted = await test_client.get(ME_URL, headers=auth_headers_for(user_id=test_user.id, iss="retreat-auth"))

    assert foreign.status_code == status.HTTP_401_UNAUTHORIZED
    assert foreign.json()["detail"]["type"] == "token_foreign"
    assert trusted.status_code == status.HTTP_200_OK


async def test_audience_claim_without_configured_audience_is_rejected(
    test_client: AsyncClient, test_user: User, auth_headers_for: Callable[..., dict[str, str]]
):
    response = await test_client.get(ME_URL, headers=auth_headers_for(user_id=test_user.id, aud="billing"))

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["type"] == "token_foreign"
