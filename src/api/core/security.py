"""
Проверка JWT токенов, выпущенных внешним провайдером авторизации.

Сервис токены не выпускает. Контракт токена:
- `user_id` (обязателен): внутренний ID профиля участника;
- `exp` (обязателен): срок действия;
- `sub` (опционален): идентификатор участника у провайдера, должен совпасть с `users.external_id`;
- `iss` и `aud` проверяются, только если заданы JWT_ISSUER и JWT_AUDIENCE.
"""

import jwt
from jwt.exceptions import (
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidTokenError,
    MissingRequiredClaimError,
)
from pydantic import ValidationError

from src.api.core.config import settings
from src.api.core.exceptions import UnauthorizedException
from src.api.core.logging import api_log as log
from src.api.models import User
from src.api.schemas.auth_schema import TokenPayload

REQUIRED_CLAIMS = ("exp", "user_id")


def verify_and_decode_token(token: str) -> TokenPayload:
    """
    Проверяет подпись, срок действия и обязательные поля токена.

    Args:
        token (str): JWT токен из заголовка Authorization.

    Returns:
        TokenPayload: Провалидированный payload токена.

    Raises:
        UnauthorizedException: Если токен невалиден, истек, выпущен не тем провайдером
            или в нем нет обязательных полей.
    """
    try:
        payload_dict = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            leeway=settings.JWT_LEEWAY_SECONDS,
            options={"require": list(REQUIRED_CLAIMS)},
        )
        token_payload = TokenPayload.model_validate(payload_dict)

    except ExpiredSignatureError:
        log.warning("Срок действия JWT токена истек.")
        raise UnauthorizedException(message="Срок действия токена истек.", error_type="token_expired") from None

    except MissingRequiredClaimError as exc:
        log.warning(f"В токене нет обязательного поля '{exc.claim}'.")
        raise UnauthorizedException(
            message=f"В токене отсутствует поле '{exc.claim}'.",
            error_type=f"token_{exc.claim}_missing",
        ) from exc

    except (InvalidIssuerError, InvalidAudienceError) as exc:
        log.warning(f"Токен выпущен для другого издателя или аудитории: {exc}")
        raise UnauthorizedException(message="Токен выпущен не для этого сервиса.", error_type="token_foreign") from exc

    except InvalidTokenError as exc:
        # Неверная подпись, формат, алгоритм и прочие ошибки PyJWT
        log.warning(f"Невалидный токен: {exc}")
        raise UnauthorizedException(message="Невалидный токен.", error_type="invalid_token") from exc

    except ValidationError as exc:
        log.warning(f"Ошибка валидации payload токена: {exc.errors()}")
        raise UnauthorizedException(
            message="Некорректные данные в токене.", error_type="invalid_token_payload"
        ) from exc

    log.debug(f"Токен верифицирован для user_id={token_payload.user_id}")
    return token_payload


def ensure_subject_matches(token_payload: TokenPayload, user: User) -> None:
    """
    Сверяет `sub` токена с внешним ID профиля.

    Защищает от токена, в котором `user_id` указывает на чужой профиль.

    Raises:
        UnauthorizedException: Если `sub` задан и не совпадает с `external_id` пользователя.
    """
    if token_payload.sub is not None and token_payload.sub != user.external_id:
        log.warning(f"sub токена не совпадает с внешним ID пользователя ID {user.id}.")
        raise UnauthorizedException(
            message="Токен выпущен для другого участника.", error_type="token_subject_mismatch"
        )
