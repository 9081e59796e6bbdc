"""Схемы Pydantic для аутентификации."""

from pydantic import BaseModel, ConfigDict, Field


class TokenPayload(BaseModel):
    """
    Схема для данных (payload), закодированных в JWT.

    Токены выпускает внешний сервис авторизации, API только проверяет их.
    Дополнительные поля провайдера (iat, jti, роли) игнорируются.
    """

    model_config = ConfigDict(extra="ignore")

    user_id: int = Field(..., gt=0, description="ID пользователя (внутренний)")
    exp: int = Field(..., description="Время истечения токена (Unix timestamp)")
    sub: str | None = Field(None, min_length=1, description="Идентификатор участника у провайдера")
