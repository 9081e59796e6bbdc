"""Конфигурация API сервиса."""

from urllib.parse import quote_plus
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, computed_field, field_validator

from src.core_shared.config import AppSettings


class Settings(AppSettings):
    """Основные настройки API (наследуют общие метаданные, режим разработки и Sentry)."""

    # --- Статические настройки ---

    # Хост API
    API_HOST: str = "0.0.0.0"  # noqa: S104 - 0.0.0.0 необходимо для Docker контейнера
    # Порт API
    API_PORT: int = 8000
    # Алгоритм подписи JWT
    JWT_ALGORITHM: str = "HS256"

    # --- Настройки, читаемые из .env ---

    # Настройки БД
    DB_NAME: str = Field(default="habit_engine_db", description="Название базы данных")
    DB_USER: str = Field(default="habit_engine_user", description="Имя пользователя базы данных")
    DB_PASSWORD: str = Field(..., description="Пароль пользователя базы данных")
    DB_HOST: str = Field(
        default="db",
        description="Имя хоста базы данных (название сервиса в Docker)",
    )
    DB_PORT: int = Field(default=5432, description="Порт хоста базы данных")

    # Настройки безопасности (токены выпускает внешний сервис авторизации с тем же секретом)
    JWT_SECRET_KEY: str = Field(..., description="Секрет для проверки подписи JWT")
    JWT_ISSUER: str | None = Field(default=None, description="Ожидаемый издатель токена (iss), None отключает проверку")
    JWT_AUDIENCE: str | None = Field(default=None, description="Ожидаемая аудитория токена (aud)")
    JWT_LEEWAY_SECONDS: int = Field(default=0, ge=0, description="Допуск расхождения часов при проверке exp")

    # Разрешенные источники CORS через запятую (пусто: CORS выключен)
    CORS_ORIGINS: str = Field(default="", description="Источники веб-клиентов через запятую")

    # Логирование в файл (в тестах отключается)
    LOG_TO_FILE: bool = Field(default=True, description="Писать логи API в файл")

    # Часовой пояс по умолчанию для пользователей без явно заданного
    DEFAULT_TIMEZONE: str = Field(default="UTC", description="IANA часовой пояс по умолчанию")

    # --- Бизнес-константы движка расписаний ---

    # Монеты за первое выполнение экземпляра привычки
    COINS_PER_HABIT_COMPLETION: int = Field(default=10, ge=0, description="Награда за выполнение привычки")
    # Размер пачки при массовой вставке экземпляров привычек
    INSTANCE_INSERT_CHUNK_SIZE: int = Field(default=500, gt=0, description="Размер пачки вставки")
    # Горизонт планирования для привычек вне программы
    STANDALONE_DAILY_HORIZON_DAYS: int = Field(default=30, gt=0, description="Дней для ежедневной привычки")
    STANDALONE_WEEKLY_OCCURRENCES: int = Field(default=4, gt=0, description="Повторов для еженедельной привычки")
    # Длина периода по умолчанию для агрегатов по диапазону дат
    RANGE_DEFAULT_DAYS: int = Field(default=14, gt=0, description="Дней в диапазоне по умолчанию")

    @field_validator("DEFAULT_TIMEZONE")
    @classmethod
    def validate_default_timezone(cls, value: str) -> str:
        """Неизвестный часовой пояс по умолчанию должен ломать запуск, а не каждый запрос."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"DEFAULT_TIMEZONE: неизвестный часовой пояс '{value}'") from None
        return value

    # --- Вычисляемые поля ---

    @property
    def cors_origin_list(self) -> list[str]:
        """Список источников CORS без пустых элементов."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # Формируем URL основной базы данных
    @computed_field(repr=False)  # type: ignore[prop-decorator]
    @property
    def DATABASE_URL(self) -> str:
        """Собирает URL для SQLAlchemy."""

        # Экранируем пользователя и пароль, чтобы спецсимволы не ломали URL
        encoded_user = quote_plus(self.DB_USER)
        encoded_password = quote_plus(self.DB_PASSWORD)

        return f"postgresql+psycopg://{encoded_user}:{encoded_password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"


# Создаем глобальный экземпляр настроек
settings = Settings()  # type: ignore[call-arg]
