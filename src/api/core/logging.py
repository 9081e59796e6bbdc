"""Создаём экземпляр настроенного логгера для API"""

from src.core_shared.logging_setup import LogConfig, setup_logger

from .config import settings

# Получаем экземпляр логгера API
api_log = setup_logger(
    service_name="API",
    log_config=LogConfig(enable_file_logging=settings.LOG_TO_FILE),
    log_level_override=settings.LOG_LEVEL,
)
