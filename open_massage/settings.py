"""
Настройки приложения из переменных окружения.

Используется pydantic-settings; переменные имеют префикс OPEN_MASSAGE_
и могут быть заданы в файле .env.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Конфигурация приложения."""

    model_config = SettingsConfigDict(
        env_prefix="OPEN_MASSAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    storage_backend: Literal["memory", "json"] = Field(
        default="memory", description="Хранилище: memory или json"
    )
    data_dir: str = Field(
        default="./data", description="Каталог JSON-файлов для storage_backend=json"
    )
    currency: str = Field(
        default="SGD", min_length=3, max_length=3, description="Валюта цен услуг"
    )
    log_level: str = Field(default="INFO", description="Уровень логирования")
