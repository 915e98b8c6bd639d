"""
Settings — конфигурация Constitution Engine

Значения читаются из переменных окружения с префиксом TREBAL_ и из .env.
"""
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Настройки engine (префикс окружения TREBAL_)."""

    active_rule_version: str = Field(
        default="2025.1",
        min_length=1,
        description="Rule table version applied to newly purchased certificates",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log format: 'json' for structured logging, 'text' for plain text",
    )
    strict_contracts: bool = Field(
        default=True,
        description="Validate every produced certificate and audit fact against JSON Schema contracts",
    )

    model_config = SettingsConfigDict(
        env_prefix="TREBAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Уровень логирования в верхнем регистре, неизвестные уровни отклоняются."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> EngineSettings:
    """Кэшированный экземпляр настроек."""
    return EngineSettings()
