"""This module defines the configuration management for the application.

It uses Pydantic's BaseSettings to create a strongly-typed configuration
class that reads from environment variables and .env files. Besides the
database connection, it declares the tunables of the ledger core: the
forecast window, the suggestion threshold, the leveling strategy and the
experience points granted for each learning action.
"""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LevelStrategy(StrEnum):
    """Enumeration for the supported level derivation rules."""

    BANDED = "banded"
    UNIFORM = "uniform"


class Config(BaseSettings):
    """A Pydantic model for managing application settings.

    It automatically loads configuration from environment variables and .env files.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    POSTGRES_DRIVER: str = "postgresql+psycopg2"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "xpensify"
    POSTGRES_DB_SCHEMA: str | None = None
    POSTGRES_POOL_SIZE: int = 10
    POSTGRES_MAX_OVERFLOW: int = 20
    POSTGRES_POOL_TIMEOUT_SECONDS: int = 30

    LOG_LEVEL: str = "INFO"

    LEVEL_STRATEGY: LevelStrategy = LevelStrategy.BANDED
    UNIFORM_LEVEL_XP_STEP: int = Field(default=100, gt=0)

    FORECAST_WINDOW_DAYS: int = Field(default=30, gt=0)
    SUGGESTION_MIN_DESCRIPTION_LENGTH: int = Field(default=4, ge=1)

    XP_TRENDING_TIP: int = 10
    XP_CONCEPT_LESSON: int = 15
    XP_QUIZ: int = 20
    XP_PERSONALIZED_ADVICE: int = 25
    XP_MILESTONE_CONTENT: int = 75
    XP_TRANSACTION_LOGGED: int = 5

    RECEIPT_EXTRACTION_TIMEOUT_SECONDS: float = 60.0
    RECEIPT_EXTRACTION_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    RECEIPT_EXTRACTION_BACKOFF_FACTOR: float = 1.0


class ConfigProvider:
    """A provider class that acts as a factory for the application's configuration.

    It does not hold state but provides a method to create fresh config instances.
    """

    @staticmethod
    def get_config() -> Config:
        """Factory method that instantiates and returns a new Config object.

        Calling this function will always create a new instance of the Config model,
        which forces Pydantic to reload and re-validate all settings from the
        current environment variables. This ensures the configuration is always fresh.

        Returns:
            A new, validated Config object.
        """
        return Config()
