from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Annotated, List, Optional
import os


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )
    # Application
    app_name: str = "Daily Dose"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False, env="DEBUG")

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./dailydose.db", env="DATABASE_URL")
    database_echo: bool = Field(default=False, env="DATABASE_ECHO")

    # Slack
    slack_bot_token: Optional[str] = Field(default=None, env="SLACK_BOT_TOKEN")

    # Workflow & Scheduling
    enable_scheduled_tasks: bool = Field(default=True, env="ENABLE_SCHEDULED_TASKS")
    followup_delay_minutes: int = Field(default=15, env="FOLLOWUP_DELAY_MINUTES")
    scheduler_misfire_grace_seconds: int = Field(default=300, ge=1, env="SCHEDULER_MISFIRE_GRACE_SECONDS")
    # Process-local timezone when unset
    scheduler_timezone: Optional[str] = Field(default=None, env="SCHEDULER_TIMEZONE")

    # Mon-Thu + Sun, used when neither the user nor the organization sets work days
    default_work_days: Annotated[List[int], NoDecode] = Field(default=[1, 2, 3, 4, 7], env="DEFAULT_WORK_DAYS")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    @field_validator("default_work_days", mode="before")
    @classmethod
    def parse_work_days(cls, value):
        if isinstance(value, str):
            value = [int(part) for part in value.split(",") if part.strip()]
        return value

    @field_validator("default_work_days")
    @classmethod
    def check_work_days(cls, value: List[int]) -> List[int]:
        if not value or any(day < 1 or day > 7 for day in value):
            raise ValueError("work days must be integers between 1 (Monday) and 7 (Sunday)")
        return sorted(set(value))


# Global settings instance
settings = Settings()


# Environment-specific configurations
class DevelopmentConfig(Settings):
    debug: bool = True
    log_level: str = "DEBUG"


class ProductionConfig(Settings):
    debug: bool = False
    database_echo: bool = False
    log_level: str = "WARNING"


class TestingConfig(Settings):
    database_url: str = "sqlite+aiosqlite:///./test.db"
    enable_scheduled_tasks: bool = False


def get_settings() -> Settings:
    """Factory function to get settings based on environment"""
    env = os.getenv("ENVIRONMENT", "development").lower()

    if env == "production":
        return ProductionConfig()
    elif env == "testing":
        return TestingConfig()
    else:
        return DevelopmentConfig()
