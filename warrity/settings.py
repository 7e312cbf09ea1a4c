from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Warrity"
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent / "data")
    LOG_LEVEL: str = "INFO"

    API_KEY: str = Field(default="", validation_alias=AliasChoices("API_KEY", "API_TOKEN"))
    JWT_SECRET: str = "change-me"
    JWT_ACCESS_TTL_MIN: int = 15
    JWT_REFRESH_TTL_DAYS: int = 7
    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=31)
    # Comma separated, e.g. "https://warrity.example,http://localhost:3000"
    ALLOWED_ORIGINS: str = ""

    DB_URL: str | None = Field(default=None, validation_alias=AliasChoices("DATABASE_URL", "DB_URL"))

    # Warranty status policy
    EXPIRING_WINDOW_DAYS: int = Field(default=30, ge=0)
    REMINDER_WINDOW_CHOICES: str = "7,14,30,60,90"

    MAX_DOCUMENT_BYTES: int = 10 * 1024 * 1024

    HOST: str = "0.0.0.0"
    PORT: int = 8090

    @property
    def allowed_origins(self) -> list[str]:
        return _split_csv(self.ALLOWED_ORIGINS)

    @property
    def documents_dir(self) -> Path:
        return self.DATA_DIR / "documents"

    @property
    def reminder_windows(self) -> list[int]:
        """Every window the expiring query accepts, the list-view default included."""

        windows = {int(item) for item in _split_csv(self.REMINDER_WINDOW_CHOICES)}
        windows.add(self.EXPIRING_WINDOW_DAYS)
        return sorted(windows)

    @field_validator("REMINDER_WINDOW_CHOICES")
    @classmethod
    def validate_reminder_windows(cls, value: str) -> str:
        for item in _split_csv(value):
            if not item.isdigit():
                raise ValueError("REMINDER_WINDOW_CHOICES must be comma separated non-negative integers")
        return value


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    if not settings.DB_URL:
        settings.DB_URL = f"sqlite:///{settings.DATA_DIR / 'warrity.db'}"
    return settings


settings = get_settings()
