import secrets

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "PlateLink"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./platelink.db"

    # Sessions
    SECRET_KEY: str = Field(default_factory=lambda: secrets.token_hex(32))
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 8
    SESSION_COOKIE_SECURE: bool = False

    # Food listings
    FOOD_TTL_HOURS: int = 24
    SWEEP_EXPIRED_ON_STARTUP: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
