"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./labconsole.db"
    CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Lab console rules
    MAX_RESERVATION_MINUTES: int = 240
    AUTO_APPROVE_RESERVATIONS: bool = False

    class Config:
        env_file = ".env"


settings = Settings()
