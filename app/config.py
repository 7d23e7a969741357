"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./advisor_alerts.db"

    # Application
    APP_ENV: str = "development"
    API_V1_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    # Alerts
    ALERTS_TIMEZONE: str = "America/Argentina/Buenos_Aires"
    ALERTS_EMAIL_TIMEOUT_SECONDS: float = 30.0
    PERMISSIONS_CACHE_TTL_SECONDS: int = 300

    # Email
    EMAIL_FROM: str = "CRM Comercial <alertas@localhost>"
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REFRESH_TOKEN: str = ""
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""

    # CORS
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        if self.APP_ENV == "development":
            return ["*"]
        return [self.FRONTEND_URL, "http://localhost:3000"]

    @property
    def OBJECTIVES_URL(self) -> str:
        return f"{self.FRONTEND_URL.rstrip('/')}/objectives"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
