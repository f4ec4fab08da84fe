# backend/slotbook/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/slotbook.db"
    redis_url: str = "redis://localhost:6379/0"

    default_timezone: str = "Europe/Skopje"
    horizon_days: int = 60

    app_url: str = "http://localhost:3000"
    resend_api_key: str | None = None
    email_from: str = "bookings@example.com"
    email_consumer_enabled: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative sqlite path -> absolute under the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
