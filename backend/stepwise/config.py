from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    DATABASE_URL: str = "sqlite+aiosqlite:///./stepwise.db"
    DATABASE_ECHO: bool = False
    # Create missing tables on startup instead of running migrations (SQLite dev setups).
    DATABASE_AUTO_CREATE: bool = False

    CORS_ORIGINS: str = "http://localhost:3000"

    LOG_LEVEL: str = "INFO"

    # CSV import limits
    CSV_MAX_UPLOAD_BYTES: int = 1024 * 1024
    CSV_ALLOWED_MIME: str = "text/csv,text/plain,application/csv,application/vnd.ms-excel"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def csv_allowed_mime_set(self) -> set[str]:
        return {item.strip().lower() for item in self.CSV_ALLOWED_MIME.split(",") if item.strip()}


settings = Settings()
