from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./expenses.db"
    app_env: str = "dev"
    app_cors_origins: str = "*"
    log_level: str = "INFO"
    # Signed session tokens (Authorization: Bearer or cookie)
    auth_secret: str = "change-me-in-production"
    auth_cookie_name: str = "expense_session"
    auth_session_hours: float = 24 * 7


settings = Settings()
