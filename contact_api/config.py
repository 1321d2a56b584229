"""Application configuration via environment variables."""

from typing import Optional

from pydantic_settings import BaseSettings

DEFAULT_ALLOWED_ORIGINS = "http://localhost:3000,http://localhost:5500,http://127.0.0.1:5500"


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite+aiosqlite:///./contact.db"
    database_auto_create: bool = True

    # Redis (shared rate-limit counters; in-process when unset)
    redis_url: Optional[str] = None

    # Resend
    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com"
    resend_from_email: str = "Portfolio <onboarding@resend.dev>"
    email_to: str = ""
    email_timeout_seconds: float = 10.0

    # Rate limiting
    rate_limit_window_minutes: int = 15
    rate_limit_max_requests: int = 5
    api_rate_limit_window_minutes: int = 15
    api_rate_limit_max_requests: int = 100
    trust_proxy: bool = False

    # CORS
    frontend_url: Optional[str] = None
    allowed_origins: str = DEFAULT_ALLOWED_ORIGINS  # comma-separated

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    # App
    log_level: str = "INFO"
    environment: str = "development"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def cors_origins(self) -> list[str]:
        """Origins accepted by CORS; any origin in development."""
        if self.is_development:
            return ["*"]
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        if self.frontend_url:
            origins.append(self.frontend_url)
        return origins


settings = Settings()
