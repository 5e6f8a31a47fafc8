"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://horeca:horeca_dev_password@db:5432/horeca"

    # Authentication (admin back office)
    admin_api_key: str = "dev-admin-key-change-in-production"

    # Request handling
    request_timeout_seconds: float = 15.0

    # Enquiries
    status_counts_ttl_seconds: int = 30
    idempotency_ttl_seconds: int = 24 * 60 * 60

    # Cart
    free_shipping_threshold: int = 500

    # AI text generation
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    ai_timeout_seconds: float = 30.0
    ai_cooldown_seconds: float = 2.0

    # Messaging
    whatsapp_business_number: str = ""

    # Uploads
    upload_dir: str = "uploads"
    upload_base_url: str = "/uploads"
    upload_max_bytes: int = 10 * 1024 * 1024

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
