"""Configuration management using Pydantic Settings"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (durable storage for discount selections)
    database_url: str = "sqlite:///./ticket_gateway.db"

    # External Services
    backend_api_base: str = "http://localhost:8000/api"

    # Service
    service_name: str = "ticket-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Checkout
    payment_window_seconds: int = 2 * 60 * 60  # 2 hours
    timer_tick_seconds: float = 1.0
    max_payment_proof_bytes: int = 5 * 1024 * 1024  # 5MB
    allowed_payment_proof_types: List[str] = ["image/jpeg", "image/jpg", "image/png", "application/pdf"]


settings = Settings()
