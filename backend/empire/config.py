from __future__ import annotations
"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Empire media service settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "Empire"
    DEBUG: bool = True
    USE_MOCK_API: bool = True

    # --- Media generation ---
    MEDIA_PROVIDER: str = "gemini"  # gemini | genai | mock
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    IMAGE_MODEL: str = "gemini-3-flash-preview"
    MEDIA_STYLE_TEMPLATE: str = "High-end luxury fitness photography, dramatic lighting: {prompt}"
    MEDIA_TIMEOUT_SECONDS: float = 120.0  # 0 disables the bound

    # --- Reveal timing ---
    SPLASH_DURATION_MS: int = 800
    SETTLE_DELAY_MS: int = 100
    REVEAL_THRESHOLD: float = 0.1
    STAGGER_STEP_MS: int = 100

    # --- Page sessions ---
    PAGE_CONNECT_TIMEOUT_SECONDS: float = 30.0  # unconnected pages are closed after this; 0 disables
    HOST_QUEUE_SIZE: int = 256

    # --- HTTP ---
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def media_timeout(self) -> float | None:
        return self.MEDIA_TIMEOUT_SECONDS or None

    @property
    def page_connect_timeout(self) -> float | None:
        return self.PAGE_CONNECT_TIMEOUT_SECONDS or None

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()
