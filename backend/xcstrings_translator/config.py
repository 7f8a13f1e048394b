"""Application configuration."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "XCStrings Translator"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    frontend_port: int = 3000

    # CORS - dynamically built based on frontend_port
    cors_origins: list[str] = []

    # Translation defaults (TranslationOptions falls back to these)
    default_provider: str = "openai"
    default_model: str = "gpt-4o-mini"
    max_retries: int = 3
    temperature: float = 0.3
    retry_delay: float = 1.0  # Base of the exponential backoff (seconds)
    retry_max_delay: float = 30.0
    request_timeout: float = 120.0
    chunk_max_tokens: int = 4000

    # Translation cache
    cache_persist: bool = True  # False keeps the cache in memory only
    cache_dir: Path = Path(__file__).parent.parent.parent / "data" / "cache"
    cache_file_name: str = "translation_cache.json"
    cache_ttl_days: int = 7
    cache_max_entries: int = 10_000

    # Fallback API key for the HTTP service when a request carries none
    openai_api_key: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Build CORS origins based on frontend port
        if not self.cors_origins:
            self.cors_origins = [
                f"http://localhost:{self.frontend_port}",
                f"http://127.0.0.1:{self.frontend_port}",
            ]

    @property
    def cache_file(self) -> Path:
        """Location of the persisted translation cache."""
        return self.cache_dir / self.cache_file_name

    @property
    def cache_ttl_ms(self) -> int:
        """Cache entry lifetime in milliseconds."""
        return self.cache_ttl_days * 24 * 60 * 60 * 1000


settings = Settings()
