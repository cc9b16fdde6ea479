from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # Redis (cache store + stats persistence)
    REDIS_HOST: str = Field("redis")
    REDIS_PORT: int = Field(6379)
    REDIS_PASSWORD: str | None = Field(None)
    REDIS_DB: int = Field(0)

    # Google Cloud
    GOOGLE_APPLICATION_CREDENTIALS: str | None = Field(None)
    GOOGLE_PROJECT_ID: str | None = Field(None)

    # Provider order (primary first, fallbacks after)
    STT_PROVIDERS: list[str] = Field(default_factory=lambda: ["gcp"])
    TRANSLATION_PROVIDERS: list[str] = Field(default_factory=lambda: ["gcp"])
    TTS_PROVIDERS: list[str] = Field(default_factory=lambda: ["gcp"])

    # Cache
    CACHE_ENABLED: bool = Field(True)
    CACHE_TTL_SEC: int = Field(3600)

    # Task queue
    BATCH_SIZE: int = Field(5, ge=1)
    BATCH_INTERVAL_SEC: float = Field(1.0, gt=0)
    MAX_PENDING_TASKS: int = Field(100, ge=1)

    # Admission control
    QUALITY_THRESHOLD: float = Field(0.7, ge=0.0, le=1.0)
    MAX_AUDIO_BYTES: int = Field(10 * 1024 * 1024)
    MAX_AUDIO_DURATION_SEC: float = Field(60.0)

    # Provider retries / timeouts
    RETRY_ATTEMPTS: int = Field(3, ge=1)
    RETRY_BASE_DELAY_SEC: float = Field(0.2, ge=0.0)
    RETRY_BACKOFF: float = Field(2.0, ge=1.0)
    STT_TIMEOUT_SEC: float = Field(7.0)
    TRANSLATE_TIMEOUT_SEC: float = Field(5.0)
    TTS_TIMEOUT_SEC: float = Field(10.0)
    PROVIDER_WORKERS: int = Field(8, ge=1)

    # Observability
    METRICS_ENABLED: bool = Field(False)
    METRICS_PORT: int = Field(8001)
    LOG_LEVEL: str = Field("INFO")
    STATS_PERSIST_INTERVAL_SEC: float = Field(30.0)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_file_encoding="utf-8"
    )


settings = Settings()
