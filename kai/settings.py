from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SYSTEM_PROMPT = (
    "You are Kaï, a helpful assistant that gives clear, professional,\n"
    "context-aware answers. Keep responses clean and useful."
)


class Settings(BaseSettings):
    # Read from OS env and optional .env file in project root.
    _project_root = Path(__file__).parent.parent

    model_config = SettingsConfigDict(
        env_file=str(_project_root / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Server
    host: str = Field("0.0.0.0", alias="HOST", description="Bind address for uvicorn")
    port: int = Field(5000, alias="PORT", description="Bind port for uvicorn")

    # CORS
    cors_allow_origins: str = Field(
        "*",
        alias="CORS_ALLOW_ORIGINS",
        description="Comma separated list of allowed origins, * allows all",
    )

    # Redis connection string
    redis_url: str = Field(
        "redis://localhost:6379/0",
        alias="REDIS_URL",
        description="Redis connection URL, e.g. 'redis://redis:6379/0'",
    )

    # Gemini
    gemini_api_key: str | None = Field(
        default=None,
        alias="GEMINI_API_KEY",
        description="API key for the Google Gemini API",
    )
    gemini_model: str = Field(
        "gemini-2.0-flash",
        alias="GEMINI_MODEL",
        description="Gemini model id used for every chat turn",
    )
    system_prompt: str = Field(
        DEFAULT_SYSTEM_PROMPT,
        alias="SYSTEM_PROMPT",
        description="Fixed instruction placed at the top of every prompt",
    )

    # Chat pipeline
    cache_ttl_seconds: int = Field(
        86400,
        alias="CACHE_TTL_SECONDS",
        description="Lifetime of a cached reply in seconds",
        ge=1,
    )
    memory_limit: int = Field(
        8,
        alias="MEMORY_LIMIT",
        description="Number of most recent messages kept per session",
        ge=1,
    )
    stream_chunk_size: int = Field(
        30,
        alias="STREAM_CHUNK_SIZE",
        description="Characters per streamed text event",
        ge=1,
    )
    stream_chunk_interval_ms: int = Field(
        50,
        alias="STREAM_CHUNK_INTERVAL_MS",
        description="Delay between paced text events for freshly generated replies",
        ge=0,
    )
    recent_ips_limit: int = Field(
        50,
        alias="RECENT_IPS_LIMIT",
        description="Number of entries returned by /admin/recent-ips",
        ge=1,
    )

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL", description="Root log level")
    log_timezone: str | None = Field(
        default=None,
        alias="LOG_TIMEZONE",
        description="IANA timezone used for log timestamps; defaults to system local",
    )
    log_dir: str = Field("logs", alias="LOG_DIR", description="Directory for daily log files")

    @property
    def stream_chunk_interval(self) -> float:
        return self.stream_chunk_interval_ms / 1000.0

    @property
    def cors_origins(self) -> list[str]:
        if not self.cors_allow_origins or self.cors_allow_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


settings = Settings()
