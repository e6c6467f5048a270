"""
App configuration - using pydantic settings for env vars
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App settings - loads from .env file"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # basic app stuff
    app_name: str = Field(default="NoteCollab API")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)  # set to True for dev

    # server config
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    reload: bool = Field(default=False)

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    redis_max_connections: int = Field(default=10, description="Redis connection pool size")

    # JWT - same token format as the notes API
    secret_key: str = Field(
        default="your-secret-key-change-in-production", description="JWT secret key"
    )
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(
        default=15, description="Access token expiration in minutes"
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"], description="CORS allowed origins"
    )
    cors_allow_credentials: bool = Field(default=True, description="CORS allow credentials")

    # Collaboration hub
    collab_presence_colors: list[str] = Field(
        default=[
            "#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8",
            "#F7DC6F", "#BB8FCE", "#85C1E2", "#F8B739", "#52B788",
        ],
        description="Palette presence colors are picked from",
    )
    collab_color_strategy: str = Field(
        default="random", description="Color assignment: 'random' or 'round_robin'"
    )
    collab_idle_timeout_seconds: float = Field(
        default=300.0, description="Evict connections idle for longer than this"
    )
    collab_sweep_interval_seconds: float = Field(
        default=60.0, description="How often the idle sweeper runs (0 disables it)"
    )
    collab_require_token: bool = Field(
        default=True, description="Reject websocket connections without a valid bearer token"
    )
    collab_send_queue_size: int = Field(
        default=256, description="Per-connection outbound frame buffer"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log format"
    )
    log_dir: str = Field(default="logs", description="Directory for rotating log files")

    # Environment
    environment: str = Field(default="development", description="Environment name")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
