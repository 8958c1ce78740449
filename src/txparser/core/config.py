"""Application configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="tx-parser", description="Application name")
    environment: Literal["development", "testing", "staging", "production"] = Field(
        default="development", description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Debug mode flag")

    # API
    api_prefix: str = Field(default="", description="Mount point of the query API")
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="CORS allowed origins",
    )
    host: str = Field(default="0.0.0.0", description="HTTP bind host")
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP bind port")

    # Blockchain
    rpc_url: str = Field(
        default="https://ethereum-rpc.publicnode.com",
        description="Primary JSON-RPC endpoint",
    )
    rpc_backup_urls: list[str] = Field(
        default=[], description="Backup JSON-RPC endpoints"
    )
    rpc_timeout: float = Field(
        default=15.0, gt=0, description="JSON-RPC request timeout in seconds"
    )
    rpc_max_retries: int = Field(
        default=3, ge=1, description="Attempts per endpoint before failover"
    )
    rpc_retry_delay: float = Field(
        default=1.0, ge=0, description="Base delay between retries in seconds"
    )

    # Ingestion
    poll_interval: float = Field(
        default=3.0, gt=0, description="Seconds between ingestion iterations"
    )
    start_block: int = Field(
        default=0, ge=0, description="Initial cursor (last block treated as processed)"
    )
    shutdown_grace_period: float = Field(
        default=5.0, ge=0, description="Seconds to wait for the loop on shutdown"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log output format"
    )

    @computed_field
    @property
    def active_rpc_urls(self) -> list[str]:
        """Primary endpoint followed by the backups, in failover order."""
        return [self.rpc_url, *self.rpc_backup_urls]

    @computed_field
    @property
    def is_production(self) -> bool:
        """Check whether running in production."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
