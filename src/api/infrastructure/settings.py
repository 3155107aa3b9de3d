"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database server settings shared by every division database.

    Environment variables:
        DIVISIONS_DB_HOST: Database host (default: localhost)
        DIVISIONS_DB_PORT: Database port (default: 5432)
        DIVISIONS_DB_USERNAME: Database user (default: postgres)
        DIVISIONS_DB_PASSWORD: Database password (required in production)
        DIVISIONS_DB_PLATFORM_DATABASE: Shared access-control database (default: ip_auth_database)
        DIVISIONS_DB_POOL_MIN_CONNECTIONS: Minimum connections per pool (default: 1)
        DIVISIONS_DB_POOL_MAX_CONNECTIONS: Maximum connections per pool (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="DIVISIONS_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    username: str = Field(default="postgres", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    platform_database: str = Field(
        default="ip_auth_database",
        description=(
            "Shared database holding users, division grants and company "
            "settings; also used to issue CREATE/DROP DATABASE"
        ),
    )
    pool_min_connections: int = Field(
        default=1,
        description="Minimum connections per pool",
        ge=0,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections per pool",
        ge=1,
        le=100,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    def connection_string(self, database: str) -> str:
        """Generate a connection string for a database (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{database}"


class DivisionSettings(BaseSettings):
    """Division lifecycle settings.

    Environment variables:
        DIVISIONS_TEMPLATE_CODE: Division every other division is cloned from (default: FP)
        DIVISIONS_SCHEMA_NAME: Schema holding division tables (default: public)
        DIVISIONS_BACKUPS_DIR: Directory receiving backup folders (default: backups)
        DIVISIONS_ASSETS_DIR: Directory holding financials workbooks (default: data)
        DIVISIONS_TEMPLATE_WORKBOOK: Workbook cloned for new divisions (default: financials-fp.xlsx)
        DIVISIONS_RESTORE_BATCH_SIZE: Rows inserted per restore transaction (default: 100)
    """

    model_config = SettingsConfigDict(
        env_prefix="DIVISIONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    template_code: str = Field(
        default="FP",
        description="Code of the template division",
        min_length=1,
        max_length=10,
    )
    schema_name: str = Field(
        default="public",
        description="Schema holding division tables",
    )
    backups_dir: Path = Field(
        default=Path("backups"),
        description="Directory receiving backup folders",
    )
    assets_dir: Path = Field(
        default=Path("data"),
        description="Directory holding financials workbooks",
    )
    template_workbook: str = Field(
        default="financials-fp.xlsx",
        description="Workbook cloned when a division is created",
    )
    restore_batch_size: int = Field(
        default=100,
        description="Rows inserted per restore transaction",
        ge=1,
        le=10000,
    )

    @field_validator("template_code")
    @classmethod
    def normalize_template_code(cls, value: str) -> str:
        """Division codes are stored upper-case."""
        return value.strip().upper()


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(
        default="Division Lifecycle Engine", description="Application name"
    )
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def divisions(self) -> DivisionSettings:
        """Get division lifecycle settings."""
        return get_division_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_division_settings() -> DivisionSettings:
    """Get cached division lifecycle settings."""
    return DivisionSettings()
