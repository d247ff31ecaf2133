"""Configuration settings for the PropertyPulse API."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration."""

    url: str = Field(default="sqlite:///./propertypulse.db")
    echo: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="DB_", extra="ignore")


class APISettings(BaseSettings):
    """API configuration."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)

    # Authentication
    secret_key: str = Field(default="your-secret-key-change-this")
    algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=30)

    # 401 keeps the legacy behaviour, 403 separates "not the owner" from "not signed in"
    authorization_denied_status: int = Field(default=401)

    # Pagination
    default_page_size: int = Field(default=6, ge=1)
    max_page_size: int = Field(default=50, ge=1)

    # When set, a successful create redirects to {site_url}/properties/{id}
    site_url: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="API_", extra="ignore")


class StorageSettings(BaseSettings):
    """Object store configuration (any S3-compatible service)."""

    bucket_name: str = Field(default="propertypulse")
    endpoint_url: Optional[str] = Field(default=None)
    access_key: str = Field(default="")
    secret_key: str = Field(default="")
    region: str = Field(default="us-east-1")
    addressing_style: str = Field(default="path")
    public_base: Optional[str] = Field(default=None)

    folder: str = Field(default="propertypulse")
    max_concurrent_uploads: int = Field(default=4, ge=1)
    upload_timeout: Optional[float] = Field(default=None, gt=0)
    cleanup_on_failure: bool = Field(default=True)

    model_config = SettingsConfigDict(env_prefix="STORAGE_", extra="ignore")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: str = Field(default="development")

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    # Component settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    api: APISettings = Field(default_factory=APISettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    model_config = SettingsConfigDict(extra="ignore", env_file=".env", env_file_encoding="utf-8")


# Global settings instance
settings = Settings()
