"""Configuration management using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class APIConfig(BaseModel):
    """Remote catalog API settings."""
    timeout: int = 10
    max_retries: int = 3
    retry_delay: int = 1
    exponential_backoff: bool = True
    products_endpoint: str = "/api/products"


class StorageConfig(BaseModel):
    """Durable store settings."""
    namespace: str = "ecommerce"

    # When true, an initialized-but-empty catalog is loaded as empty instead
    # of being repopulated from the remote or static sources.
    respect_empty_catalog: bool = False


class CatalogConfig(BaseModel):
    """Query and browsing defaults."""
    default_page: int = 1
    default_limit: int = 12
    max_limit: int = 50
    search_debounce_ms: int = 300


class LoggingFilesConfig(BaseModel):
    """Log file paths."""
    catalog: str = "logs/catalog.log"
    store: str = "logs/store.log"
    error: str = "logs/error.log"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5
    files: LoggingFilesConfig = LoggingFilesConfig()


class YAMLConfig(BaseModel):
    """Configuration loaded from YAML file."""
    api: APIConfig = APIConfig()
    storage: StorageConfig = StorageConfig()
    catalog: CatalogConfig = CatalogConfig()
    logging: LoggingConfig = LoggingConfig()


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Remote catalog
    catalog_api_base_url: str = Field(
        default="http://localhost:3000", description="Base URL of the products API"
    )

    # Durable store
    catalog_storage_backend: str = Field(
        default="file", description="Durable store backend (file/memory/redis)"
    )
    catalog_storage_path: str = Field(
        default=".catalog_store", description="Directory used by the file backend"
    )
    catalog_redis_url: Optional[str] = Field(
        default=None, description="Redis URL used by the redis backend"
    )

    # Application settings
    environment: str = Field(default="development", description="Environment (development/production)")
    log_level: Optional[str] = Field(default=None, description="Override log level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


class AppConfig:
    """Combined application configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        self.env = Settings()

        # Load YAML config
        config_path = config_path or Path(__file__).parent.parent.parent / "config" / "config.yml"
        if config_path.exists():
            with open(config_path, "r") as f:
                yaml_data = yaml.safe_load(f) or {}
                self.yaml = YAMLConfig(**yaml_data)
        else:
            self.yaml = YAMLConfig()

        # Override log level if specified in env
        if self.env.log_level:
            self.yaml.logging.level = self.env.log_level

    @property
    def api(self) -> APIConfig:
        return self.yaml.api

    @property
    def storage(self) -> StorageConfig:
        return self.yaml.storage

    @property
    def catalog(self) -> CatalogConfig:
        return self.yaml.catalog

    @property
    def logging(self) -> LoggingConfig:
        return self.yaml.logging

    @property
    def is_production(self) -> bool:
        return self.env.environment.lower() == "production"


@lru_cache()
def get_config() -> AppConfig:
    """Get cached configuration instance."""
    return AppConfig()


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads env and YAML."""
    get_config.cache_clear()
