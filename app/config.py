"""
Configuration Management
Environment-based settings for the database, security and HTTP server
"""

from functools import lru_cache
from typing import Optional
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # App config
    app_name: str = "Customer Service"
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 9999

    # Database - either a full DSN or service-specific parts
    database_url: Optional[str] = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "db"
    db_service_user: str = "postgres"
    db_service_password: str = "postgres"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_connect_timeout: float = 5.0
    db_command_timeout: Optional[float] = 30.0
    create_schema: bool = True

    # Security
    bcrypt_rounds: int = 12
    token_ttl_minutes: int = 60
    manager_auth_enabled: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "default"
    logging_config_path: Optional[str] = None

    # CORS
    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('port', 'postgres_port')
    @classmethod
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError('Port must be between 1 and 65535')
        return v

    @field_validator('bcrypt_rounds')
    @classmethod
    def validate_bcrypt_rounds(cls, v):
        # bcrypt accepts 4..31
        if not 4 <= v <= 31:
            raise ValueError('bcrypt rounds must be between 4 and 31')
        return v

    @field_validator('token_ttl_minutes')
    @classmethod
    def validate_token_ttl(cls, v):
        if v < 1:
            raise ValueError('Token TTL must be at least 1 minute')
        return v

    @property
    def dsn(self) -> str:
        """Build PostgreSQL connection string"""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.db_service_user}:{self.db_service_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    def log_config(self):
        """Log configuration (without sensitive data)"""
        logger.info(f"Listening on {self.host}:{self.port}")
        if self.database_url:
            logger.info("Database: DATABASE_URL")
        else:
            logger.info(f"Database: {self.postgres_host}:{self.postgres_port}/{self.postgres_db} "
                        f"as {self.db_service_user}")
        logger.info(f"Pool Size: {self.db_pool_min_size}..{self.db_pool_max_size}")
        logger.info(f"Token TTL: {self.token_ttl_minutes} min, bcrypt rounds: {self.bcrypt_rounds}")
        logger.info(f"Manager basic auth: {'enabled' if self.manager_auth_enabled else 'disabled'}")


@lru_cache
def get_settings() -> Settings:
    """Get application settings instance"""
    return Settings()
