from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str
    redis_url: str = "redis://localhost:6379/0"
    service_name: str = "storefront"
    log_level: str = "INFO"
    cors_origins: str = "*"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    sales_analytics_cache_ttl: int = 300
    order_timeout_seconds: float = 30.0

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v.startswith(("postgresql", "sqlite")):
            raise ValueError("Only PostgreSQL and SQLite are supported")
        return v


settings = Settings()
