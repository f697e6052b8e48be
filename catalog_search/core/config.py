"""
Application configuration
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Catalog Search API"
    APP_VERSION: str = "0.1.0"
    # Debug mode switches logging to the console renderer
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str

    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_RECYCLE: int = 3600  # 1 hour
    DB_POOL_TIMEOUT: int = 30

    @property
    def DATABASE_URL(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # Redis
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str
    REDIS_DB: int = 2  # 0=general, 2=response cache
    REDIS_SOCKET_TIMEOUT: int = 5

    @property
    def REDIS_URL(self) -> str:
        return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # CORS (comma-separated, "*" allows any origin)
    ALLOWED_ORIGINS: str = "*"

    # Search
    SEARCH_DEFAULT_LIMIT: int = 10
    SEARCH_MAX_LIMIT: int = 50
    SEARCH_MIN_QUERY_LENGTH: int = 2
    SEARCH_MAX_QUERY_LENGTH: int = 256
    SEARCH_CACHE_TTL_SECONDS: int = 300  # 5 minutes
    SEARCH_CACHE_L1_MAX_SIZE: int = 1000
    SEARCH_REQUEST_TIMEOUT_SECONDS: float = 10.0
    SEARCH_TEXT_CONFIG: str = "english"
    SEARCH_NAME_WEIGHT: str = "A"
    SEARCH_DESCRIPTION_WEIGHT: str = "B"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


# Global settings instance
settings = Settings()
