from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "eci"
    POSTGRES_USER: str = "eci"
    POSTGRES_PASSWORD: str = "eci"

    # Full SQLAlchemy URL; takes precedence over the POSTGRES_* fields
    DATABASE_URL: Optional[str] = None
    # Ledger may live in its own store; defaults to the inventory database
    LEDGER_DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = False

    # Catalog service used for product display enrichment (optional)
    PRODUCTS_SERVICE_URL: Optional[str] = None
    PRODUCTS_TIMEOUT_SECONDS: float = 5.0

    ADJUST_MAX_ATTEMPTS: int = 5
    DEFAULT_LOW_STOCK_THRESHOLD: int = 10
    LIST_DEFAULT_LIMIT: int = 50
    LIST_MAX_LIMIT: int = 500

    SERVICE_NAME: str = "inventory-service"
    SERVICE_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def ledger_database_url(self) -> str:
        return self.LEDGER_DATABASE_URL or self.database_url

@lru_cache
def get_settings() -> Settings:
    return Settings()
