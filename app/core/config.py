from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional

class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Surplus Store"
    APP_PORT: int = 3000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]
    
    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "surplus_store"
    POSTGRES_PORT: int = 5432
    DB_URL: Optional[str] = None  # Full SQLAlchemy URL, overrides POSTGRES_*
    
    # Inventory policy
    RESERVATION_DAILY_LIMIT: int = 5
    DEFAULT_LOW_STOCK_THRESHOLD: int = 5
    
    # Realtime
    REALTIME_MAX_PENDING: int = 500  # Undelivered messages before a client is dropped
    
    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return f"postgresql+psycopg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
    
    class Config:
        env_file = ".env"
        extra = "ignore"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
