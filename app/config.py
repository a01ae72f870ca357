from functools import lru_cache

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    database_url: str

    # Security
    SECRET_KEY: str = "change-me-to-a-long-random-secret-key"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_ISSUER: str = "todo-list-api"
    JWT_AUDIENCE: str = "todo-list-clients"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    # Background jobs
    ENABLE_SCHEDULER: bool = True
    SCHEDULER_LOCK_FILE: str = "/tmp/todo_scheduler.lock"
    CLEANUP_RETENTION_DAYS: int = 30

    # Startup
    CREATE_TABLES_ON_STARTUP: bool = True
    SEED_DEMO_DATA: bool = False

    class Config:
        env_file = ".env"

    @property
    def async_database_url(self) -> str:
        # Ensure we use the async driver
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://")

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
