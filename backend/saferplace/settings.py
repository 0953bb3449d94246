from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_PROVIDER: str = "sql"
    DATABASE_DRIVER: str = "sqlite3"
    DATABASE_DSN: str = "file:incidents.db"

    SESSION_TTL_SECONDS: int = 60 * 60

    APP_DEBUG: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
