from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Stock Ledger"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./inventory.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_SQL: bool = False

    # ==============================
    # Ledger
    # ==============================
    HISTORY_LIMIT: int = 30
    UNKNOWN_USER_NAME: str = "Desconocido"
    WORK_SESSION_IDLE_MINUTES: int = 240

    # ==============================
    # Document store
    # ==============================
    STORE_MAX_BATCH_OPERATIONS: int = 500
    RESTORE_CHUNK_SIZE: int = 400

    # ==============================
    # Seeding
    # ==============================
    SEED_DEFAULT_PRODUCTS: bool = True
    SEED_PRODUCTS_FILE: Optional[str] = None
    SEED_USERS_FILE: Optional[str] = None

    # ==============================
    # Sessions
    # ==============================
    SESSION_SECRET: Optional[str] = None
    SESSION_COOKIE: str = "inventory_session"
    SESSION_STORE_PATH: str = ".inventory_session.json"


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
