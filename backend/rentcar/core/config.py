"""
Application settings for the RentCar backend
Values come from environment variables or a local .env file
"""
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "RentCar API"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Firestore
    USE_MOCK_FIREBASE: bool = False
    MOCK_FIREBASE_SEED: bool = True

    # HTTP
    CORS_ORIGINS: List[str] = ["*"]
    CRON_SECRET: Optional[str] = None

    # Inventory
    QUANTITY_DEBOUNCE_SECONDS: float = 1.0
    NOTIFICATION_QUEUE_LIMIT: int = 50
    FLEET_SESSION_IDLE_SECONDS: int = 1800
    LOW_STOCK_THRESHOLD: int = 2

    # Analytics windows
    ANALYTICS_MONTHS: int = 12
    ANALYTICS_DAYS: int = 30
    ANALYTICS_TOP_CARS: int = 5

    # Background reconciliation
    RECONCILE_SCHEDULER_ENABLED: bool = False
    RECONCILE_INTERVAL_MINUTES: int = 15
    TIMEZONE: str = "UTC"

    # Seeded admin account
    DEFAULT_ADMIN_NAME: str = "Admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@rentcar.com"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
