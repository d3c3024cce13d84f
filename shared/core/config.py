import os
from decimal import Decimal
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    APP_NAME: str = "Hotel Back Office API"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]
    AUTO_CREATE_TABLES: bool = True

    # Full URL wins over the DB_* parts (e.g. sqlite:///./hotel.db)
    DATABASE_URL: Optional[str] = None
    DB_USER: str = "postgres"
    DB_PASS: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"
    DB_NAME: str = "hotel"
    DB_POOL_SIZE: int = 2
    DB_MAX_OVERFLOW: int = 2
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 300

    # Reservation defaults
    DEFAULT_CHECK_IN_TIME: str = "14:00"
    DEFAULT_CHECK_OUT_TIME: str = "12:00"
    DEFAULT_CANCELLATION_REASON: str = "No reason provided"
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100
    BOOKING_NUMBER_PREFIX: str = "BK"
    BOOKING_NUMBER_MAX_ATTEMPTS: int = 3

    # Suggested desk fees
    EARLY_CHECK_IN_FEE_PER_HOUR: Decimal = Decimal("100")
    LATE_CHECK_IN_FEE_PER_DAY: Decimal = Decimal("500")
    LATE_CHECKOUT_FEE_PER_HOUR: Decimal = Decimal("50")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL or (
    f"postgresql+psycopg2://{settings.DB_USER}:{settings.DB_PASS}@{settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME}"
)
