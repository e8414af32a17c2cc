# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - JWT_SECRET (HS256 secret used to verify bearer tokens)

    Optional:
      - DATABASE_URL (defaults to a local SQLite file; Postgres URLs get
        sslmode=require and a single pooled connection)
      - pricing / cart rule knobs below
    """

    PROJECT_NAME: str = "Atomic Shop API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./atomic_shop.db"

    # JWT verification (backend-side)
    JWT_SECRET: str
    JWT_ALG: str = "HS256"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://0.0.0.0:3000",
        "http://[::1]:3000",
    ]

    # Pricing
    CURRENCY: str = "USD"
    TAX_RATE: float = 0.0875
    FREE_SHIPPING_THRESHOLD_CENTS: int = 5000

    # Cart rules
    LOW_STOCK_THRESHOLD: int = 5
    MAX_CART_ITEMS: int = 50
    MAX_CART_LINES: int = 20
    MIN_ORDER_CENTS: int = 1000
    MAX_UNITS_PER_ITEM: int = 10
    HIGH_QUANTITY_WARNING: int = 10

    # Carts untouched for this long are swept to 'abandoned'
    CART_ABANDONMENT_MINUTES: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
