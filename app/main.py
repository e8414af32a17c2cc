# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from app.core.config import get_settings
from app.database import create_db_and_tables

# Table modules must be imported before create_all()
from app.models import cart, order, product, shipping, user  # noqa: F401

from app.routers import admin_carts, cart as cart_routes, orders, products

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create tables on startup and log the pricing configuration in effect.
    """
    try:
        create_db_and_tables()
    except Exception:
        logger.exception("Startup: could not prepare the database")
        raise

    logger.info(
        "Startup: %s ready (currency=%s, tax_rate=%s, free_shipping_over=%s cents)",
        settings.PROJECT_NAME,
        settings.CURRENCY,
        settings.TAX_RATE,
        settings.FREE_SHIPPING_THRESHOLD_CENTS,
    )
    yield
    logger.info("Shutdown: %s stopped", settings.PROJECT_NAME)


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "X-Session-Id"],
)

for module in (products, cart_routes, orders, admin_carts):
    app.include_router(module.router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "atomic-shop"}
