# app/database.py
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()


def _with_sslmode(url: str) -> str:
    if "sslmode=" in url:
        return url
    return url + ("&" if "?" in url else "?") + "sslmode=require"


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Engine for the configured database.

    Postgres runs behind a connection pooler in the cloud: SSL is enforced
    and each process holds a single pre-pinged connection. SQLite (local
    runs) is shared across FastAPI's threadpool.
    """
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})

    return create_engine(
        _with_sslmode(url),
        echo=echo,
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables() -> None:
    """Create missing tables; called once from the app lifespan."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """FastAPI dependency yielding one Session per request."""
    with Session(engine) as session:
        yield session
