"""
Database engine and session factory.

Local dev and tests run on SQLite (``DATABASE_URL`` defaults to a file in the
working directory, ``sqlite://`` gives an in-memory database). Any SQLAlchemy
URL works in production.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from kisan_sahay.core.config import settings

DATABASE_URL = settings.DATABASE_URL

ENGINE_INIT_ERROR: Exception | None = None
ENGINE_INIT_ERROR_MSG: str | None = None


def _create_engine():
    url = make_url(DATABASE_URL)
    if url.get_backend_name() != "sqlite":
        return create_engine(DATABASE_URL, pool_pre_ping=True)
    kwargs = {"connect_args": {"check_same_thread": False}}
    # In-memory SQLite must share one connection or every session sees an empty database
    if url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(DATABASE_URL, **kwargs)


try:
    engine = _create_engine()
except Exception as exc:  # pragma: no cover - surface initialization errors
    ENGINE_INIT_ERROR = exc
    ENGINE_INIT_ERROR_MSG = f"{exc.__class__.__name__}: {exc}"
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def ping_database() -> None:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
