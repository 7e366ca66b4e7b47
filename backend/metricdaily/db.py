from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from metricdaily.core.config import settings

# SQLAlchemy Base class for models to inherit
Base = declarative_base()


def make_engine(url: str):
    if url.startswith("sqlite"):
        # One shared connection so an in-memory database survives across
        # sessions and the threads FastAPI runs sync endpoints on
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        url,
        pool_pre_ping=True,   # helps avoid stale connections
    )


# Create SQLAlchemy engine (connects to Postgres by default)
engine = make_engine(settings.database_url)

# Factory that creates DB sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def open_store():
    """Open the configured Store backend; the SQL session is closed on exit."""
    from metricdaily.storage.local import JsonFileStore
    from metricdaily.storage.sql import SqlStore

    if settings.storage_backend == "local":
        yield JsonFileStore(settings.local_store_path)
        return

    db = SessionLocal()
    try:
        yield SqlStore(db)
    finally:
        db.close()


# Dependency we will use in FastAPI routes
def get_store():
    """Yield the configured Store backend for one request."""
    with open_store() as store:
        yield store
