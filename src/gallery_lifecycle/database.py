"""Database session factory and configuration.

Sweeps, restore and account teardown all receive an explicit ``Session``;
this module only builds engines and sessions for the entry points
(Celery tasks, operator scripts) that have to create one.
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import get_settings


def build_engine(database_url: Optional[str] = None) -> Engine:
    """Create an engine with connection pooling.

    Pool settings only apply to PostgreSQL (not SQLite).
    """
    url = database_url or get_settings().DATABASE_URL

    engine_kwargs = {
        "pool_pre_ping": True,
        "echo": False,
    }
    if not url.startswith("sqlite"):
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    return create_engine(url, **engine_kwargs)


_session_factory: Optional[sessionmaker] = None


def get_session_factory() -> sessionmaker:
    """Return the process-wide session factory, creating it on first use."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=build_engine(),
        )
    return _session_factory


def SessionLocal() -> Session:
    """Open a new session from the process-wide factory."""
    return get_session_factory()()
