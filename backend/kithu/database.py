"""Database connection and session management."""
from collections.abc import Generator
from datetime import datetime, timezone
from pathlib import Path

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from kithu.config import Settings

Base = declarative_base()


def create_db_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine with store timeouts applied."""
    url = make_url(settings.database_url)
    kwargs = {"echo": settings.debug}

    if url.get_backend_name() == "sqlite":
        # SQLite requires check_same_thread=False for FastAPI
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.database_timeout_seconds,
        }
        if url.database in (None, "", ":memory:"):
            # In-memory databases live and die with a single connection
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        kwargs["pool_timeout"] = settings.database_timeout_seconds
        kwargs["pool_pre_ping"] = True

    return create_engine(url, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
