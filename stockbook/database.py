"""
Database configuration and session management.

Transaction pattern:
- get_db() is the only place that commits request transactions
- Services use db.add() to stage changes and db.flush() to write them
- Document counters are the exception: SqlCounterStore commits every
  increment in its own short transaction so a number is durable before it
  is handed out, independently of the request transaction
"""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from stockbook.config import settings


def build_engine_args(database_url: str, timeout: float) -> dict[str, Any]:
    """Engine keyword arguments for the given database URL."""
    engine_args: dict[str, Any] = {
        "echo": settings.DEBUG,
    }

    # SQLite needs check_same_thread=False for multi-threading
    if database_url.startswith("sqlite"):
        engine_args["connect_args"] = {
            "check_same_thread": False,
            "timeout": timeout,
        }
    elif database_url.startswith("postgresql"):
        engine_args["pool_pre_ping"] = True
        engine_args["pool_timeout"] = timeout
        engine_args["connect_args"] = {
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        }
        if settings.LOW_MEMORY_MODE:
            engine_args["pool_size"] = 3
            engine_args["max_overflow"] = 2
        else:
            engine_args["pool_size"] = 10
            engine_args["max_overflow"] = 20
        engine_args["pool_recycle"] = 3600
    else:
        engine_args["pool_pre_ping"] = True
        engine_args["pool_timeout"] = timeout

    return engine_args


def make_engine(database_url: str, timeout: float | None = None) -> Engine:
    if timeout is None:
        timeout = settings.SEQUENCE_STORE_TIMEOUT
    return create_engine(database_url, **build_engine_args(database_url, timeout))


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,  # Manual flush for better control over transaction boundaries
        bind=bind,
    )


engine = make_engine(settings.DATABASE_URL)

SessionLocal = make_session_factory(engine)


class Base(DeclarativeBase):
    """Base class for all database models"""

    pass


def get_db():
    """
    Dependency that yields a database session.

    Commits on successful completion and rolls back on error.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine | None = None):
    """Create database tables"""
    # Models must be imported so their tables are registered on Base.metadata
    import stockbook.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def close_db():
    """Dispose of database connections"""
    engine.dispose()
