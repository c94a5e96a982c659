"""
Database engine, session factory and startup connectivity check.
"""

import logging
import time

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from shorty_app.config import settings
from shorty_app.exceptions import DatabaseUnavailableError

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite needs cross-thread access under FastAPI"""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
    )


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Yield one session per request and always close it"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping(bind: Engine) -> None:
    """Run a trivial query; raises SQLAlchemyError when unreachable"""
    with bind.connect() as connection:
        connection.execute(text("SELECT 1"))


def wait_for_database(
    bind: Engine,
    attempts: int = 10,
    backoff: float = 2.0,
    sleep=time.sleep,
) -> None:
    """
    Block until the database answers a ping.

    Useful when the app and the database start together (docker compose).
    Makes `attempts` tries with a fixed `backoff` between them.

    Raises:
        DatabaseUnavailableError: if every attempt failed
    """
    last_error = None
    for attempt in range(1, attempts + 1):
        try:
            ping(bind)
            logger.info("Connected to database")
            return
        except SQLAlchemyError as e:
            last_error = e
            logger.warning("Waiting for database... (attempt %d/%d)", attempt, attempts)
            if attempt < attempts:
                sleep(backoff)

    raise DatabaseUnavailableError(
        f"Failed to connect to database after {attempts} attempts: {last_error}"
    )
