"""
Test configuration and fixtures for Shorty.
This centralizes all test setup, making individual tests clean.
"""

import os

# Must be set before anything imports shorty_app.config
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["QUEUE_BACKEND"] = "memory"
os.environ["CLICK_WORKER_INTERVAL"] = "0.05"
os.environ["DB_CONNECT_RETRIES"] = "1"
os.environ.pop("BASE_URL", None)

import pytest
from fastapi.testclient import TestClient

from main import app
from shorty_app.database.connection import Base, SessionLocal, engine
from shorty_app.dependencies import get_queue
from shorty_app.queue.factory import QueueFactory


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database for each test.
    This ensures tests are isolated and don't affect each other.
    """
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def queue():
    """
    A fresh singleton click queue per test.
    QUEUE_BACKEND=memory above makes the factory build an InMemoryQueue.
    """
    QueueFactory.clear_instance()
    get_queue.cache_clear()

    yield get_queue()

    QueueFactory.clear_instance()
    get_queue.cache_clear()


@pytest.fixture(scope="function")
def client(db_session, queue):
    """
    Create a test client sharing the per-test click queue.
    Entering the client runs the lifespan, so the click worker is live.
    """
    with TestClient(app) as test_client:
        yield test_client

    # Clean up overrides
    app.dependency_overrides.clear()
