"""
FastAPI dependencies for dependency injection.

Routes never touch module-level state directly: the session, the click
queue and the service are injected, so tests can override any of them
through `app.dependency_overrides`.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from shorty_app.config import settings
from shorty_app.database.connection import get_db
from shorty_app.queue.factory import QueueFactory, QueueBackend
from shorty_app.queue.strategies import QueueStrategy
from shorty_app.services.url_service import URLService


@lru_cache()
def get_queue() -> QueueStrategy:
    """
    Get click queue instance (singleton).

    Factory gets config from settings internally.
    @lru_cache ensures this is called only once.
    """
    backend = QueueBackend(settings.queue_backend)
    return QueueFactory.create(backend)


def get_url_service(
    db: Session = Depends(get_db),
    queue: QueueStrategy = Depends(get_queue)
) -> URLService:
    """URLService wired with the request's session and the shared click queue"""
    return URLService(db=db, queue=queue)
