import logging
from typing import List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shorty_app.config import settings
from shorty_app.exceptions import StorageError
from shorty_app.models.url import URL
from shorty_app.queue.models import ClickEvent
from shorty_app.queue.strategies import QueueStrategy
from shorty_app.schemas.url import URLRecord
from shorty_app.services.short_code_factory import ShortCodeFactory
from shorty_app.services.short_code_strategies import ShortCodeStrategy

logger = logging.getLogger(__name__)

SCHEMES = ("http://", "https://")


def normalize_url(url: str) -> str:
    """Prepend https:// unless the URL already starts with http:// or https://"""
    if url.startswith(SCHEMES):
        return url
    return "https://" + url


class URLService:
    """
    URL Service with dependency injection for the session, queue and code strategy.

    - The database session is created per request and passed in
    - The click queue is optional (no queue means clicks are not counted)
    - The code strategy defaults to the one configured in settings
    """

    def __init__(
        self,
        db: Session,
        queue: Optional[QueueStrategy] = None,
        short_code_strategy: Optional[ShortCodeStrategy] = None
    ):
        self.db = db
        self.queue = queue
        self.short_code_strategy = short_code_strategy or ShortCodeFactory.create_strategy()

    def shorten(self, raw_url: str) -> Tuple[URL, bool]:
        """Return the link for `raw_url`, creating it if needed

        Duplicate detection is a plain lookup before the insert, not a
        constraint: two concurrent requests for a new URL can both insert.

        Returns:
            (url, created) where created is False when an existing row was reused

        Raises:
            ShortCodeGenerationError: randomness source failed
            StorageError: the lookup or insert failed (including code collisions)
        """
        original_url = normalize_url(raw_url)

        try:
            existing = self.db.query(URL).filter(
                URL.original_url == original_url
            ).order_by(URL.id).first()
        except SQLAlchemyError as e:
            raise StorageError("Failed to look up URL") from e

        if existing:
            return existing, False

        short_code = self.short_code_strategy.generate()

        url = URL(short_code=short_code, original_url=original_url, clicks=0)
        try:
            self.db.add(url)
            self.db.commit()
            self.db.refresh(url)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("Failed to save URL") from e

        logger.info("Created short code %s for %s", url.short_code, url.original_url)
        return url, True

    def get_url_by_short_code(self, short_code: str) -> Optional[URL]:
        """Return the link for a short code, or None"""
        return self.db.query(URL).filter(URL.short_code == short_code).first()

    def get_original_url_for_redirect(self, short_code: str) -> Optional[str]:
        """Return only the target URL, or None if the code is unknown"""
        row = self.db.query(URL.original_url).filter(
            URL.short_code == short_code
        ).first()
        return row.original_url if row else None

    async def record_click(self, short_code: str) -> bool:
        """
        Publish a click event for the worker to apply later.

        Fire and forget: a failed publish is logged and the click is lost,
        the redirect itself is never affected.
        """
        if self.queue is None:
            return False

        published = await self.queue.publish(settings.queue_name, ClickEvent(short_code=short_code))
        if not published:
            logger.warning("Click for %s was not recorded", short_code)
        return published

    def get_url_stats(self, short_code: str) -> Optional[URL]:
        """Stats are the full record; the router picks the fields"""
        return self.get_url_by_short_code(short_code)

    def list_recent(self, limit: int = None) -> List[URLRecord]:
        """
        Newest links first, at most `limit` (list_limit setting by default).

        Rows that do not validate against URLRecord are skipped so one bad
        row cannot break the whole listing.
        """
        if limit is None:
            limit = settings.list_limit
        try:
            rows = self.db.query(URL).order_by(
                URL.created_at.desc(), URL.id.desc()
            ).limit(limit).all()
        except SQLAlchemyError as e:
            raise StorageError("Failed to fetch URLs") from e

        records = []
        for row in rows:
            try:
                records.append(URLRecord.model_validate(row))
            except ValidationError as e:
                logger.warning("Skipping unreadable row id=%s: %s", row.id, e)
        return records

    def is_healthy(self) -> bool:
        """Lightweight reachability probe"""
        try:
            self.db.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Health check failed: %s", e)
            return False
