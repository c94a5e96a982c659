"""
Click Worker

Applies click events from the queue to the `clicks` column.

Architecture:
- Consumes messages from the queue in batches
- Aggregates them per short code
- One UPDATE ... SET clicks = clicks + n per code, single commit per batch
- Acknowledges only after the commit succeeded

Runs inside the web process (started from the FastAPI lifespan) or on its own:

    python -m shorty_app.workers.click_worker
"""

import asyncio
import logging
import signal
import sys
from collections import Counter
from typing import List

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from shorty_app.config import settings
from shorty_app.database.connection import SessionLocal
from shorty_app.models.url import URL
from shorty_app.queue.models import ClickEvent
from shorty_app.queue.strategies import QueueStrategy

logger = logging.getLogger(__name__)


class ClickWorker:
    """
    Batch click processor.

    With Redis Streams a failed batch stays pending and is redelivered
    (at-least-once). With the in-memory queue a failed batch is gone; the
    click counter undercounts, which is accepted.
    """

    def __init__(
        self,
        queue: QueueStrategy,
        db_session_factory=SessionLocal,
        queue_name: str = None,
        batch_size: int = None,
        poll_interval: float = None
    ):
        self.queue = queue
        self.db_session_factory = db_session_factory
        self.queue_name = queue_name or settings.queue_name
        self.batch_size = batch_size or settings.click_worker_batch_size
        self.poll_interval = poll_interval if poll_interval is not None else settings.click_worker_interval
        self.running = False
        self._stop_requested = False
        self.processed_count = 0

    async def start(self):
        """Poll the queue until stop() is called, then drain once"""
        self.running = True
        logger.info(
            "Click worker started (batch size %d, interval %.2fs)",
            self.batch_size, self.poll_interval
        )

        while not self._stop_requested:
            try:
                processed = await self.process_once()
                # Yield to request handlers even while the queue is busy
                await asyncio.sleep(0 if processed else self.poll_interval)
            except asyncio.CancelledError:
                logger.info("Click worker task cancelled")
                raise
            except Exception as e:
                logger.error("Error processing click batch: %s", e)
                await asyncio.sleep(self.poll_interval)

        # Apply whatever was published before the stop request
        while await self.process_once():
            pass

        self.running = False
        logger.info("Click worker stopped after %d clicks", self.processed_count)

    async def process_once(self) -> int:
        """
        Consume one batch and apply it.

        Returns:
            Number of events applied (0 if the queue was empty or the batch failed)
        """
        messages = await self.queue.consume_batch(
            queue_name=self.queue_name,
            batch_size=self.batch_size,
            block_time=int(self.poll_interval * 1000)
        )
        if not messages:
            return 0

        try:
            # Blocking DB transaction; keep it off the event loop serving requests
            await asyncio.to_thread(self.apply_clicks, messages)
        except SQLAlchemyError as e:
            # Not acknowledged: Redis redelivers, memory drops
            logger.error("Click batch of %d failed: %s", len(messages), e)
            return 0

        message_ids = [msg.message_id for msg in messages if msg.message_id]
        if message_ids:
            await self.queue.ack(self.queue_name, message_ids)

        self.processed_count += len(messages)
        logger.debug("Applied %d clicks. Total: %d", len(messages), self.processed_count)
        return len(messages)

    def apply_clicks(self, messages: List[ClickEvent]):
        """Increment clicks per short code in one transaction"""
        counts = Counter(msg.short_code for msg in messages)

        db = self.db_session_factory()
        try:
            for short_code, count in counts.items():
                db.execute(
                    update(URL)
                    .where(URL.short_code == short_code)
                    .values(clicks=URL.clicks + count)
                )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def stop(self):
        """Ask the loop to finish after the current batch"""
        self._stop_requested = True


async def main():
    """Standalone entry point; needs a shared queue backend (redis_streams)"""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    logger.info("Queue backend: %s", settings.queue_backend)

    from shorty_app.queue.factory import QueueFactory, QueueBackend
    queue = QueueFactory.create(QueueBackend(settings.queue_backend))

    worker = ClickWorker(queue=queue)

    def _signal_handler(signum, frame):
        logger.info("Received signal %s. Shutting down gracefully...", signum)
        worker.stop()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        await worker.start()
    except Exception as e:
        logger.critical("Fatal error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
