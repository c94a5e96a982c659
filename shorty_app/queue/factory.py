"""
Factory for creating queue instances.
Simple factory with singleton caching.
"""

import logging
from enum import Enum

import redis
import redis.asyncio

from .strategies import QueueStrategy, RedisStreamQueue, InMemoryQueue
from shorty_app.config import settings

logger = logging.getLogger(__name__)


class QueueBackend(Enum):
    """Available queue backends"""
    REDIS_STREAMS = "redis_streams"
    MEMORY = "memory"


class QueueFactory:
    """
    Simple factory for creating queue instances.

    Gets configuration from settings (not passed as parameters).
    """

    _instance: QueueStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: QueueBackend) -> QueueStrategy:
        """
        Create or return cached queue instance.

        An unreachable Redis falls back to the in-memory queue so the
        service keeps redirecting; clicks then stay in this process.
        """
        if cls._instance is not None:
            return cls._instance

        if backend == QueueBackend.REDIS_STREAMS:
            try:
                # Test connection immediately (blocking is fine at startup)
                probe = redis.from_url(
                    settings.redis_url,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )
                try:
                    probe.ping()
                finally:
                    probe.close()

                # Queue operations run on the event loop, so use the asyncio client.
                # No socket_timeout: XREADGROUP BLOCK may outlast it.
                redis_client = redis.asyncio.from_url(
                    settings.redis_url,
                    decode_responses=False,
                    socket_connect_timeout=2,
                )

                cls._instance = RedisStreamQueue(
                    redis_client,
                    settings.queue_consumer_group
                )
                logger.info("Redis click queue initialized")

            except redis.RedisError as e:
                logger.warning("Redis connection failed: %s", e)
                logger.warning("Falling back to in-memory click queue")
                cls._instance = InMemoryQueue()

        elif backend == QueueBackend.MEMORY:
            cls._instance = InMemoryQueue()
            logger.info("In-memory click queue initialized")

        else:
            raise ValueError(f"Unknown queue backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
