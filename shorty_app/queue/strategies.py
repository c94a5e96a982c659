"""
Queue strategies using Strategy Pattern.
Allows switching between different queue backends (Redis Streams, In-Memory).
"""

import logging
import socket
from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, List

from pydantic import ValidationError

from .models import ClickEvent

logger = logging.getLogger(__name__)


class QueueStrategy(ABC):
    """
    Abstract base class for click queue strategies.

    The redirect route publishes, the click worker consumes; neither knows
    which backend is in use.
    """

    @abstractmethod
    async def publish(self, queue_name: str, message: ClickEvent) -> bool:
        """
        Publish a message to the queue.

        Returns:
            True if successful, False otherwise (never raises)
        """
        pass

    @abstractmethod
    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickEvent]:
        """
        Consume messages from the queue.

        Args:
            queue_name: Name of the queue
            batch_size: Maximum number of messages to retrieve
            block_time: Time to wait for messages (milliseconds)
        """
        pass

    @abstractmethod
    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        """Acknowledge messages (mark as processed)"""
        pass

    @abstractmethod
    async def get_queue_length(self, queue_name: str) -> int:
        """Number of pending messages in the queue"""
        pass

    async def consume_batch(self, queue_name: str, batch_size: int = 100, block_time: int = 1000) -> List[ClickEvent]:
        """Consume a batch of messages (consume with a larger default batch size)"""
        return await self.consume(queue_name, batch_size, block_time)


class RedisStreamQueue(QueueStrategy):
    """
    Redis Streams implementation on top of `redis.asyncio`.

    1. Redirects append events with XADD
    2. Workers read them with XREADGROUP in a consumer group
    3. Workers acknowledge with XACK once clicks are committed

    Unacknowledged events stay in this consumer's pending list and are read
    again (id '0') before any new event, which gives at-least-once delivery.
    The consumer name is stable per host so a restarted worker picks up
    what its predecessor left pending.
    """

    def __init__(self, redis_client, consumer_group: str = "click_workers", consumer_name: str = None):
        self.redis = redis_client
        self.consumer_group = consumer_group
        self.consumer_name = consumer_name or f"worker-{socket.gethostname()}"
        self._initialized_streams = set()

    async def _ensure_stream_exists(self, queue_name: str):
        """Create the stream and consumer group on first use"""
        if queue_name in self._initialized_streams:
            return

        try:
            await self.redis.xgroup_create(
                name=queue_name,
                groupname=self.consumer_group,
                id='0',
                mkstream=True
            )
            logger.info("Created Redis stream %s", queue_name)
        except Exception as e:
            # Group already exists
            if "BUSYGROUP" not in str(e):
                raise

        self._initialized_streams.add(queue_name)

    async def publish(self, queue_name: str, message: ClickEvent) -> bool:
        try:
            await self._ensure_stream_exists(queue_name)
            await self.redis.xadd(queue_name, {'data': message.model_dump_json()})
            return True
        except Exception as e:
            logger.error("Redis publish error: %s", e)
            return False

    async def _read(self, queue_name: str, stream_id: str, count: int, block: int = None):
        messages = await self.redis.xreadgroup(
            groupname=self.consumer_group,
            consumername=self.consumer_name,
            streams={queue_name: stream_id},
            count=count,
            block=block
        )
        return [entry for _stream, entries in messages or [] for entry in entries]

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickEvent]:
        try:
            await self._ensure_stream_exists(queue_name)

            # '0' replays our own unacknowledged entries, '>' reads new ones
            entries = await self._read(queue_name, '0', batch_size)
            if not entries:
                entries = await self._read(queue_name, '>', batch_size, block_time)

            events = []
            for message_id, message_data in entries:
                if isinstance(message_id, bytes):
                    message_id = message_id.decode('utf-8')
                try:
                    event = ClickEvent.model_validate_json(message_data[b'data'])
                except (KeyError, ValidationError) as e:
                    logger.warning("Dropping unparseable message %s: %s", message_id, e)
                    await self.redis.xack(queue_name, self.consumer_group, message_id)
                    continue
                event.message_id = message_id
                events.append(event)

            return events

        except Exception as e:
            logger.error("Redis consume error: %s", e)
            return []

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        if not message_ids:
            return True
        try:
            await self.redis.xack(queue_name, self.consumer_group, *message_ids)
            return True
        except Exception as e:
            logger.error("Redis ack error: %s", e)
            return False

    async def get_queue_length(self, queue_name: str) -> int:
        try:
            info = await self.redis.xinfo_stream(queue_name)
            return info['length']
        except Exception:
            return 0


class InMemoryQueue(QueueStrategy):
    """
    In-memory queue backed by a deque per queue name.

    Not persistent and not shared between processes: clicks still pending
    when the process exits are lost. Default for single-process deployments
    and tests.
    """

    def __init__(self):
        self._queues: Dict[str, deque] = {}

    def _get_queue(self, queue_name: str) -> deque:
        if queue_name not in self._queues:
            self._queues[queue_name] = deque()
        return self._queues[queue_name]

    async def publish(self, queue_name: str, message: ClickEvent) -> bool:
        self._get_queue(queue_name).append(message)
        return True

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickEvent]:
        """block_time is ignored; an empty queue returns immediately"""
        queue = self._get_queue(queue_name)
        messages = []
        while queue and len(messages) < batch_size:
            messages.append(queue.popleft())
        return messages

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        """Messages are removed on consume; nothing to acknowledge"""
        return True

    async def get_queue_length(self, queue_name: str) -> int:
        return len(self._get_queue(queue_name))
