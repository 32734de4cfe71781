"""
Event notifiers that inform the host application of keyring changes.
"""

import json
from abc import ABC, abstractmethod
from typing import Optional

from redis.asyncio import Redis, ConnectionPool
from redis.exceptions import RedisError
import structlog

from eoa_keyring.errors import NotificationError
from eoa_keyring.messaging.events import KeyringEvent

logger = structlog.get_logger()


class EventNotifier(ABC):
    """Abstract event notifier."""

    @abstractmethod
    async def notify(self, event: KeyringEvent) -> None:
        """Deliver an event. Raises ``NotificationError`` on failure."""
        pass


class LoggingEventNotifier(EventNotifier):
    """Writes events to the structured log."""

    async def notify(self, event: KeyringEvent) -> None:
        logger.info(
            "keyring_event",
            event_type=event.event_type.value,
            data=event.data,
        )


class RedisEventNotifier(EventNotifier):
    """
    Publishes events on Redis pub/sub.

    Usage:
        notifier = RedisEventNotifier("redis://localhost:6379/0")
        await notifier.connect()
        await notifier.notify(AccountDeletedEvent(account_id))
    """

    def __init__(
        self,
        url: str,
        channel_prefix: str = "keyring:events",
        max_connections: int = 10,
    ):
        self.url = url
        self.pool = ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
        )
        self.redis: Optional[Redis] = None
        self.channel_prefix = channel_prefix

    async def connect(self) -> None:
        """Connect to Redis."""
        self.redis = Redis(connection_pool=self.pool)
        logger.info("redis_connected", url=self.url)

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

        await self.pool.disconnect()
        logger.info("redis_disconnected")

    async def notify(self, event: KeyringEvent) -> None:
        if not self.redis:
            raise NotificationError("Redis not connected. Call connect() first.")

        channel = f"{self.channel_prefix}:{event.event_type.value}"
        try:
            await self.redis.publish(channel, json.dumps(event.to_dict()))
        except RedisError as e:
            raise NotificationError(f"Failed to publish {event.event_type.value}: {e}") from e

        logger.debug(
            "event_published",
            event_type=event.event_type.value,
            channel=channel,
        )


__all__ = ["EventNotifier", "LoggingEventNotifier", "RedisEventNotifier"]
