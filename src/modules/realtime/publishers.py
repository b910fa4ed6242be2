"""Event publishers for the realtime channel.

A publisher fans a message out to every subscriber of a channel.  Two
implementations share the same surface:

- ``RedisEventPublisher``: Redis pub/sub through the django-redis
  connection, so every web process and Celery worker reaches every stream.
- ``InMemoryEventPublisher``: in-process queues, for tests and single
  process development.

``subscribe`` returns an iterable subscription that yields decoded
messages, or ``None`` when ``timeout`` passes without one (the stream uses
that to send a heartbeat).
"""

from __future__ import annotations

import json
import queue
import threading
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import structlog
from django.core.serializers.json import DjangoJSONEncoder

logger = structlog.get_logger(__name__)

Message = Dict[str, Any]


class RedisSubscription:
    def __init__(self, pubsub, channels: List[str], timeout: float) -> None:
        self._pubsub = pubsub
        self._timeout = timeout
        self._pubsub.subscribe(*channels)
        self.channels = channels

    def __iter__(self) -> Iterator[Optional[Message]]:
        while True:
            raw = self._pubsub.get_message(
                ignore_subscribe_messages=True, timeout=self._timeout
            )
            if raw is None:
                yield None
                continue
            try:
                yield json.loads(raw["data"])
            except (TypeError, ValueError):
                logger.warning("realtime.undecodable_message", channel=raw.get("channel"))

    def close(self) -> None:
        try:
            self._pubsub.unsubscribe()
        finally:
            self._pubsub.close()


class RedisEventPublisher:
    def __init__(self, alias: str = "default") -> None:
        self._alias = alias
        self._client = None

    @property
    def client(self):
        if self._client is None:
            from django_redis import get_redis_connection

            self._client = get_redis_connection(self._alias)
        return self._client

    def publish(self, channel: str, message: Message) -> int:
        data = json.dumps(message, cls=DjangoJSONEncoder)
        receivers = self.client.publish(channel, data)
        logger.debug("realtime.published", channel=channel, receivers=receivers)
        return receivers

    def subscribe(self, channels: Iterable[str], timeout: float) -> RedisSubscription:
        return RedisSubscription(self.client.pubsub(), list(channels), timeout)

    def ping(self) -> bool:
        return bool(self.client.ping())

    def close(self) -> None:
        # The connection pool belongs to django-redis; drop our handle only.
        self._client = None


class InMemorySubscription:
    def __init__(
        self, publisher: InMemoryEventPublisher, channels: List[str], timeout: float
    ) -> None:
        self._publisher = publisher
        self._timeout = timeout
        self.channels = channels
        self.queue: "queue.Queue[Message]" = queue.Queue()

    def __iter__(self) -> Iterator[Optional[Message]]:
        while True:
            try:
                yield self.queue.get(timeout=self._timeout)
            except queue.Empty:
                yield None

    def close(self) -> None:
        self._publisher._unsubscribe(self)


class InMemoryEventPublisher:
    """Process-local publisher; ``published`` keeps every message sent."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: List[InMemorySubscription] = []
        self.published: List[Tuple[str, Message]] = []

    def publish(self, channel: str, message: Message) -> int:
        # Round-trip through JSON so subscribers see what Redis would deliver.
        message = json.loads(json.dumps(message, cls=DjangoJSONEncoder))
        with self._lock:
            self.published.append((channel, message))
            targets = [s for s in self._subscriptions if channel in s.channels]
        for subscription in targets:
            subscription.queue.put(message)
        return len(targets)

    def subscribe(self, channels: Iterable[str], timeout: float) -> InMemorySubscription:
        subscription = InMemorySubscription(self, list(channels), timeout)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: InMemorySubscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def ping(self) -> bool:
        return True

    def reset(self) -> None:
        with self._lock:
            self.published.clear()
            self._subscriptions.clear()

    def close(self) -> None:
        self.reset()
