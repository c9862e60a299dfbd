"""
Simple Async Pub/Sub Event Bus

A lightweight publish/subscribe utility built on asyncio queues. The feed
controller publishes every FeedState it produces under FEED_STATE_TOPIC;
each WebSocket connection subscribes with its own queue and consumes the
snapshots at its own pace.
"""

import asyncio
from typing import Any, Dict, DefaultDict, Optional, Set
from collections import defaultdict

from core.config import settings
from core.logging import get_logger


FEED_STATE_TOPIC = "feed_state"


class EventBus:
    """
    Async event bus with topic-based pub/sub.

    - Each subscriber gets its own asyncio.Queue, events arrive in publish order.
    - A full subscriber queue drops the event for that subscriber only.
    - Unsubscribing is important to avoid queue leaks when clients disconnect.
    """

    def __init__(self, max_queue_size: Optional[int] = None) -> None:
        self._topics: DefaultDict[str, Set[asyncio.Queue]] = defaultdict(set)
        self._max_queue_size = settings.event_queue_size if max_queue_size is None else max_queue_size
        self._lock = asyncio.Lock()
        self._logger = get_logger(__name__)

    async def subscribe(self, topic: str) -> asyncio.Queue:
        """
        Subscribe to a topic. Returns an asyncio.Queue for receiving events.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        async with self._lock:
            self._topics[topic].add(queue)
        self._logger.debug(f"Subscriber added to topic '{topic}'. total={self.subscriber_count(topic)}")
        return queue

    async def unsubscribe(self, topic: str, queue: asyncio.Queue) -> None:
        """
        Unsubscribe a queue from a topic and drain what it still holds.
        """
        async with self._lock:
            subscribers = self._topics.get(topic)
            if subscribers and queue in subscribers:
                subscribers.remove(queue)
                if not subscribers:
                    del self._topics[topic]
        while True:
            try:
                queue.get_nowait()
            except asyncio.QueueEmpty:
                break
        self._logger.debug(f"Subscriber removed from topic '{topic}'. total={self.subscriber_count(topic)}")

    def subscriber_count(self, topic: str) -> int:
        subscribers = self._topics.get(topic)
        return len(subscribers) if subscribers else 0

    async def publish(self, topic: str, event: Dict[str, Any]) -> int:
        """
        Publish an event to a topic.

        Returns:
            Number of subscribers the event was delivered to
        """
        subscribers = list(self._topics.get(topic, ()))
        delivered = 0

        for q in subscribers:
            try:
                q.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                # Drop event to avoid backpressure blocking the publisher
                self._logger.warning(f"Dropping event for topic '{topic}' due to full queue")
        return delivered


# Singleton event bus for the application
bus = EventBus()
