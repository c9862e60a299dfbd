"""
Unit Tests for the Event Bus

Run with:
    pytest tests/unit/test_event_bus.py -v
"""

import pytest

from services.event_bus import EventBus, FEED_STATE_TOPIC


class TestEventBus:
    """Tests for subscribe/publish/unsubscribe"""

    @pytest.mark.asyncio
    async def test_publish_reaches_every_subscriber_in_order(self):
        bus = EventBus()
        first = await bus.subscribe(FEED_STATE_TOPIC)
        second = await bus.subscribe(FEED_STATE_TOPIC)

        assert await bus.publish(FEED_STATE_TOPIC, {"n": 1}) == 2
        await bus.publish(FEED_STATE_TOPIC, {"n": 2})

        for queue in (first, second):
            assert queue.get_nowait() == {"n": 1}
            assert queue.get_nowait() == {"n": 2}

    @pytest.mark.asyncio
    async def test_topics_are_isolated(self):
        bus = EventBus()
        queue = await bus.subscribe("other")

        assert await bus.publish(FEED_STATE_TOPIC, {"n": 1}) == 0
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_full_queue_drops_event_for_that_subscriber(self):
        bus = EventBus(max_queue_size=1)
        slow = await bus.subscribe(FEED_STATE_TOPIC)

        assert await bus.publish(FEED_STATE_TOPIC, {"n": 1}) == 1
        assert await bus.publish(FEED_STATE_TOPIC, {"n": 2}) == 0
        assert slow.get_nowait() == {"n": 1}

    @pytest.mark.asyncio
    async def test_unsubscribe_drains_and_removes_topic(self):
        bus = EventBus()
        queue = await bus.subscribe(FEED_STATE_TOPIC)
        await bus.publish(FEED_STATE_TOPIC, {"n": 1})

        await bus.unsubscribe(FEED_STATE_TOPIC, queue)

        assert queue.empty()
        assert bus.subscriber_count(FEED_STATE_TOPIC) == 0
        assert await bus.publish(FEED_STATE_TOPIC, {"n": 2}) == 0

    @pytest.mark.asyncio
    async def test_unsubscribe_unknown_queue_is_harmless(self):
        bus = EventBus()
        queue = await bus.subscribe(FEED_STATE_TOPIC)

        await bus.unsubscribe("never-subscribed", queue)

        assert bus.subscriber_count(FEED_STATE_TOPIC) == 1
