# orderahead/realtime/change_feed.py
"""
Live order change feed.

Repos publish one ``OrderEvent`` per committed order insert/update. Dashboard
sessions subscribe per business and only ever see events of that business:
scoping happens where the event is routed (channel / queue per business),
never on the receiving side.

Delivery is best effort. A session that drops misses the events of the gap
and has to re-fetch on reconnect, there is no replay log.
"""
import queue
import threading
from collections import defaultdict
from typing import Callable

import redis

from orderahead.domain.schemas import OrderEvent
from orderahead.utils.logging import get_logger
from orderahead.utils.retry import redis_retry
from orderahead.utils.settings import REDIS_URL

logger = get_logger(__name__)

Listener = Callable[[OrderEvent], None]


def channel_for(business_id: int) -> str:
    return f"orders:{business_id}"


class FeedSubscription:
    """Handle returned by ``ChangeFeed.subscribe``."""

    def get(self, timeout: float = 1.0) -> OrderEvent | None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class ChangeFeed:
    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def add_listener(self, kind: str, callback: Listener) -> None:
        """Run ``callback`` after every broadcast of an event of ``kind`` (INSERT/UPDATE)."""
        self._listeners[kind].append(callback)

    def publish(self, event: OrderEvent) -> None:
        #called after commit, the write already happened, nothing here may fail it
        try:
            self._broadcast(event)
        except Exception as e:
            logger.error(
                f"Failed to broadcast {event.type} for order {event.order.id} "
                f"(business {event.business_id}): {e}"
            )

        for callback in self._listeners.get(event.type, []):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Listener {getattr(callback, '__name__', callback)} failed for order {event.order.id}: {e}")

    def subscribe(self, business_id: int) -> FeedSubscription:
        raise NotImplementedError

    def _broadcast(self, event: OrderEvent) -> None:
        raise NotImplementedError


# =====================================================
# IN-MEMORY (single process, tests, local dev)
# =====================================================
class _QueueSubscription(FeedSubscription):
    def __init__(self, feed: "InMemoryChangeFeed", business_id: int):
        self.feed = feed
        self.business_id = business_id
        self.queue: queue.Queue = queue.Queue()

    def get(self, timeout: float = 1.0) -> OrderEvent | None:
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        self.feed._remove(self)


class InMemoryChangeFeed(ChangeFeed):
    def __init__(self):
        super().__init__()
        self._lock = threading.Lock()
        self._subscribers: dict[int, list[_QueueSubscription]] = defaultdict(list)

    def subscribe(self, business_id: int) -> FeedSubscription:
        sub = _QueueSubscription(self, business_id)
        with self._lock:
            self._subscribers[business_id].append(sub)
        logger.info(f"Dashboard subscribed to {channel_for(business_id)}")
        return sub

    def _broadcast(self, event: OrderEvent) -> None:
        #put under the lock so two publishers cannot interleave per subscriber
        with self._lock:
            for sub in self._subscribers.get(event.business_id, []):
                sub.queue.put(event)

    def _remove(self, sub: _QueueSubscription) -> None:
        with self._lock:
            subs = self._subscribers.get(sub.business_id, [])
            if sub in subs:
                subs.remove(sub)


# =====================================================
# REDIS PUB/SUB
# =====================================================
class _RedisSubscription(FeedSubscription):
    def __init__(self, pubsub, business_id: int):
        self.pubsub = pubsub
        self.business_id = business_id

    def get(self, timeout: float = 1.0) -> OrderEvent | None:
        message = self.pubsub.get_message(timeout=timeout)
        if not message or message.get("type") != "message":
            return None
        return OrderEvent.model_validate_json(message["data"])

    def close(self) -> None:
        try:
            self.pubsub.unsubscribe()
        finally:
            self.pubsub.close()


class RedisChangeFeed(ChangeFeed):
    """
    One redis channel per business. Redis delivers messages of one channel in
    publish order, which keeps events of one order in commit order as long as
    they are published right after their commit.
    """

    def __init__(self, url: str | None = None):
        super().__init__()
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    def subscribe(self, business_id: int) -> FeedSubscription:
        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(channel_for(business_id))
        logger.info(f"Dashboard subscribed to {channel_for(business_id)}")
        return _RedisSubscription(pubsub, business_id)

    @redis_retry()
    def _broadcast(self, event: OrderEvent) -> None:
        receivers = self.redis.publish(channel_for(event.business_id), event.model_dump_json())
        logger.info(
            f"Published {event.type} order {event.order.id} to {channel_for(event.business_id)} "
            f"({receivers} receivers)"
        )
