# orderahead/realtime/__init__.py
import threading

from orderahead.realtime.change_feed import ChangeFeed, InMemoryChangeFeed, RedisChangeFeed
from orderahead.utils.settings import CHANGE_FEED_BACKEND

_feed: ChangeFeed | None = None
_lock = threading.Lock()


def _build_feed() -> ChangeFeed:
    #late import, notification_service pulls in celery
    from orderahead.services.notification_service import enqueue_new_order_push

    if CHANGE_FEED_BACKEND == "memory":
        feed = InMemoryChangeFeed()
    else:
        feed = RedisChangeFeed()

    #new order -> push to every device of the business
    feed.add_listener("INSERT", enqueue_new_order_push)
    return feed


def get_change_feed() -> ChangeFeed:
    global _feed
    if _feed is None:
        with _lock:
            if _feed is None:
                _feed = _build_feed()
    return _feed


def reset_change_feed() -> None:
    global _feed
    with _lock:
        _feed = None
