'''
In-process publish/subscribe used to push new chat messages to open panels.

Each subscriber gets an explicit Subscription handle with its own bounded
queue. Events carrying an "id" are delivered at most once per subscription,
which lets a panel mark the ids it already loaded from the database and
then stream without duplicates. A subscriber that falls behind by more
than its queue size is dropped; reading from it then raises
SubscriptionOverflowError and the client is expected to reconnect with a
cursor.
'''
import asyncio
from collections import defaultdict
from typing import Any, Optional

from ..common.config import settings
from ..common.exceptions import SubscriptionOverflowError, SubscriptionClosedError
from ..common.logger import log

_CLOSED = object()
_OVERFLOW = object()


def order_messages_topic(order_id) -> str:
    return f"orders:{order_id}:messages"


class Subscription:
    """
    A handle on one topic. Iterate it (`async for event in sub`) or call
    `get()`. Always `close()` it when the listener goes away.
    """
    def __init__(self, broker: "RealtimeBroker", topic: str, max_queue_size: int):
        self.broker = broker
        self.topic = topic
        self.max_queue_size = max_queue_size
        self._queue: asyncio.Queue = asyncio.Queue()
        self._seen: set[str] = set()
        self.closed = False
        self.overflowed = False

    def mark_seen(self, *keys: Any) -> None:
        """
        Records event ids that must not be delivered again and drops any
        matching events that are already waiting in the queue.
        """
        marked = {str(key) for key in keys}
        self._seen.update(marked)

        waiting = []
        while not self._queue.empty():
            waiting.append(self._queue.get_nowait())
        for item in waiting:
            if isinstance(item, dict) and str(item.get("id")) in marked:
                continue
            self._queue.put_nowait(item)

    def pending(self) -> int:
        return self._queue.qsize()

    def _deliver(self, event: dict) -> bool:
        """
        Called by the broker. Returns False when the subscriber overflowed
        and has to be dropped.
        """
        if self.closed:
            return True
        key = event.get("id")
        if key is not None:
            key = str(key)
            if key in self._seen:
                return True
        if self._queue.qsize() >= self.max_queue_size:
            self.overflowed = True
            self.closed = True
            self._queue.put_nowait(_OVERFLOW)
            return False
        if key is not None:
            self._seen.add(key)
        self._queue.put_nowait(event)
        return True

    async def get(self) -> dict:
        if self.closed and self._queue.empty():
            if self.overflowed:
                raise SubscriptionOverflowError(self.topic)
            raise SubscriptionClosedError(self.topic)
        item = await self._queue.get()
        if item is _OVERFLOW:
            raise SubscriptionOverflowError(self.topic)
        if item is _CLOSED:
            raise SubscriptionClosedError(self.topic)
        return item

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.broker._remove(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> dict:
        try:
            return await self.get()
        except SubscriptionClosedError:
            raise StopAsyncIteration

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class RealtimeBroker:
    """
    Topic-keyed fan-out of events to subscriptions. Runs entirely on the
    event loop, so no locking is needed.
    """
    def __init__(self, max_queue_size: Optional[int] = None):
        self.max_queue_size = max_queue_size or settings.REALTIME_QUEUE_SIZE
        self._subscriptions: dict[str, set[Subscription]] = defaultdict(set)

    def subscribe(self, topic: str) -> Subscription:
        subscription = Subscription(self, topic, self.max_queue_size)
        self._subscriptions[topic].add(subscription)
        log.info(f"New subscription on '{topic}' ({len(self._subscriptions[topic])} active).")
        return subscription

    def publish(self, topic: str, payload: dict) -> int:
        """
        Delivers the payload to every subscription of the topic.
        Returns the number of subscriptions that received it.
        """
        delivered = 0
        for subscription in list(self._subscriptions.get(topic, ())):
            if subscription._deliver(payload):
                delivered += 1
            else:
                log.warning(f"Subscriber on '{topic}' overflowed its queue and was dropped.")
                self._remove(subscription)
        return delivered

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscriptions.get(topic, ()))

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.topic)
        if not subscribers:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscriptions[subscription.topic]


# Single broker shared by the HTTP handlers and the WebSocket endpoint.
broker = RealtimeBroker()

def get_realtime_broker() -> RealtimeBroker:
    """FastAPI dependency returning the application's broker."""
    return broker
