"""In-process publish/subscribe bus for list notifications."""

import logging
import threading
import uuid
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional


@dataclass(kw_only=True)
class Event:
    """Base class for bus payloads that are not list events."""
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class Subscription:
    """Handle returned by subscribe(); cancel it or pass it to unsubscribe()."""
    event_type: type = Event
    handler: Callable = field(default=lambda e: None)
    async_: bool = False
    active: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def cancel(self):
        self.active = False


class EventBus:
    """Dispatch events to the handlers registered for their exact type.

    Synchronous handlers run on the publishing thread in subscription order.
    Handlers subscribed with ``async_=True`` run on a thread pool that is only
    created when first needed.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, max_workers: int = 4):
        self._logger = logger or logging.getLogger(__name__)
        self._subscriptions: Dict[type, List[Subscription]] = defaultdict(list)
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def subscribe(self, event_type: type, handler: Callable, async_: bool = False) -> Subscription:
        sub = Subscription(event_type=event_type, handler=handler, async_=async_)
        with self._lock:
            self._subscriptions[event_type].append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription):
        subscription.cancel()
        with self._lock:
            subs = self._subscriptions.get(subscription.event_type, [])
            if subscription in subs:
                subs.remove(subscription)

    def publish(self, event: object):
        for sub in self._active(event):
            if sub.async_:
                self._pool().submit(self._call, sub, event)
            else:
                self._call(sub, event)

    def publish_async(self, event: object) -> List[Future]:
        """Run every handler of *event* on the pool and return their futures."""
        return [self._pool().submit(self._call, sub, event) for sub in self._active(event)]

    def _active(self, event: object) -> List[Subscription]:
        with self._lock:
            subs = list(self._subscriptions.get(type(event), ()))
        return [sub for sub in subs if sub.active]

    def _call(self, sub: Subscription, event: object):
        try:
            sub.handler(event)
        except Exception:
            self._logger.exception(
                "%s handler failed for %s", "Async" if sub.async_ else "Sync", type(event).__name__
            )

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="listkit-events"
                )
            return self._executor

    def shutdown(self, wait: bool = True):
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
