"""In-process observer registry for cache lifecycle events."""

import itertools
import logging
import threading
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Type
from uuid import uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Base class for everything published on the :class:`EventBus`."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = ""


@dataclass
class Subscription:
    """Handle returned by subscribe(); can be used to unsubscribe."""
    id: str = field(default_factory=lambda: str(uuid4()))
    event_type: Type = DomainEvent
    handler: Callable = field(default=lambda e: None)
    async_: bool = False
    sequence: int = 0
    active: bool = True

    def cancel(self):
        self.active = False


class EventBus:
    """Deliver events to subscribers of the event's type or any of its bases.

    Synchronous handlers run on the publishing thread, in subscription
    order, before :meth:`publish` returns, so they observe events in the
    order they were emitted.  Handlers registered with ``async_=True`` are
    handed to a small worker pool instead and carry no ordering guarantee.
    A handler that raises is logged and skipped.
    """

    def __init__(self, logger: logging.Logger = None, max_workers: int = 2):
        self._logger = logger or logging.getLogger(__name__)
        self._handlers: Dict[Type[DomainEvent], List[Subscription]] = defaultdict(list)
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._sequence = itertools.count()
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type[DomainEvent], handler: Callable, async_: bool = False) -> Subscription:
        with self._lock:
            sub = Subscription(
                event_type=event_type,
                handler=handler,
                async_=async_,
                sequence=next(self._sequence),
            )
            self._handlers[event_type].append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription):
        subscription.cancel()
        with self._lock:
            subs = self._handlers.get(subscription.event_type, [])
            if subscription in subs:
                subs.remove(subscription)

    def publish(self, event: DomainEvent) -> List[Future]:
        futures: List[Future] = []
        for sub in self._matching(type(event)):
            if not sub.active:
                continue
            if sub.async_:
                futures.append(self._pool().submit(self._safe_call, sub, event))
            else:
                self._safe_call(sub, event)
        return futures

    def shutdown(self):
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def _matching(self, event_type: type) -> List[Subscription]:
        with self._lock:
            matched: List[Subscription] = []
            for klass in event_type.__mro__:
                matched.extend(self._handlers.get(klass, ()))
        # Keep registration order across the base/derived handler lists.
        return sorted(matched, key=lambda sub: sub.sequence)

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="event-bus",
                )
            return self._executor

    def _safe_call(self, sub: Subscription, event: DomainEvent):
        try:
            sub.handler(event)
        except Exception as e:
            self._logger.error(
                "Handler for %s failed: %s", type(event).__name__, e
            )
